from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from trainhub.config import Settings
from trainhub.exceptions import DomainError
from trainhub.extensions import Database
from trainhub.log_config import configure_logging
from trainhub.routers.admin import routes as admin
from trainhub.routers.attendance import routes as attendance
from trainhub.routers.scores import routes as scores
from trainhub.routers.staff import routes as staff
from trainhub.routers.student import routes as student
from trainhub.security import TokenService
from trainhub.services.notifications import Mailer

log = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def domain_error(request: Request, exc: DomainError):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid request", "errors": jsonable_errors(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        # Internal admin tool: the raw error is returned to help diagnosis.
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error", "error": str(exc)},
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    mailer: Mailer | None = None,
) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings)

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.db = database or Database(settings.SQLALCHEMY_DATABASE_URI, echo=settings.SQL_ECHO)
    app.state.tokens = TokenService(settings)
    app.state.mailer = mailer or Mailer(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(admin.router)
    app.include_router(attendance.router)
    app.include_router(scores.router)
    app.include_router(staff.router)
    app.include_router(student.router)

    @app.get("/")
    def root():
        return {"message": f"{settings.APP_NAME} API ready"}

    return app


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.db.create_all()
    yield


app = create_app()
