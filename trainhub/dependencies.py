from dataclasses import dataclass
from typing import Any

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings
from .extensions import Database
from .security import TokenService
from .services.notifications import Mailer

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller as carried by the bearer token."""
    id: int
    role: str
    email: str | None = None


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_tokens(request: Request) -> TokenService:
    return request.app.state.tokens


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_db(request: Request) -> Any:
    """Dependency to provide a database session."""
    database: Database = request.app.state.db
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_tokens),
) -> Principal:
    """Decodes the bearer token and returns the caller it names."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Authentication token required")

    payload = tokens.decode_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or not role:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    try:
        return Principal(id=int(subject), role=role, email=payload.get("email"))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token payload") from None


def require_role(*roles: str):
    """Dependency factory that ensures the caller has one of the required roles."""
    def role_checker(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.role not in roles:
            raise HTTPException(status_code=403, detail="Permission denied")
        return principal
    return role_checker
