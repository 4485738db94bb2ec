import smtplib

import pytest
from httpx import AsyncClient, ASGITransport

from trainhub.config import Settings
from trainhub.extensions import Database
from trainhub.main import create_app
from trainhub.models import Admin, Enrollment, Module, Staff, Student, Venue
from trainhub.security import hash_password
from trainhub.services.enrollment import new_progress
from trainhub.services.notifications import Mailer

PASSWORD = "Secret123!"
PASSWORD_HASH = hash_password(PASSWORD)


class RecordingMailer(Mailer):
    """Keeps outgoing messages in memory; can be told to fail given batch numbers."""

    def __init__(self, settings, fail_on=()):
        super().__init__(settings)
        self.sent = []
        self.attempts = 0
        self.fail_on = set(fail_on)

    def deliver(self, message):
        self.attempts += 1
        if self.attempts in self.fail_on:
            raise smtplib.SMTPException(f"batch {self.attempts} rejected")
        self.sent.append(message)

    @property
    def recipients(self):
        return [
            address.strip()
            for message in self.sent
            for address in message["Bcc"].split(",")
        ]


class Factory:
    def __init__(self, session):
        self.session = session
        self._seq = 0

    def _next(self):
        self._seq += 1
        return self._seq

    def student(self, **kwargs):
        n = self._next()
        data = {
            "name": f"Student {n}",
            "reg_no": f"21CS{n:03d}",
            "email": f"student{n}@example.com",
            "password_hash": PASSWORD_HASH,
            "batch": "Dream",
            "passout_year": 2025,
            "department": "CSE",
        }
        data.update(kwargs)
        student = Student(**data)
        self.session.add(student)
        self.session.commit()
        return student

    def module(self, exams_count=3, **kwargs):
        module = Module(title=kwargs.pop("title", f"Module {self._next()}"), exams_count=exams_count, **kwargs)
        self.session.add(module)
        self.session.commit()
        return module

    def venue(self, **kwargs):
        n = self._next()
        venue = Venue(name=kwargs.pop("name", f"Venue {n}"), capacity=kwargs.pop("capacity", 60), **kwargs)
        self.session.add(venue)
        self.session.commit()
        return venue

    def staff(self, **kwargs):
        n = self._next()
        staff = Staff(
            name=kwargs.pop("name", f"Staff {n}"),
            email=kwargs.pop("email", f"staff{n}@example.com"),
            password_hash=PASSWORD_HASH,
            **kwargs,
        )
        self.session.add(staff)
        self.session.commit()
        return staff

    def admin(self, email="admin@example.com"):
        admin = Admin(name="Admin", email=email, password_hash=PASSWORD_HASH)
        self.session.add(admin)
        self.session.commit()
        return admin

    def progress(self, student, module, venue):
        student.enrollments.append(Enrollment(module=module))
        progress = new_progress(student, module, venue)
        self.session.add(progress)
        self.session.commit()
        return progress


@pytest.fixture(name="settings")
def settings_fixture(tmp_path):
    return Settings(
        _env_file=None,
        SQLALCHEMY_DATABASE_URI=f"sqlite:///{tmp_path / 'test.db'}",
        SECRET_KEY="test-secret",
        MAIL_ENABLED=False,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture(name="database")
def database_fixture(settings):
    database = Database(settings.SQLALCHEMY_DATABASE_URI)
    database.create_all()
    yield database
    database.drop_all()
    database.engine.dispose()


@pytest.fixture(name="session")
def session_fixture(database):
    with database.SessionLocal() as session:
        yield session


@pytest.fixture(name="make")
def factory_fixture(session):
    return Factory(session)


@pytest.fixture(name="make_mailer")
def make_mailer_fixture(settings):
    def build(fail_on=()):
        return RecordingMailer(settings, fail_on=fail_on)
    return build


@pytest.fixture(name="mailer")
def mailer_fixture(make_mailer):
    return make_mailer()


@pytest.fixture(name="app")
def app_fixture(settings, database, mailer):
    return create_app(settings, database=database, mailer=mailer)


@pytest.fixture(name="client")
def client_fixture(app):
    client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    yield client


def bearer(app, subject_id, role):
    token = app.state.tokens.issue(subject_id, role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="admin_headers")
def admin_headers_fixture(app, make):
    admin = make.admin()
    return bearer(app, admin.id, "admin")
