"""Shared pytest fixtures.

Every store-backed test runs twice: once against the JSON file store and once
against the SQL store on an in-memory SQLite database.
"""

import itertools
import os

# Must be set before config is imported
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["EMAIL_DELIVERY"] = "log"
os.environ["ENVIRONMENT"] = "development"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ.pop("BOOTSTRAP_ADMIN_EMAIL", None)
os.environ.pop("BOOTSTRAP_ADMIN_PASSWORD", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from app import app
from core.dependencies import get_notifier, get_record_store
from models.base import Base
from schemas.ticket import TicketCreate
from schemas.user import Role
from utils.json_store import JsonRecordStore
from utils.notifier import VerificationNotifier
from utils.sql_store import SqlRecordStore
from utils.ticket_manager import TicketManager
from utils.user_manager import UserManager

PASSWORD = "Secret123!"


class CapturingNotifier(VerificationNotifier):
    """Keeps sent codes in memory instead of delivering them."""

    def __init__(self):
        self.sent = []

    def send_code(self, email, code, purpose):
        self.sent.append((email, code, purpose))

    def last_code(self, email, purpose=None):
        for sent_email, code, sent_purpose in reversed(self.sent):
            if sent_email == email and (purpose is None or sent_purpose == purpose):
                return code
        return None


@pytest.fixture
def json_store(tmp_path):
    return JsonRecordStore(tmp_path / "cira_store.json")


@pytest.fixture
def sql_store():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield SqlRecordStore(db)
    finally:
        db.close()
        engine.dispose()


@pytest.fixture(params=["json", "sql"])
def store(request):
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def notifier():
    return CapturingNotifier()


@pytest.fixture
def user_manager(store):
    return UserManager(store)


@pytest.fixture
def ticket_manager(store):
    return TicketManager(store)


@pytest.fixture
def make_user(user_manager):
    """Factory for verified users with unique emails and student ids."""
    counter = itertools.count(1)

    def _make(role=Role.STUDENT.value, email=None, verified=True, **kwargs):
        n = next(counter)
        password = kwargs.pop("password", PASSWORD)
        return user_manager.create_user(
            email=email or f"user{n}@plv.edu.ph",
            password=password,
            first_name="Juan",
            last_name=f"Dela Cruz {n}",
            student_id=f"23-{n:04d}",
            role=role,
            verified=verified,
            **kwargs,
        )

    return _make


@pytest.fixture
def student(make_user):
    return make_user(Role.STUDENT.value)


@pytest.fixture
def class_rep(make_user):
    return make_user(Role.CLASS_REPRESENTATIVE.value)


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN.value)


@pytest.fixture
def make_ticket(ticket_manager):
    def _make(reporter, **fields):
        data = {
            "classroom": "Room 101",
            "unit_id": "PROJ-01",
            "issue_type": "Projector",
            "issue_description": "Projector does not turn on",
        }
        data.update(fields)
        return ticket_manager.create_ticket(reporter, TicketCreate(**data))

    return _make


@pytest.fixture
def client(store, notifier):
    app.dependency_overrides[get_record_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    """Log a user in and return the Authorization header for the session."""

    def _headers(user, password=PASSWORD):
        response = client.post(
            "/api/auth/login", json={"email": user.email, "password": password}
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _headers
