"""
Test configuration and fixtures.

Provides:
- In-memory SQLite engine bound to the service layer's `SessionFactory`
  (tables created and dropped around every test)
- Clean session / verification-code registries with the real clock
- A `TestClient` over the app (lifespan not entered; tables are managed here)
- Factories for users and tasks
"""
import os
import uuid
from decimal import Decimal

# The API must run in email dev mode and never touch a real database file.
os.environ.pop("SMTP_HOST", None)
os.environ["CREATE_TABLES_ON_STARTUP"] = "False"
os.environ["DB_DRIVER_NAME"] = "sqlite"
os.environ["DB_DATABASE_NAME"] = ":memory:"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from handygo.crypt.encrypt_decrypt import EncryptionDec
from handygo.database.config.connection_engine import SessionFactory, create_tables, metadata
from handygo.database.entities.task import Task
from handygo.database.entities.user import User
from handygo.main import app
from handygo.registries import session_registry, verification_registry
from handygo.registries.sessions import utcnow

TEST_PASSWORD = "s3cret-pass"


# =============================================================================
# Database
# =============================================================================

@pytest.fixture(scope="session")
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionFactory.configure(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture(autouse=True)
def tables(engine):
    create_tables(engine)
    yield
    metadata.drop_all(bind=engine)


@pytest.fixture
def db(engine):
    """Open a short-lived session for arranging or inspecting data."""
    return SessionFactory


# =============================================================================
# Registries
# =============================================================================

@pytest.fixture(autouse=True)
def clean_registries():
    session_registry.clear()
    verification_registry.clear()
    session_registry.clock = utcnow
    verification_registry.clock = utcnow
    yield
    session_registry.clear()
    verification_registry.clear()
    session_registry.clock = utcnow
    verification_registry.clock = utcnow


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture(scope="session")
def password_hash() -> str:
    return EncryptionDec().hash_password(TEST_PASSWORD)


@pytest.fixture
def make_user(db, password_hash):
    """Insert a user with password `TEST_PASSWORD` and return its id."""
    def _make_user(username: str, email: str | None = None, **profile) -> uuid.UUID:
        user = User(
            username=username,
            email=email or f"{username.lower()}@aalto.fi",
            password_hash=password_hash,
            **profile,
        )
        user_id = user.id
        with db() as session:
            session.add(user)
            session.commit()
        return user_id

    return _make_user


@pytest.fixture
def make_task(db):
    def _make_task(owner_id: uuid.UUID, name: str = "Fix my bike", price: str = "25.00") -> uuid.UUID:
        task = Task(user_id=owner_id, name=name, price=Decimal(price))
        task_id = task.id
        with db() as session:
            session.add(task)
            session.commit()
        return task_id

    return _make_task


# =============================================================================
# HTTP
# =============================================================================

@pytest.fixture
def client(engine) -> TestClient:
    return TestClient(app)


@pytest.fixture
def login(client):
    """Log `client` in by email and return the user payload."""
    def _login(email: str, password: str = TEST_PASSWORD) -> dict:
        response = client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()["user"]

    return _login
