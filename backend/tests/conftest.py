from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from yourday.api.deps import get_identity
from yourday.db import models  # noqa: F401
from yourday.db.repository import TaskRepository
from yourday.db.session import get_session
from yourday.main import app
from yourday.services.identity import TokenIdentity
from yourday.services.tasks import OwnerLocks, TaskService


def at(hour: int, minute: int = 0, day: int = 1) -> datetime:
    """2024-01-<day> hh:mm UTC."""
    return datetime(2024, 1, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture(name="session")
def session_fixture():
    """Create a fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="repo")
def repo_fixture(session: Session):
    return TaskRepository(session)


@pytest.fixture(name="service")
def service_fixture(repo: TaskRepository):
    return TaskService(repo, locks=OwnerLocks())


@pytest.fixture(name="identity")
def identity_fixture():
    return TokenIdentity("test-secret")


@pytest.fixture(name="client")
def client_fixture(session: Session, identity: TokenIdentity):
    """Create a test client with overridden database session and token secret."""
    def get_session_override():
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_identity] = lambda: identity
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="auth")
def auth_fixture(identity: TokenIdentity):
    """Build an Authorization header for a user id."""
    def make(user_id: str) -> dict:
        return {"Authorization": f"Bearer {identity.issue(user_id)}"}
    return make
