"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, build_engine, get_db
from app.models.task import Task
from app.models.user import User, UserToken  # noqa: F401
from app.services.auth import AuthService
from app.services.email import EmailService


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = build_engine("sqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="mailer")
def mailer_fixture(monkeypatch):
    """Replace outbound email with a mock so no request leaves the test."""
    mailer = MagicMock(spec=EmailService)
    monkeypatch.setattr("app.routers.users.get_email_service", lambda: mailer)
    return mailer


@pytest.fixture(name="client")
def client_fixture(db_session: Session, mailer: MagicMock):
    """Create a test client with overridden DB dependency and disabled rate limiting."""
    from app.rate_limit import limiter
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


def _create_user(db: Session, name: str, email: str, password: str) -> dict:
    auth_service = AuthService()
    result = auth_service.register(db, name, email, password)
    token = auth_service.issue_token(db, result.user)
    return {
        "id": result.user.id,
        "name": name,
        "email": email,
        "password": password,
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest.fixture(name="user_one")
def user_one_fixture(db_session: Session) -> dict:
    """Sarah, holding one session token."""
    return _create_user(db_session, "Sarah", "sarah@example.com", "example123")


@pytest.fixture(name="user_two")
def user_two_fixture(db_session: Session) -> dict:
    """Evan, holding one session token."""
    return _create_user(db_session, "Evan", "evan@example.com", "example123")


@pytest.fixture(name="tasks")
def tasks_fixture(db_session: Session, user_one: dict, user_two: dict) -> dict:
    """Two tasks for user one (oldest first) and one for user two."""
    now = datetime.utcnow()
    task_one = Task(description="Testing 1 2 3!", completed=False, owner_id=user_one["id"])
    task_one.created_at = now - timedelta(days=2)
    task_two = Task(description="Testing 3 2 1!", completed=True, owner_id=user_one["id"])
    task_two.created_at = now - timedelta(days=1)
    task_three = Task(description="Testing 3rd!", completed=True, owner_id=user_two["id"])
    task_three.created_at = now
    db_session.add_all([task_one, task_two, task_three])
    db_session.commit()
    return {"one": task_one.id, "two": task_two.id, "three": task_three.id}
