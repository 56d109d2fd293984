"""
Test configuration and fixtures.

Settings are read at import time, so the environment is pinned before any
``app`` module is imported: in-memory SQLite, no Redis, test cookies.
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ["ENVIRONMENT"] = "test"
os.environ["REDIS_URL"] = "disabled"
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import get_db
from app.core.security import create_access_token, get_password_hash
from app.models import Base
from app.models.enums import UserRole
from app.models.user import User
import app.chat.models  # noqa: F401
import app.projects.models  # noqa: F401

# Test database URL (in-memory SQLite)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

CLIENT_PASSWORD = "Client1234!@x"
SUPPORT_PASSWORD = "Support1234!@x"
ADMIN_PASSWORD = "Admin1234!@xyz"


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Test client sharing ``db_session`` with the app."""
    from fastapi.testclient import TestClient
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _make_user(db_session, email, password, role, first_name):
    user = User(
        email=email,
        password_hash=get_password_hash(password),
        first_name=first_name,
        last_name="Test",
        role=role,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def client_user(db_session):
    return _make_user(db_session, "client@test.com", CLIENT_PASSWORD, UserRole.CLIENT, "Clara")


@pytest.fixture
def other_client_user(db_session):
    return _make_user(db_session, "other@test.com", CLIENT_PASSWORD, UserRole.CLIENT, "Otto")


@pytest.fixture
def support_user(db_session):
    return _make_user(db_session, "support@test.com", SUPPORT_PASSWORD, UserRole.SUPPORT, "Sam")


@pytest.fixture
def admin_user(db_session):
    return _make_user(db_session, "admin@test.com", ADMIN_PASSWORD, UserRole.ADMIN, "Ada")


def _bearer(user):
    return {"Authorization": f"Bearer {create_access_token(subject=str(user.id))}"}


@pytest.fixture
def client_headers(client_user):
    return _bearer(client_user)


@pytest.fixture
def other_client_headers(other_client_user):
    return _bearer(other_client_user)


@pytest.fixture
def support_headers(support_user):
    return _bearer(support_user)


@pytest.fixture
def admin_headers(admin_user):
    return _bearer(admin_user)


@pytest.fixture
def relay():
    """Fresh relay for unit tests that should not touch the global instance."""
    from app.chat.websocket import ChatRelay

    return ChatRelay(queue_size=4)
