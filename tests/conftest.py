"""Pytest configuration and fixtures."""

import os
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

import src.services.realtime as realtime_module
from src.config import get_settings
from src.database import Base, Database, get_db
from src.main import app
from src.models.enums import UserRole
from src.models.user import User
from src.services.auth import create_access_token, get_password_hash

DEFAULT_PASSWORD = "password123"


class AuthHeaders(dict):
    """Dict subclass that also stores user_id."""

    def __init__(self, *args, user_id: int | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace("/timecards", "/timecards_test")
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

test_database = Database(SQLALCHEMY_DATABASE_URL)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    test_database.create_all()
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = test_database.session_factory()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(autouse=True)
def mock_redis():
    """Replace the publishing Redis client so no server is needed."""
    mock_client = MagicMock()
    realtime_module._sync_redis = mock_client
    yield mock_client
    realtime_module._sync_redis = None


@pytest.fixture
def settings_env(monkeypatch):
    """Set environment overrides and rebuild the cached settings."""

    def apply(**values):
        for key, value in values.items():
            monkeypatch.setenv(key.upper(), str(value))
        get_settings.cache_clear()

    yield apply
    get_settings.cache_clear()


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user_factory(db):
    """Insert users directly; every account gets DEFAULT_PASSWORD unless told otherwise."""

    def create(
        email: str,
        role: UserRole = UserRole.EMPLOYEE,
        name: str | None = None,
        employer: User | None = None,
        password: str = DEFAULT_PASSWORD,
        is_active: bool = True,
        **fields,
    ) -> User:
        user = User(
            email=email,
            password_hash=get_password_hash(password),
            name=name or email.split("@")[0].title(),
            role=role.value,
            employer_id=employer.id if employer else None,
            is_active=is_active,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return create


def headers_for(user: User) -> AuthHeaders:
    token = create_access_token(user.id, user.role)
    return AuthHeaders({"Authorization": f"Bearer {token}"}, user_id=user.id)


@pytest.fixture
def auth_headers_for():
    return headers_for


@pytest.fixture
def admin_user(user_factory):
    return user_factory("admin@example.com", UserRole.ADMIN, name="Admin User")


@pytest.fixture
def employer_user(user_factory):
    return user_factory(
        "employer@example.com",
        UserRole.EMPLOYER,
        name="John Manager",
        designation="Project Manager",
        department="Operations",
    )


@pytest.fixture
def employee_user(user_factory, employer_user):
    return user_factory(
        "employee@example.com",
        UserRole.EMPLOYEE,
        name="Sarah Smith",
        employer=employer_user,
        designation="Software Developer",
        department="Engineering",
    )


@pytest.fixture
def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture
def employer_headers(employer_user):
    return headers_for(employer_user)


@pytest.fixture
def employee_headers(employee_user):
    return headers_for(employee_user)
