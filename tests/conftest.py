"""Pytest configuration and fixtures."""

import os
import uuid
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from sentinel.database import Base, get_db
from sentinel.main import app
from sentinel.models import Tenant, User
from sentinel.models.enums import Role
from sentinel.services.notification_service import DeliveryResult, MessagingService


class AuthHeaders(dict):
    """Dict subclass that also stores the user's identity."""

    def __init__(self, *args, user_id: str | None = None, tenant_id: str | None = None,
                 email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.tenant_id = tenant_id
        self.email = email


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace("/sentinel", "/sentinel_test")
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


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
def auth_headers(client):
    """Register an organization and return its admin's auth headers."""
    response = client.post(
        "/api/v1/auth/register",
        json={
            "tenant_name": "Acme Holding",
            "email": "admin@example.com",
            "password": "testpass123",
            "name": "Admin User",
        },
    )
    assert response.status_code == 201
    data = response.json()

    return AuthHeaders(
        {"Authorization": f"Bearer {data['access_token']}"},
        user_id=data["user"]["id"],
        tenant_id=data["user"]["tenant_id"],
        email=data["user"]["email"],
    )


@pytest.fixture
def make_user(client, auth_headers):
    """Create a user in the admin's organization and log in as them."""

    def _make(role: str = "employee", email: str | None = None, **profile) -> AuthHeaders:
        email = email or f"{role}-{uuid.uuid4().hex[:8]}@example.com"
        response = client.post(
            "/api/v1/users",
            headers=auth_headers,
            json={"email": email, "password": "testpass123", "name": role.title(), "role": role,
                  **profile},
        )
        assert response.status_code == 201, response.text
        user = response.json()

        login = client.post("/api/v1/auth/login", json={"email": email, "password": "testpass123"})
        assert login.status_code == 200
        return AuthHeaders(
            {"Authorization": f"Bearer {login.json()['access_token']}"},
            user_id=user["id"],
            tenant_id=user["tenant_id"],
            email=email,
        )

    return _make


@pytest.fixture
def tenant(db):
    """A tenant created directly in the database, for service-level tests."""
    tenant = Tenant(name="Test Org")
    db.add(tenant)
    db.commit()
    return tenant


@pytest.fixture
def add_user(db, tenant):
    """Create users directly in the database."""

    def _add(role: Role = Role.EMPLOYEE, name: str = "User", **fields) -> User:
        user = User(
            tenant_id=tenant.id,
            email=f"{name.lower().replace(' ', '.')}-{uuid.uuid4().hex[:6]}@example.com",
            password_hash="not-a-real-hash",
            name=name,
            role=role,
            **fields,
        )
        db.add(user)
        db.commit()
        return user

    return _add


@pytest.fixture
def messaging():
    """Messaging service double that accepts every message."""
    service = MagicMock(spec=MessagingService)
    service.send.return_value = DeliveryResult(success=True, provider_message_id="msg-1")
    return service
