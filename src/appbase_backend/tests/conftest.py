"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import uuid
from typing import List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Settings are read once at import, so the test environment must be in place first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTH_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

# Ensure appbase_backend is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from aiocache import Cache
from fastapi.testclient import TestClient

from appbase_backend.auth.credentials import hash_password
from appbase_backend.auth.rate_limiter import RateLimiter
from appbase_backend.database import enable_sqlite_foreign_keys, get_db
from appbase_backend.model import Base, Permission, Role, RolePermission, User, UserCredentials, UserRole
from appbase_backend.notifications import set_email_service
from appbase_backend.tests.fixtures import DEFAULT_PASSWORD, RecordingEmailService


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def Session(engine):
    """Create session factory."""
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(Session):
    """Create a new database session for a test."""
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Factory: user with credentials, optionally holding existing roles."""

    def _make_user(
        email: Optional[str] = None,
        password: Optional[str] = DEFAULT_PASSWORD,
        first_name: str = "Ada",
        last_name: str = "Lovelace",
        roles: Optional[List[Role]] = None,
    ) -> User:
        user = User(
            email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
            first_name=first_name,
            last_name=last_name,
            name=f"{first_name} {last_name}",
        )
        db.add(user)
        db.flush()

        if password is not None:
            db.add(UserCredentials(user_id=user.id, hashed_password=hash_password(password)))

        for role in roles or []:
            db.add(UserRole(user_id=user.id, role_id=role.id))

        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_role(db):
    """Factory: role granting the given permission ids (created on demand)."""

    def _make_role(name: str, permissions: Optional[List[str]] = None, description: Optional[str] = None) -> Role:
        role = Role(name=name, description=description)
        db.add(role)
        db.flush()

        for permission_id in permissions or []:
            if db.get(Permission, permission_id) is None:
                db.add(Permission(id=permission_id, module=permission_id.split(":")[0]))
                db.flush()
            db.add(RolePermission(role_id=role.id, permission_id=permission_id))

        db.commit()
        db.refresh(role)
        return role

    return _make_role


@pytest.fixture
def email_service():
    service = RecordingEmailService()
    set_email_service(service)
    try:
        yield service
    finally:
        set_email_service(None)


@pytest.fixture
def client(db, email_service):
    """TestClient bound to the per-test database, with a private rate-limit namespace."""
    from appbase_backend.api.auth import get_reset_rate_limiter
    from appbase_backend.server import app

    limiter = RateLimiter(Cache(Cache.MEMORY), namespace=f"test-{uuid.uuid4().hex}", limit=3, window_seconds=900)

    def override_get_db():
        yield db

    async def override_rate_limiter():
        return limiter

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_reset_rate_limiter] = override_rate_limiter

    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

