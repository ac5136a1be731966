"""
Pytest configuration and fixtures for backend tests.
"""

import os
import sys
import time
from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment variables before importing config
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["CORS_ORIGINS"] = '["http://localhost:3000"]'
os.environ["ADMIN_EMAIL"] = "admin@test.com"
os.environ["ADMIN_PASSWORD"] = "TestAdmin123!"
os.environ["ENVIRONMENT"] = "test"
os.environ["CACHE_ENABLED"] = "false"

from authentication.auth import create_access_token, get_password_hash  # noqa: E402
from repositories.database import Base, get_db  # noqa: E402
import repositories.db_models as db_models  # noqa: E402
from services.cache_service import NullCacheBackend, set_cache_backend  # noqa: E402

# Test database engine (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# bcrypt is slow; hash the shared fixture password once
TEST_PASSWORD = "testpassword123"
_TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


class FakeCacheBackend:
    """In-memory cache backend with TTL bookkeeping."""

    stores_data = True

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.expires: dict[str, float] = {}

    def _purge(self, key: str) -> None:
        deadline = self.expires.get(key)
        if deadline is not None and deadline <= time.monotonic():
            self.store.pop(key, None)
            self.expires.pop(key, None)

    def get(self, key: str) -> Optional[str]:
        self._purge(key)
        return self.store.get(key)

    def set(self, key: str, value: str, ttl: int) -> None:
        self.store[key] = value
        self.expires[key] = time.monotonic() + ttl

    def delete(self, *keys: str) -> None:
        for key in keys:
            self.store.pop(key, None)
            self.expires.pop(key, None)

    def delete_prefix(self, prefix: str) -> None:
        self.delete(*[key for key in self.store if key.startswith(prefix)])

    def incr(self, key: str) -> int:
        self._purge(key)
        value = int(self.store.get(key, "0")) + 1
        self.store[key] = str(value)
        return value

    def expire(self, key: str, ttl: int) -> None:
        if key in self.store:
            self.expires[key] = time.monotonic() + ttl

    def ttl(self, key: str) -> int:
        self._purge(key)
        if key not in self.store:
            return -2
        deadline = self.expires.get(key)
        if deadline is None:
            return -1
        return max(1, int(deadline - time.monotonic()))


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh in-memory database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session."""
    return db_session


@pytest.fixture
def fake_cache():
    """Install an in-memory cache backend for the duration of a test."""
    backend = FakeCacheBackend()
    set_cache_backend(backend)
    try:
        yield backend
    finally:
        set_cache_backend(NullCacheBackend())


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with overridden database dependency."""
    from main import app
    from helpers.rate_limiter import limiter

    # Reset rate limiter storage before each test to prevent rate limit errors
    limiter.reset()

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def create_user(
    db_session,
    email: str,
    full_name: str,
    role: db_models.UserRole = db_models.UserRole.CITIZEN,
    is_active: bool = True,
) -> db_models.User:
    """Insert a user with the shared test password."""
    user = db_models.User(
        email=email,
        full_name=full_name,
        hashed_password=_TEST_PASSWORD_HASH,
        role=role,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def create_issue(
    db_session,
    reporter: db_models.User,
    category: db_models.IssueCategory,
    zone: db_models.Zone,
    title: str = "Pothole on Main Street",
    status: db_models.IssueStatus = db_models.IssueStatus.OPEN,
    urgency_score: int = 5,
) -> db_models.Issue:
    """Insert an issue directly, bypassing the service layer."""
    issue = db_models.Issue(
        title=title,
        description="Large pothole in the right lane causing damage to cars.",
        category_id=category.id,
        zone_id=zone.id,
        user_id=reporter.id,
        status=status,
        urgency_score=urgency_score,
    )
    db_session.add(issue)
    db_session.commit()
    db_session.refresh(issue)
    return issue


def auth_headers_for(user: db_models.User) -> dict:
    """Bearer header for a user."""
    token = create_access_token(data={"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def citizen(db_session) -> db_models.User:
    """Create a citizen who reports issues."""
    return create_user(db_session, "citizen@example.com", "Casey Citizen")


@pytest.fixture
def other_user(db_session) -> db_models.User:
    """Create a second citizen (voter, commenter, flagger)."""
    return create_user(db_session, "other@example.com", "Robin Resident")


@pytest.fixture
def steward(db_session) -> db_models.User:
    """Create a steward without assignments."""
    return create_user(
        db_session,
        "steward@example.com",
        "Sam Steward",
        role=db_models.UserRole.STEWARD,
    )


@pytest.fixture
def admin_user(db_session) -> db_models.User:
    """Create a super admin."""
    return create_user(
        db_session,
        "admin@example.com",
        "Alex Admin",
        role=db_models.UserRole.SUPER_ADMIN,
    )


@pytest.fixture
def category(db_session) -> db_models.IssueCategory:
    """Create a test category."""
    category = db_models.IssueCategory(
        name="Roads", description="Potholes and pavement", icon="road"
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def other_category(db_session) -> db_models.IssueCategory:
    """Create a second category."""
    category = db_models.IssueCategory(name="Lighting", description="Street lights")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def zone(db_session) -> db_models.Zone:
    """Create an active zone."""
    zone = db_models.Zone(name="Downtown", zone_type=db_models.ZoneType.DISTRICT)
    db_session.add(zone)
    db_session.commit()
    db_session.refresh(zone)
    return zone


@pytest.fixture
def other_zone(db_session) -> db_models.Zone:
    """Create a second active zone."""
    zone = db_models.Zone(name="Harbour", zone_type=db_models.ZoneType.NEIGHBORHOOD)
    db_session.add(zone)
    db_session.commit()
    db_session.refresh(zone)
    return zone


@pytest.fixture
def assignment(
    db_session, steward, category, zone, admin_user
) -> db_models.StewardCategoryAssignment:
    """Give the steward authority over (category, zone)."""
    assignment = db_models.StewardCategoryAssignment(
        steward_id=steward.id,
        category_id=category.id,
        zone_id=zone.id,
        assigned_by=admin_user.id,
    )
    db_session.add(assignment)
    db_session.commit()
    db_session.refresh(assignment)
    return assignment


@pytest.fixture
def issue(db_session, citizen, category, zone) -> db_models.Issue:
    """Create an OPEN issue reported by the citizen."""
    return create_issue(db_session, citizen, category, zone)


@pytest.fixture
def citizen_headers(citizen) -> dict:
    return auth_headers_for(citizen)


@pytest.fixture
def other_headers(other_user) -> dict:
    return auth_headers_for(other_user)


@pytest.fixture
def steward_headers(steward) -> dict:
    return auth_headers_for(steward)


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return auth_headers_for(admin_user)
