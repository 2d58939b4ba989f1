"""Shared test fixtures and configuration."""
import os

# Must be set before the application modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("KEY_DERIVATION_ITERATIONS", "1000")
# The test client connects as "testclient"; tests pick voter IPs via X-Forwarded-For
os.environ.setdefault("TRUSTED_PROXIES", "testclient")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from elections.main import app  # noqa: E402
from elections.db.base import Base  # noqa: E402
from elections.api.deps import get_db  # noqa: E402
from elections.core.principal import Principal  # noqa: E402
from elections.core.security import create_access_token, create_user_token  # noqa: E402
from elections.services.elections import create_election  # noqa: E402


# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(autouse=True)
def disable_rate_limiting_for_tests(request):
    """Disable rate limiting for all tests except rate limiting tests."""
    from elections.core.rate_limit import limiter

    # Check if this is a rate limiting test (marked with @pytest.mark.rate_limit)
    if "rate_limit" in request.keywords:
        limiter.reset()
        yield
        limiter.reset()
    else:
        limiter.enabled = False
        yield
        limiter.enabled = True


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh database for each test."""
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a new database session for a test."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with a test database."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_token():
    """Generate a valid admin JWT token."""
    return create_access_token({"is_admin": True})


@pytest.fixture
def admin_client(client, admin_token):
    """Create a test client with admin cookie already set."""
    client.cookies.set("admin_token", admin_token)
    return client


@pytest.fixture
def user_token():
    """Host-issued token for an ordinary logged-in user."""
    def _make(user_id, groups=()):
        return create_user_token(user_id, groups)
    return _make


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


@pytest.fixture
def anonymous():
    return Principal(ip_address="203.0.113.10")


@pytest.fixture
def make_election(db_session):
    """Create an election with sensible defaults; keyword arguments override them."""
    def _make(pid="board", questions=None, **kwargs):
        if questions is None:
            questions = [
                {"text": "Chair", "answers": [{"text": "Alice"}, {"text": "Bob"}]},
            ]
        return create_election(db_session, pid=pid, topic=f"Election {pid}", questions=questions, **kwargs)
    return _make


@pytest.fixture
def past_window(now):
    """Opening and closing times of an election that ended an hour ago."""
    return now - timedelta(days=2), now - timedelta(hours=1)
