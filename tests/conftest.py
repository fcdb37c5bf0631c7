"""Pytest fixtures and configuration for memoassist tests."""

import os

# Keep the app module's own engine off the filesystem
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from memoassist.database.database import Base, get_db
from memoassist.database.repository import MemoRepository
from memoassist.engine.service import SuggestionEngine
from memoassist.models.memo import MemoType, RecurrenceGoal, Period
from memoassist.models.memo_factory import create_memo


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

# Wednesday morning
FIXED_NOW = datetime(2026, 3, 4, 10, 0, 0)


class FakeClock:
    """Settable clock for engine tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def disable_model_enrichment(monkeypatch):
    """Never call the real model from tests."""
    monkeypatch.setenv("MEMOASSIST_ENRICHMENT_ENABLED", "false")


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    # Import models so they register on Base.metadata
    from memoassist.database import models  # noqa: F401

    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def memo_repository(db_session: Session):
    """Create a MemoRepository instance for testing."""
    return MemoRepository(db_session)


@pytest.fixture
def now():
    """Fixed 'now' used by pure engine tests."""
    return FIXED_NOW


@pytest.fixture
def clock():
    return FakeClock(FIXED_NOW)


@pytest.fixture
def engine(memo_repository, clock):
    """SuggestionEngine over the test database with a settable clock."""
    return SuggestionEngine(memo_repository, clock=clock)


@pytest.fixture
def make_memo(now):
    """Factory for memos created at `now` (overrides go through create_memo)."""
    def _make(title="Test Memo", memo_type=MemoType.BACKLOG, **overrides):
        overrides.setdefault("now", now)
        return create_memo(title=title, memo_type=memo_type, **overrides)
    return _make


@pytest.fixture
def backlog_memo(make_memo):
    """Create a backlog memo with a 30 minute session."""
    return make_memo("Read a novel", MemoType.BACKLOG, session_duration=30, total_duration_expected=60)


@pytest.fixture
def routine_memo(make_memo):
    """Create a weekly routine memo (3 times a week)."""
    return make_memo(
        "Go for a run",
        MemoType.ROUTINE,
        recurrence_goal=RecurrenceGoal(count=3, period=Period.WEEK),
        session_duration=30,
    )


@pytest.fixture
def deadline_memo(make_memo, now):
    """Create a deadline memo due in four days (five-day curve)."""
    return make_memo(
        "Write the lab report",
        MemoType.DEADLINE,
        deadline=now.replace(hour=18) + timedelta(days=4),
        session_duration=30,
        total_duration_expected=300,
    )


@pytest.fixture
def test_client(db_session: Session):
    """Create a FastAPI test client with overridden database dependency."""
    from memoassist.api.app import app

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
