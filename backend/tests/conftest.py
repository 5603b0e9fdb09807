"""Pytest configuration and fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401  (registers tables on Base.metadata)
from database import Base, enable_sqlite_transactions
from utils.clock import FixedClock

# Pytest fixtures - imported to make them available to tests
from tests.fixtures import NOW, holding, portfolio, user  # noqa: F401
from tests.fixtures.mocks import RecordingSleep


@pytest.fixture(name="db")
def db_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_transactions(engine)
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="clock")
def clock_fixture():
    """Clock pinned to NOW."""
    return FixedClock(NOW)


@pytest.fixture(name="sleep")
def sleep_fixture():
    """Sleep replacement that records requested pauses instead of sleeping."""
    return RecordingSleep()
