from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import taskboard.models  # noqa: F401
from taskboard.clock import Clock
from taskboard.database import Base
from taskboard.dependencies import CurrentUser

TEST_DATABASE_URL = "sqlite://"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FixedClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now


@pytest.fixture(autouse=True)
def db_session() -> Session:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 1, 16, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def alice() -> CurrentUser:
    return CurrentUser(id="user-alice", email="alice@example.com")


@pytest.fixture
def bob() -> CurrentUser:
    return CurrentUser(id="user-bob", email="bob@example.com")


@pytest.fixture
def admin() -> CurrentUser:
    return CurrentUser(id="user-admin", email="admin@example.com", is_admin=True)
