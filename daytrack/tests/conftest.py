"""
Centralized Test Configuration.

Every test gets its own databases: an in-memory SQLite driver store and a
temporary SQLite file for the tracker.
"""

import time
from datetime import date, datetime

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from daytrack.app.main import app
from daytrack.app.db.session import (
    DriverBase, get_driver_db, get_optional_driver_db, get_tracker_db, init_tracker_db
)
from daytrack.app.core.redis_client import get_redis
from daytrack.app.models.driver import Driver, GPSSample, Job, JobHistory

DRIVER_TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

WORK_DAY = date(2024, 3, 5)


def at(hour: int, minute: int, second: int = 0, day: date = WORK_DAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, second)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self.get_calls = 0
        self._closed = False

    async def ping(self):
        return not self._closed

    async def get(self, key):
        self.get_calls += 1
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def flushdb(self):
        self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
def local_timezone(monkeypatch):
    """Switch the process-local timezone (e.g. local_timezone("Asia/Tokyo"))."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")

    def apply(name: str) -> None:
        monkeypatch.setenv("TZ", name)
        time.tzset()

    yield apply
    monkeypatch.undo()
    time.tzset()


@pytest.fixture
async def driver_engine():
    engine = create_async_engine(
        DRIVER_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(DriverBase.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def tracker_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'data' / 'baby-tracker.db'}")
    await init_tracker_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def driver_session_factory(driver_engine):
    return async_sessionmaker(driver_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def tracker_session_factory(tracker_engine):
    return async_sessionmaker(tracker_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def driver_session(driver_session_factory):
    async with driver_session_factory() as session:
        yield session


@pytest.fixture
async def tracker_session(tracker_session_factory):
    async with tracker_session_factory() as session:
        yield session


@pytest.fixture
def apply_overrides(driver_session_factory, tracker_session_factory, mock_redis):
    """Point every database and Redis dependency at the per-test stores."""

    async def override_driver_db():
        async with driver_session_factory() as session:
            yield session

    async def override_tracker_db():
        async with tracker_session_factory() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_driver_db] = override_driver_db
    app.dependency_overrides[get_optional_driver_db] = override_driver_db
    app.dependency_overrides[get_tracker_db] = override_tracker_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield
    app.dependency_overrides = {}


@pytest.fixture
async def client(apply_overrides):
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def driver_data(driver_session):
    """
    Two drivers; driver 42 has a short round on WORK_DAY and one sample the
    day before.
    """
    driver_session.add_all([
        Driver(driver_id=42, display_name="Zoe Rider"),
        Driver(driver_id=7, display_name="Ben Courier"),
    ])

    speeds = [0, 0, 0, 0, 20, 30, 25, 0, 0, 10]
    driver_session.add_all([
        GPSSample(
            driver_id=42,
            lat=51.50 + i * 0.001,
            lng=-0.12,
            datetime=at(9, i),
            speed=speed,
        )
        for i, speed in enumerate(speeds)
    ])
    driver_session.add_all([
        GPSSample(driver_id=42, lat=51.49, lng=-0.11, datetime=at(10, 0, day=date(2024, 3, 4)), speed=12),
        # Midnight belongs to the next day
        GPSSample(driver_id=42, lat=51.49, lng=-0.11, datetime=datetime(2024, 3, 6, 0, 0, 0), speed=0),
    ])

    driver_session.add_all([
        JobHistory(job_id=1, new_driver_id=42, job_datetime=at(9, 2), latitude=51.502, longitude=-0.12, status="in transit"),
        JobHistory(job_id=2, new_driver_id=42, job_datetime=at(9, 8), latitude=51.508, longitude=-0.12, status="order delivered"),
        JobHistory(job_id=3, new_driver_id=42, job_datetime=at(9, 5), latitude=51.505, longitude=-0.12, status="assigned"),
        JobHistory(job_id=4, new_driver_id=42, job_datetime=at(9, 6), latitude=None, longitude=None, status="in transit"),
        JobHistory(job_id=5, new_driver_id=7, job_datetime=at(9, 3), latitude=51.6, longitude=-0.2, status="in transit"),
    ])
    driver_session.add(Job(
        job_id=1,
        master_account_name="Acme Ltd",
        pickup_location_name="Depot",
        service_name="Same Day",
    ))
    await driver_session.commit()
    return driver_session
