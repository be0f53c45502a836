"""
Pytest configuration and shared fixtures.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from prometheus_client import CollectorRegistry
from sqlalchemy.ext.asyncio import AsyncSession

from workqueue.api.main import create_app
from workqueue.config import Settings
from workqueue.core.service import QueueService
from workqueue.db.connection import Database
from workqueue.observability.metrics import MetricsCollector

TIMEOUT = timedelta(minutes=30)
RETENTION = timedelta(days=30)


class FakeClock:
    """
    Controllable naive-UTC clock.

    Every reading advances by one microsecond so successive inserts get
    distinct created_at values.
    """

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        self.now += timedelta(microseconds=1)
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Create a controllable clock."""
    return FakeClock()


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """A fresh SQLite database file per test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'queue.db'}"


@pytest.fixture
def test_settings(database_url: str) -> Settings:
    """Create test settings."""
    return Settings(
        _env_file=None,
        database_url=database_url,
        job_timeout_minutes=30,
        cleanup_after_days=30,
        max_payload_bytes=1024,
        log_level="DEBUG",
        log_format="console",
        worker_poll_interval_seconds=0.01,
    )


@pytest.fixture
def metrics() -> MetricsCollector:
    """Metrics collector on a private registry."""
    return MetricsCollector(CollectorRegistry())


@pytest_asyncio.fixture
async def database(database_url: str) -> AsyncGenerator[Database]:
    """Create a database with the schema in place."""
    db = Database(database_url)
    await db.create_schema()

    yield db

    await db.close()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession]:
    """Create a database session for tests."""
    async with database.session() as session:
        yield session


@pytest.fixture
def service(
    database: Database,
    test_settings: Settings,
    clock: FakeClock,
    metrics: MetricsCollector,
) -> QueueService:
    """Queue service over the test database and clock."""
    return QueueService(database, test_settings, clock=clock, metrics=metrics)


@pytest.fixture
def app(
    test_settings: Settings,
    service: QueueService,
    metrics: MetricsCollector,
) -> FastAPI:
    """Create a FastAPI app bound to the test service."""
    return create_app(test_settings, service=service, metrics=metrics)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create an async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
