"""
Database connection management.
Handles async SQLAlchemy engine and session creation.

A `Database` is an explicit store handle: each process creates one at startup
and passes it to the components that need it.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from workqueue.config import Settings
from workqueue.db.models import Base

logger = logging.getLogger(__name__)

# Seconds SQLite waits on a locked database before raising
SQLITE_BUSY_TIMEOUT = 30


class Database:
    """
    Owns the async engine and session factory for one database.

    SQLite connections start every transaction with BEGIN IMMEDIATE so that a
    claim transaction holds the write lock from its first read. PostgreSQL
    relies on row locks taken by the repository.
    """

    def __init__(
        self,
        database_url: str,
        *,
        pool_size: int | None = None,
        max_overflow: int | None = None,
        echo: bool = False,
    ):
        """
        Create the engine and session factory.

        Args:
            database_url: SQLAlchemy async database URL.
            pool_size: Connection pool size (ignored for SQLite).
            max_overflow: Pool overflow (ignored for SQLite).
            echo: Log emitted SQL.
        """
        url = make_url(database_url)
        self.is_sqlite = url.get_backend_name() == "sqlite"

        engine_kwargs: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
        if self.is_sqlite:
            _ensure_sqlite_directory(url.database)
            engine_kwargs["connect_args"] = {"timeout": SQLITE_BUSY_TIMEOUT}
        else:
            if pool_size is not None:
                engine_kwargs["pool_size"] = pool_size
            if max_overflow is not None:
                engine_kwargs["max_overflow"] = max_overflow

        self._engine: AsyncEngine | None = create_async_engine(url, **engine_kwargs)
        if self.is_sqlite:
            _install_sqlite_transaction_hooks(self._engine)

        self._sessionmaker: async_sessionmaker[AsyncSession] | None = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(
            "Database handle created",
            extra={"backend": url.get_backend_name()},
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build a handle from application settings."""
        return cls(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            echo=settings.log_level.upper() == "DEBUG",
        )

    @property
    def engine(self) -> AsyncEngine:
        """The underlying engine."""
        if self._engine is None:
            raise RuntimeError("Database is closed.")
        return self._engine

    async def create_schema(self) -> None:
        """Create tables and indexes that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """
        Open a session wrapping exactly one transaction.

        Commits on normal exit, rolls back and re-raises on error.

        Yields:
            AsyncSession: An async database session.

        Raises:
            RuntimeError: If the database has been closed.
        """
        if self._sessionmaker is None:
            raise RuntimeError("Database is closed.")

        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """
        Dispose of the engine.
        Should be called on application shutdown.
        """
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            logger.info("Database connection closed")


def _ensure_sqlite_directory(database: str | None) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def _install_sqlite_transaction_hooks(engine: AsyncEngine) -> None:
    """Enable WAL and open every transaction with BEGIN IMMEDIATE."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")
