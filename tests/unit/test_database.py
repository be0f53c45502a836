"""
Unit tests for the Database handle.
"""

from pathlib import Path

import pytest

from workqueue.db.connection import Database
from workqueue.db.repository import JobRepository


class TestDatabase:
    """Tests for Database."""

    async def test_creates_parent_directory(self, tmp_path: Path):
        """Test a file database in a missing directory can be opened."""
        path = tmp_path / "nested" / "queue.db"
        database = Database(f"sqlite+aiosqlite:///{path}")

        await database.create_schema()
        await database.close()

        assert path.exists()

    async def test_session_commits(self, database: Database):
        """Test a clean exit commits the transaction."""
        async with database.session() as session:
            job_id = await JobRepository(session).insert("a", 1)

        async with database.session() as session:
            assert await JobRepository(session).get_job(job_id) is not None

    async def test_session_rolls_back_on_error(self, database: Database):
        """Test an exception discards the transaction and propagates."""
        with pytest.raises(ValueError):
            async with database.session() as session:
                await JobRepository(session).insert("a", 1)
                raise ValueError("abort")

        async with database.session() as session:
            counts = await JobRepository(session).counts_by_status()
        assert counts["waiting"] == 0

    async def test_closed_database(self, database_url: str):
        """Test sessions cannot be opened after close."""
        database = Database(database_url)
        await database.close()
        await database.close()

        with pytest.raises(RuntimeError):
            async with database.session():
                pass
        with pytest.raises(RuntimeError):
            database.engine
