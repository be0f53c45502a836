"""
Unit tests for job handlers.
"""

from uuid import uuid4

import pytest

from workqueue.types.job import ClaimedJob, JobContext, JobResult
from workqueue.worker.handlers import (
    execute_job,
    get_handler,
    handle_echo,
    handle_fail,
    list_handlers,
    register_handler,
)


class TestJobHandlers:
    """Tests for job handlers."""

    @pytest.fixture
    def job_context(self) -> JobContext:
        """Create a test job context."""
        return JobContext(
            job_id=uuid4(),
            job_type="echo",
            data={"message": "test"},
            retry_count=1,
        )

    def test_list_handlers(self):
        """Test listing registered handlers."""
        handlers = list_handlers()

        assert "echo" in handlers
        assert "sleep" in handlers
        assert "fail" in handlers

    def test_get_handler_exists(self):
        """Test getting an existing handler."""
        assert get_handler("echo") == handle_echo

    def test_get_handler_not_exists(self):
        """Test getting a non-existent handler."""
        assert get_handler("nonexistent") is None

    async def test_echo_handler(self, job_context: JobContext):
        """Test the echo handler."""
        result = await handle_echo(job_context)

        assert result.success is True
        assert result.output == {"echo": {"message": "test"}}

    async def test_fail_handler(self, job_context: JobContext):
        """Test the failing handler uses the message from data."""
        job_context.data = {"message": "nope"}

        result = await handle_fail(job_context)

        assert result.success is False
        assert result.error == "nope"

    async def test_sleep_handler(self, job_context: JobContext):
        """Test the sleep handler reports its duration."""
        job_context.job_type = "sleep"
        job_context.data = {"duration_seconds": 0}

        result = await execute_job(job_context)

        assert result.success is True
        assert result.output == {"slept_for": 0}

    async def test_execute_job_with_invalid_type(self, job_context: JobContext):
        """Test execute_job with an unregistered job type."""
        job_context.job_type = "nonexistent_handler"

        result = await execute_job(job_context)

        assert result.success is False
        assert "No handler registered" in result.error

    async def test_execute_job_handler_exception(self, job_context: JobContext):
        """Test a raising handler becomes a failed result."""

        @register_handler("explodes")
        async def explodes(context: JobContext) -> JobResult:
            raise RuntimeError("kaboom")

        job_context.job_type = "explodes"

        result = await execute_job(job_context)

        assert result.success is False
        assert "kaboom" in result.error


class TestJobContext:
    """Tests for JobContext."""

    def test_from_claim(self):
        """Test building a context from a claimed job."""
        job = ClaimedJob(id=uuid4(), type="echo", data=[1], retry_count=2)

        context = JobContext.from_claim(job)

        assert context.job_id == job.id
        assert context.job_type == "echo"
        assert context.data == [1]
        assert context.is_last_attempt is True

    def test_first_attempt(self):
        """Test a first claim is not the last attempt."""
        context = JobContext(job_id=uuid4(), job_type="echo", data=None, retry_count=1)

        assert context.is_last_attempt is False
