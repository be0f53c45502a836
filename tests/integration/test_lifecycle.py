"""
Integration tests for the job lifecycle: claim, timeout recovery,
completion, and cleanup.
"""

import asyncio
from datetime import timedelta
from uuid import uuid4

from workqueue.constants import TIMED_OUT_AFTER_RETRY_ERROR, JobStatus
from workqueue.core.claim import ClaimEngine
from workqueue.core.cleanup import CleanupSweeper
from workqueue.core.completion import CompletionHandler
from workqueue.core.service import QueueService
from workqueue.db.connection import Database
from workqueue.db.repository import JobRepository

TIMEOUT = timedelta(minutes=30)
RETENTION = timedelta(days=30)


async def _get(database: Database, job_id):
    async with database.session() as session:
        return await JobRepository(session).get_job(job_id)


class TestClaimEngine:
    """Tests for ClaimEngine.claim_next."""

    async def test_claim_empty_queue(self, service: QueueService):
        """Test claiming from an empty queue returns None."""
        assert await service.claim_engine.claim_next(TIMEOUT) is None

    async def test_round_trip(self, service: QueueService):
        """Test type and data come back exactly as submitted."""
        data = {"text": "héllo", "items": [1, 2.5, None, True], "nested": {"k": "v"}}
        job_id = await service.submit("render", data)

        job = await service.claim_engine.claim_next(TIMEOUT)

        assert job is not None
        assert job.id == job_id
        assert job.type == "render"
        assert job.data == data
        assert job.retry_count == 1

    async def test_round_trip_scalar_payload(self, service: QueueService):
        """Test non-object payloads survive the round trip."""
        await service.submit("scalar", "just a string")

        job = await service.claim_engine.claim_next(TIMEOUT)

        assert job.data == "just a string"

    async def test_claim_marks_active(self, service: QueueService, database: Database):
        """Test a claimed job is active with a start time."""
        job_id = await service.submit("a", 1)

        await service.claim_engine.claim_next(TIMEOUT)

        job = await _get(database, job_id)
        assert job.status == JobStatus.ACTIVE
        assert job.started_at is not None
        assert job.retry_count == 1

    async def test_fifo_order(self, service: QueueService):
        """Test jobs are claimed oldest first."""
        ids = [await service.submit("t", i) for i in range(3)]

        claimed = [
            (await service.claim_engine.claim_next(TIMEOUT)).id for _ in range(3)
        ]

        assert claimed == ids
        assert await service.claim_engine.claim_next(TIMEOUT) is None

    async def test_active_job_not_claimed_twice(self, service: QueueService):
        """Test an active job inside its timeout is not handed out again."""
        await service.submit("a", 1)

        first = await service.claim_engine.claim_next(TIMEOUT)
        second = await service.claim_engine.claim_next(TIMEOUT)

        assert first is not None
        assert second is None

    async def test_concurrent_claims_never_share_a_job(self, service: QueueService):
        """Test concurrent claimers each get a distinct job."""
        for i in range(5):
            await service.submit("t", i)

        results = await asyncio.gather(
            *(service.claim_engine.claim_next(TIMEOUT) for _ in range(10))
        )

        claimed = [job.id for job in results if job is not None]
        assert len(claimed) == 5
        assert len(set(claimed)) == 5
        assert results.count(None) == 5

    async def test_separate_handles_never_share_a_job(
        self,
        service: QueueService,
        database_url: str,
        clock,
        metrics,
    ):
        """Test claimers on separate engines over one file each get a distinct job."""
        for i in range(40):
            await service.submit("t", i)

        handles = [Database(database_url) for _ in range(4)]
        try:
            engines = [ClaimEngine(handle, clock, metrics) for handle in handles]
            results = await asyncio.gather(
                *(engines[i % len(engines)].claim_next(TIMEOUT) for i in range(80))
            )
        finally:
            for handle in handles:
                await handle.close()

        claimed = [job.id for job in results if job is not None]
        assert len(claimed) == 40
        assert len(set(claimed)) == 40

    async def test_timeout_then_reclaim(self, service: QueueService, clock):
        """Test a timed-out first claim is reverted and immediately reclaimed."""
        job_id = await service.submit("a", {"x": 1})
        await service.claim_engine.claim_next(TIMEOUT)
        clock.advance(minutes=31)

        job = await service.claim_engine.claim_next(TIMEOUT)

        assert job is not None
        assert job.id == job_id
        assert job.retry_count == 2
        assert job.is_retry

    async def test_timeout_scenario(
        self,
        service: QueueService,
        database: Database,
        clock,
    ):
        """Test A times out twice and fails while B is claimed."""
        a = await service.submit("a", "A")

        first = await service.claim_engine.claim_next(TIMEOUT)
        assert first.id == a
        assert first.retry_count == 1

        clock.advance(minutes=31)
        second = await service.claim_engine.claim_next(TIMEOUT)
        assert second.id == a
        assert second.retry_count == 2

        b = await service.submit("b", "B")
        clock.advance(minutes=31)
        third = await service.claim_engine.claim_next(TIMEOUT)

        assert third.id == b
        job_a = await _get(database, a)
        assert job_a.status == JobStatus.FAILED
        assert job_a.error == TIMED_OUT_AFTER_RETRY_ERROR
        assert job_a.completed_at is not None
        assert job_a.retry_count == 2

    async def test_failed_after_retry_is_not_requeued(self, service: QueueService, clock):
        """Test a job failed by timeout is never claimed again."""
        await service.submit("a", 1)
        await service.claim_engine.claim_next(TIMEOUT)
        clock.advance(minutes=31)
        await service.claim_engine.claim_next(TIMEOUT)
        clock.advance(minutes=31)

        assert await service.claim_engine.claim_next(TIMEOUT) is None
        counts = await service.counts_by_status()
        assert counts["failed"] == 1
        assert counts["waiting"] == 0

    async def test_recovered_job_keeps_fifo_position(
        self,
        service: QueueService,
        clock,
    ):
        """Test a recovered job keeps its creation time in FIFO order."""
        a = await service.submit("a", 1)
        await service.claim_engine.claim_next(TIMEOUT)
        b = await service.submit("b", 2)
        clock.advance(minutes=31)

        job = await service.claim_engine.claim_next(TIMEOUT)

        # A was created first, so it wins once it is waiting again
        assert job.id == a
        assert (await service.claim_engine.claim_next(TIMEOUT)).id == b

    async def test_claim_records_metrics(self, service: QueueService, metrics, clock):
        """Test claims and timeouts are counted."""
        await service.submit("a", 1)
        await service.claim_engine.claim_next(TIMEOUT)
        clock.advance(minutes=31)
        await service.claim_engine.claim_next(TIMEOUT)

        assert metrics.jobs_claimed.labels(attempt="1")._value.get() == 1
        assert metrics.jobs_claimed.labels(attempt="2")._value.get() == 1
        assert metrics.timeouts_recovered._value.get() == 1


class TestCompletionHandler:
    """Tests for CompletionHandler."""

    async def test_complete_active_job(self, service: QueueService, database: Database):
        """Test completing an active job."""
        job_id = await service.submit("a", 1)
        await service.claim()

        assert await service.completion.complete(job_id, {"answer": 42}) is True

        job = await _get(database, job_id)
        assert job.status == JobStatus.COMPLETED
        assert job.result == {"answer": 42}
        assert job.completed_at is not None

    async def test_fail_active_job(self, service: QueueService, database: Database):
        """Test failing an active job."""
        job_id = await service.submit("a", 1)
        await service.claim()

        assert await service.completion.fail(job_id, "boom") is True

        job = await _get(database, job_id)
        assert job.status == JobStatus.FAILED
        assert job.error == "boom"

    async def test_complete_waiting_job_is_rejected(
        self,
        service: QueueService,
        database: Database,
    ):
        """Test a job that was never claimed cannot be completed."""
        job_id = await service.submit("a", 1)

        assert await service.completion.complete(job_id, "x") is False

        job = await _get(database, job_id)
        assert job.status == JobStatus.WAITING
        assert job.result is None

    async def test_second_completion_loses(self, service: QueueService, database: Database):
        """Test racing completion calls: only the first applies."""
        job_id = await service.submit("a", 1)
        await service.claim()

        assert await service.completion.complete(job_id, "first") is True
        assert await service.completion.fail(job_id, "second") is False

        job = await _get(database, job_id)
        assert job.status == JobStatus.COMPLETED
        assert job.result == "first"
        assert job.error is None

    async def test_completion_after_timeout_failure(self, service: QueueService, clock):
        """Test a worker reporting after its job timed out on retry is rejected."""
        job_id = await service.submit("a", 1)
        await service.claim()
        clock.advance(minutes=31)
        await service.claim()
        clock.advance(minutes=31)
        await service.claim()

        assert await service.completion.complete(job_id, "too late") is False

    async def test_fail_unknown_id(self, service: QueueService):
        """Test failing an unknown id returns False without raising."""
        assert await service.completion.fail(uuid4(), "x") is False
        assert await service.completion.fail(str(uuid4()), "x") is False

    async def test_malformed_id_is_not_found(self, service: QueueService):
        """Test an id that is not a UUID is treated as unknown."""
        assert await service.completion.complete("not-a-uuid", None) is False
        assert await service.completion.fail("not-a-uuid", "x") is False


class TestCleanupSweeper:
    """Tests for CleanupSweeper."""

    async def test_sweep_deletes_only_aged_terminal_jobs(
        self,
        service: QueueService,
        database: Database,
        clock,
    ):
        """Test retention applies to terminal jobs only."""
        done = await service.submit("done", 1)
        await service.claim()
        await service.complete(done, None)

        failed = await service.submit("failed", 1)
        await service.claim()
        await service.fail(failed, "x")

        waiting = await service.submit("waiting", 1)
        clock.advance(days=31)

        deleted = await service.sweeper.sweep(RETENTION)

        assert deleted == 2
        assert await _get(database, done) is None
        assert await _get(database, failed) is None
        assert await _get(database, waiting) is not None

    async def test_sweep_keeps_recent_terminal_jobs(
        self,
        service: QueueService,
        database: Database,
        clock,
    ):
        """Test terminal jobs inside the retention period are kept."""
        job_id = await service.submit("done", 1)
        await service.claim()
        await service.complete(job_id, None)
        clock.advance(days=29)

        assert await service.sweeper.sweep(RETENTION) == 0
        assert await _get(database, job_id) is not None

    async def test_sweep_never_deletes_old_active_jobs(
        self,
        service: QueueService,
        database: Database,
        clock,
    ):
        """Test age alone never deletes a non-terminal job."""
        active = await service.submit("active", 1)
        await service.claim()
        clock.advance(days=365)

        assert await service.sweeper.sweep(RETENTION) == 0
        assert (await _get(database, active)).status == JobStatus.ACTIVE

    async def test_components_share_one_database(self, database: Database, clock, metrics):
        """Test the components work when wired individually."""
        engine = ClaimEngine(database, clock, metrics)
        handler = CompletionHandler(database, clock, metrics)
        sweeper = CleanupSweeper(database, clock, metrics)

        async with database.session() as session:
            job_id = await JobRepository(session, clock).insert("solo", [1, 2])

        job = await engine.claim_next(TIMEOUT)
        assert job.id == job_id
        assert await handler.complete(job_id, "ok") is True

        clock.advance(days=31)
        assert await sweeper.sweep(RETENTION) == 1
        assert metrics.jobs_cleaned._value.get() == 1


class TestQueueServiceInspection:
    """Tests for the dashboard-facing service reads."""

    async def test_recent_jobs_default_limit(self, service: QueueService):
        """Test the configured limit applies when none is given."""
        for i in range(3):
            await service.submit("t", i)

        assert len(await service.recent_jobs()) == 3
        assert len(await service.recent_jobs(2)) == 2

    async def test_recent_jobs_zero_limit(self, service: QueueService):
        """Test an explicit zero limit returns nothing."""
        await service.submit("t", 1)

        assert await service.recent_jobs(0) == []
