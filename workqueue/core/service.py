"""
Queue service facade.

Wires the claim engine, completion handler and cleanup sweeper over one
database handle, and adds the submission and inspection operations used by
the HTTP layer, the dashboard and the in-process worker.
"""

import logging
from datetime import timedelta
from typing import Any
from uuid import UUID

from workqueue.config import Settings
from workqueue.constants import SPAN_SUBMIT_JOB
from workqueue.core.claim import ClaimEngine
from workqueue.core.cleanup import CleanupSweeper
from workqueue.core.completion import CompletionHandler
from workqueue.db.connection import Database
from workqueue.db.repository import JobRepository
from workqueue.observability.metrics import MetricsCollector, get_metrics
from workqueue.observability.tracing import get_tracer
from workqueue.types.job import ClaimedJob, JobSummary
from workqueue.utils import Clock, utcnow

logger = logging.getLogger(__name__)


class QueueService:
    """
    Entry point for every queue operation.

    Each method runs in its own transaction.
    """

    def __init__(
        self,
        database: Database,
        settings: Settings,
        clock: Clock = utcnow,
        metrics: MetricsCollector | None = None,
    ):
        self.database = database
        self.settings = settings
        self._clock = clock
        self.metrics = metrics or get_metrics()

        self.claim_engine = ClaimEngine(database, clock, self.metrics)
        self.completion = CompletionHandler(database, clock, self.metrics)
        self.sweeper = CleanupSweeper(database, clock, self.metrics)

    async def submit(self, job_type: str, data: Any) -> UUID:
        """
        Insert a validated job.

        Args:
            job_type: Type label, already validated.
            data: Payload, already validated.

        Returns:
            The new job id. The job starts out waiting.
        """
        with get_tracer().start_as_current_span(SPAN_SUBMIT_JOB) as span:
            async with self.database.session() as session:
                job_id = await JobRepository(session, self._clock).insert(job_type, data)
            span.set_attribute("job_id", str(job_id))

        self.metrics.record_job_submitted(job_type)
        return job_id

    async def claim(self, timeout: timedelta | None = None) -> ClaimedJob | None:
        """Claim the next job using the configured timeout unless one is given."""
        if timeout is None:
            timeout = self.settings.job_timeout
        return await self.claim_engine.claim_next(timeout)

    async def complete(self, job_id: UUID | str, result: Any = None) -> bool:
        return await self.completion.complete(job_id, result)

    async def fail(self, job_id: UUID | str, error: str) -> bool:
        return await self.completion.fail(job_id, error)

    async def sweep(self, retention: timedelta | None = None) -> int:
        """Delete aged terminal jobs using the configured retention unless one is given."""
        if retention is None:
            retention = self.settings.retention
        return await self.sweeper.sweep(retention)

    async def counts_by_status(self) -> dict[str, int]:
        async with self.database.session() as session:
            counts = await JobRepository(session, self._clock).counts_by_status()
        self.metrics.update_queue_depth(counts)
        return counts

    async def recent_jobs(self, limit: int | None = None) -> list[JobSummary]:
        """Most recently created jobs, newest first."""
        async with self.database.session() as session:
            jobs = await JobRepository(session, self._clock).recent_jobs(
                self.settings.recent_jobs_limit if limit is None else limit
            )
            return [
                JobSummary(
                    id=job.id,
                    type=job.type,
                    status=job.status,
                    created_at=job.created_at,
                )
                for job in jobs
            ]
