"""
Terminal transitions for active jobs.
"""

import logging
from typing import Any
from uuid import UUID

from workqueue.constants import SPAN_COMPLETE_JOB, SPAN_FAIL_JOB, JobStatus
from workqueue.db.connection import Database
from workqueue.db.repository import JobRepository
from workqueue.observability.metrics import MetricsCollector, get_metrics
from workqueue.observability.tracing import get_tracer
from workqueue.utils import Clock, parse_job_id, utcnow

logger = logging.getLogger(__name__)


class CompletionHandler:
    """
    Moves an ACTIVE job to COMPLETED or FAILED.

    A False return means the id is unknown or the job is not active any more
    (already terminal, or recovered by a timeout sweep). Callers treat it as
    "not found", not as an error.
    """

    def __init__(
        self,
        database: Database,
        clock: Clock = utcnow,
        metrics: MetricsCollector | None = None,
    ):
        self._database = database
        self._clock = clock
        self._metrics = metrics or get_metrics()

    async def complete(self, job_id: UUID | str, result: Any = None) -> bool:
        """
        Mark an active job as completed and store its result.

        Args:
            job_id: The job id.
            result: JSON-serializable result.

        Returns:
            True if the job transitioned.
        """
        parsed = parse_job_id(job_id)
        if parsed is None:
            return False

        with get_tracer().start_as_current_span(SPAN_COMPLETE_JOB) as span:
            span.set_attribute("job_id", str(parsed))
            async with self._database.session() as session:
                updated = await JobRepository(session, self._clock).mark_completed(
                    parsed, result
                )

        if updated:
            self._metrics.record_job_finished(JobStatus.COMPLETED.value)
        else:
            logger.info(
                "Completion ignored, job not active",
                extra={"job_id": str(parsed)},
            )
        return updated

    async def fail(self, job_id: UUID | str, error: str) -> bool:
        """
        Mark an active job as failed and store the error.

        Args:
            job_id: The job id.
            error: Error message.

        Returns:
            True if the job transitioned.
        """
        parsed = parse_job_id(job_id)
        if parsed is None:
            return False

        with get_tracer().start_as_current_span(SPAN_FAIL_JOB) as span:
            span.set_attribute("job_id", str(parsed))
            async with self._database.session() as session:
                updated = await JobRepository(session, self._clock).mark_failed(
                    parsed, error
                )

        if updated:
            self._metrics.record_job_finished(JobStatus.FAILED.value)
        else:
            logger.info(
                "Failure report ignored, job not active",
                extra={"job_id": str(parsed)},
            )
        return updated
