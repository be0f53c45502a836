"""
Atomic claim of the next waiting job, with lazy timeout recovery.
"""

import logging
from datetime import timedelta

from workqueue.constants import CLAIM_RACE_RETRIES, SPAN_CLAIM_JOB
from workqueue.db.connection import Database
from workqueue.db.repository import JobRepository
from workqueue.observability.metrics import MetricsCollector, get_metrics
from workqueue.observability.tracing import get_tracer
from workqueue.types.job import ClaimedJob
from workqueue.utils import Clock, utcnow

logger = logging.getLogger(__name__)


class ClaimEngine:
    """
    Hands the oldest waiting job to a worker.

    Each call runs one transaction that:
    1. Returns timed-out first claims to WAITING
    2. Fails jobs that timed out on their second claim
    3. Selects the oldest WAITING job
    4. Promotes it to ACTIVE and bumps retry_count

    Timeouts are only detected here, so recovery depends on workers
    continuing to poll.
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

    async def claim_next(self, timeout: timedelta) -> ClaimedJob | None:
        """
        Claim the next job.

        Args:
            timeout: How long an active job may run before it is recovered.

        Returns:
            The claimed job, or None if nothing is waiting.
        """
        with get_tracer().start_as_current_span(SPAN_CLAIM_JOB) as span:
            async with self._database.session() as session:
                repo = JobRepository(session, self._clock)

                cutoff = self._clock() - timeout
                recovered = await repo.recover_timed_out(cutoff)
                failed = await repo.fail_timed_out_retries(cutoff)

                claimed: ClaimedJob | None = None
                for _ in range(CLAIM_RACE_RETRIES):
                    candidate = await repo.find_oldest_waiting()
                    if candidate is None:
                        break

                    job = await repo.promote(candidate.id)
                    if job is not None:
                        claimed = ClaimedJob(
                            id=job.id,
                            type=job.type,
                            data=job.data,
                            retry_count=job.retry_count,
                        )
                        break

                    # Another transaction promoted it first
                    logger.debug(
                        "Lost claim race",
                        extra={"job_id": str(candidate.id)},
                    )

            span.set_attribute("timeouts.recovered", recovered)
            span.set_attribute("timeouts.failed", failed)
            if claimed is not None:
                span.set_attribute("job_id", str(claimed.id))
                span.set_attribute("retry_count", claimed.retry_count)

        self._metrics.record_timeouts(recovered, failed)
        if claimed is not None:
            self._metrics.record_job_claimed(claimed.retry_count)

        return claimed
