"""
Deletion of terminal jobs past their retention period.
"""

from datetime import timedelta

from workqueue.constants import SPAN_SWEEP
from workqueue.db.connection import Database
from workqueue.db.repository import JobRepository
from workqueue.observability.metrics import MetricsCollector, get_metrics
from workqueue.observability.tracing import get_tracer
from workqueue.utils import Clock, utcnow


class CleanupSweeper:
    """Deletes COMPLETED and FAILED jobs whose completed_at is older than the retention."""

    def __init__(
        self,
        database: Database,
        clock: Clock = utcnow,
        metrics: MetricsCollector | None = None,
    ):
        self._database = database
        self._clock = clock
        self._metrics = metrics or get_metrics()

    async def sweep(self, retention: timedelta) -> int:
        """
        Delete aged terminal jobs.

        Args:
            retention: How long terminal jobs are kept.

        Returns:
            Number of deleted jobs.
        """
        with get_tracer().start_as_current_span(SPAN_SWEEP):
            async with self._database.session() as session:
                repo = JobRepository(session, self._clock)
                deleted = await repo.delete_aged_terminal(self._clock() - retention)

        self._metrics.record_jobs_cleaned(deleted)
        return deleted
