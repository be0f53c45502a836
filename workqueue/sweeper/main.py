"""
Periodic cleanup of terminal jobs.

The claim endpoint already sweeps opportunistically. This process runs the
same sweep on a fixed interval, for deployments that turn cleanup_on_claim
off or want retention enforced while no worker is polling.
"""

import asyncio
import logging
import signal
from datetime import timedelta

from workqueue.config import get_settings
from workqueue.core.service import QueueService
from workqueue.db.connection import Database
from workqueue.observability.logging import setup_logging
from workqueue.observability.tracing import setup_tracing

logger = logging.getLogger(__name__)


class Sweeper:
    """
    Deletes terminal jobs older than the retention period on a timer.

    Only COMPLETED and FAILED rows are touched, so it runs safely next to
    any number of workers.
    """

    def __init__(
        self,
        service: QueueService,
        interval_seconds: int | None = None,
        retention: timedelta | None = None,
    ):
        """
        Initialize the sweeper.

        Args:
            service: Queue service to sweep through.
            interval_seconds: Seconds between sweeps.
            retention: How long terminal jobs are kept.
        """
        self.service = service
        self.interval = interval_seconds or service.settings.sweeper_interval_seconds
        self.retention = retention or service.settings.retention
        self._stopped = asyncio.Event()

    async def start(self) -> None:
        """Start the sweep loop."""
        logger.info(f"Sweeper starting with interval {self.interval}s")
        self._stopped.clear()

        while not self._stopped.is_set():
            try:
                deleted = await self.run_once()

                if deleted > 0:
                    logger.info(f"Deleted {deleted} aged terminal jobs")

            except Exception as e:
                logger.exception(f"Error in sweeper loop: {e}")

            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

        logger.info("Sweeper stopped")

    async def stop(self) -> None:
        """Stop the sweeper."""
        logger.info("Sweeper stopping")
        self._stopped.set()

    async def run_once(self) -> int:
        """
        Run one sweep (for testing or cron-style execution).

        Returns:
            Number of jobs deleted.
        """
        return await self.service.sweep(self.retention)


async def run_async() -> None:
    """Run the sweeper asynchronously."""
    settings = get_settings()
    setup_logging(settings, process="sweeper")
    setup_tracing(settings)

    database = Database.from_settings(settings)
    await database.create_schema()

    sweeper = Sweeper(QueueService(database, settings))

    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: asyncio.create_task(sweeper.stop())
        )

    try:
        await sweeper.start()
    finally:
        await database.close()


def run() -> None:
    """Run the sweeper."""
    asyncio.run(run_async())


if __name__ == "__main__":
    run()
