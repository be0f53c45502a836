"""
Worker process for executing jobs.

The worker polls the queue, runs the handler registered for each claimed
job's type, and reports completion or failure.
"""

import asyncio
import logging
import os
import signal
import time
from datetime import timedelta

from workqueue.config import get_settings
from workqueue.constants import SPAN_EXECUTE_JOB, UNKNOWN_ERROR
from workqueue.core.service import QueueService
from workqueue.db.connection import Database
from workqueue.observability.logging import job_log_context, setup_logging
from workqueue.observability.tracing import get_tracer, setup_tracing
from workqueue.types.job import ClaimedJob, JobContext
from workqueue.worker.handlers import execute_job

logger = logging.getLogger(__name__)


class Worker:
    """
    Job worker that polls for and executes jobs one at a time.

    Features:
    - Atomic claims through the queue service
    - Graceful shutdown on SIGTERM/SIGINT (the current job finishes first)
    - Handler failures and exceptions reported as job failures
    """

    def __init__(
        self,
        service: QueueService,
        worker_id: str | None = None,
        poll_interval: float | None = None,
        timeout: timedelta | None = None,
    ):
        """
        Initialize the worker.

        Args:
            service: Queue service to claim from and report to.
            worker_id: Worker identifier for logs. Defaults to hostname + PID.
            poll_interval: Seconds between polls when the queue is empty.
            timeout: Claim timeout. Defaults to the configured one.
        """
        self.service = service
        self.worker_id = worker_id or f"{os.uname().nodename}-{os.getpid()}"
        self.poll_interval = (
            poll_interval
            if poll_interval is not None
            else service.settings.worker_poll_interval_seconds
        )
        self.timeout = timeout or service.settings.job_timeout

        self._running = False

    async def start(self) -> None:
        """Start the polling loop."""
        logger.info("Worker starting", extra={"worker_id": self.worker_id})
        self._running = True

        while self._running:
            try:
                processed = await self.run_once()
                if not processed:
                    await asyncio.sleep(self.poll_interval)

            except Exception as e:
                logger.exception(
                    f"Error in worker loop: {e}",
                    extra={"worker_id": self.worker_id}
                )
                await asyncio.sleep(self.poll_interval)

        logger.info("Worker stopped", extra={"worker_id": self.worker_id})

    async def stop(self) -> None:
        """Stop the worker after the current job."""
        logger.info("Worker stopping", extra={"worker_id": self.worker_id})
        self._running = False

    async def run_once(self) -> bool:
        """
        Claim and execute at most one job.

        Returns:
            True if a job was claimed.
        """
        job = await self.service.claim(self.timeout)
        if job is None:
            return False

        with job_log_context(str(job.id), worker_id=self.worker_id):
            await self._execute_job(job)
        return True

    async def _execute_job(self, job: ClaimedJob) -> None:
        """
        Execute a claimed job and report the outcome.

        Args:
            job: The claimed job.
        """
        start_time = time.perf_counter()
        context = JobContext.from_claim(job)

        logger.info(
            "Executing job",
            extra={"job_type": job.type, "retry_count": job.retry_count}
        )

        with get_tracer().start_as_current_span(SPAN_EXECUTE_JOB) as span:
            span.set_attribute("job_id", str(job.id))
            span.set_attribute("job_type", job.type)
            span.set_attribute("retry_count", job.retry_count)

            result = await execute_job(context)

        duration = time.perf_counter() - start_time

        if result.success:
            reported = await self.service.complete(job.id, result.output)
            status = "completed"
        else:
            reported = await self.service.fail(job.id, result.error or UNKNOWN_ERROR)
            status = "failed"

        self.service.metrics.record_job_duration(job.type, status, duration)

        if reported:
            logger.info(
                f"Job {status}",
                extra={"duration": f"{duration:.2f}s"}
            )
        else:
            logger.warning(
                "Job was no longer active when reporting, likely timed out",
                extra={"outcome": status}
            )


async def run_async() -> None:
    """Run the worker asynchronously."""
    settings = get_settings()
    setup_logging(settings, process="worker")
    setup_tracing(settings)

    database = Database.from_settings(settings)
    await database.create_schema()

    worker = Worker(QueueService(database, settings))

    # Handle shutdown signals
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: asyncio.create_task(worker.stop())
        )

    try:
        await worker.start()
    finally:
        await database.close()


def run() -> None:
    """Run the worker."""
    asyncio.run(run_async())


if __name__ == "__main__":
    run()
