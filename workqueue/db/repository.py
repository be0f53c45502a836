"""
Job repository for database operations.
Implements the core data access patterns for job management.
"""

import logging
from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from workqueue.constants import (
    MAX_CLAIMS,
    TERMINAL_STATUSES,
    TIMED_OUT_AFTER_RETRY_ERROR,
    JobStatus,
)
from workqueue.db.models import Job
from workqueue.utils import Clock, utcnow

logger = logging.getLogger(__name__)


class JobRepository:
    """
    Repository for job database operations.

    Every mutation carries a status precondition in its WHERE clause. An
    update whose precondition no longer holds affects zero rows and is
    reported as False/None, never raised.

    The repository does not commit; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession, clock: Clock = utcnow):
        """
        Initialize the repository with a database session.

        Args:
            session: The async database session.
            clock: Returns the current naive UTC time.
        """
        self._session = session
        self._clock = clock

    async def insert(self, job_type: str, data: Any) -> UUID:
        """
        Insert a new waiting job.

        Args:
            job_type: Producer-supplied type label.
            data: JSON-serializable payload.

        Returns:
            The generated job id.
        """
        job = Job(
            type=job_type,
            data=data,
            status=JobStatus.WAITING,
            retry_count=0,
            created_at=self._clock(),
        )
        self._session.add(job)
        await self._session.flush()

        logger.info(
            "Created new job",
            extra={"job_id": str(job.id), "job_type": job_type},
        )
        return job.id

    async def get_job(self, job_id: UUID) -> Job | None:
        """
        Get a job by ID.

        Args:
            job_id: The job UUID.

        Returns:
            The Job or None if not found.
        """
        stmt = select(Job).where(Job.id == job_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_oldest_waiting(self) -> Job | None:
        """
        Select the waiting job with the smallest created_at.

        The row is locked with FOR UPDATE SKIP LOCKED on dialects that
        support it, so concurrent claimers skip past it.

        Returns:
            The oldest waiting Job or None if the queue is empty.
        """
        stmt = (
            select(Job)
            .where(Job.status == JobStatus.WAITING)
            .order_by(Job.created_at.asc(), Job.id.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def recover_timed_out(self, cutoff: datetime) -> int:
        """
        Return timed-out first claims to the queue.

        Active jobs on their first claim whose started_at is older than
        cutoff go back to waiting with started_at cleared.

        Args:
            cutoff: Jobs started before this instant have timed out.

        Returns:
            Number of recovered jobs.
        """
        stmt = (
            update(Job)
            .where(
                and_(
                    Job.status == JobStatus.ACTIVE,
                    Job.retry_count < MAX_CLAIMS,
                    Job.started_at < cutoff,
                )
            )
            .values(
                status=JobStatus.WAITING,
                started_at=None,
            )
        )

        result = await self._session.execute(stmt)
        count = result.rowcount

        if count > 0:
            logger.info(f"Recovered {count} timed-out jobs")

        return count

    async def fail_timed_out_retries(self, cutoff: datetime) -> int:
        """
        Fail jobs that timed out on their final claim.

        Args:
            cutoff: Jobs started before this instant have timed out.

        Returns:
            Number of failed jobs.
        """
        now = self._clock()
        stmt = (
            update(Job)
            .where(
                and_(
                    Job.status == JobStatus.ACTIVE,
                    Job.retry_count >= MAX_CLAIMS,
                    Job.started_at < cutoff,
                )
            )
            .values(
                status=JobStatus.FAILED,
                error=TIMED_OUT_AFTER_RETRY_ERROR,
                completed_at=now,
            )
        )

        result = await self._session.execute(stmt)
        count = result.rowcount

        if count > 0:
            logger.warning(f"Failed {count} jobs that timed out after retry")

        return count

    async def promote(self, job_id: UUID) -> Job | None:
        """
        Transition a job from WAITING to ACTIVE.

        Args:
            job_id: The job UUID.

        Returns:
            The claimed Job, or None if the job is no longer waiting.
        """
        stmt = (
            update(Job)
            .where(
                and_(
                    Job.id == job_id,
                    Job.status == JobStatus.WAITING,
                )
            )
            .values(
                status=JobStatus.ACTIVE,
                started_at=self._clock(),
                retry_count=Job.retry_count + 1,
            )
            .returning(Job)
            .execution_options(synchronize_session="fetch")
        )

        result = await self._session.execute(stmt)
        job = result.scalar_one_or_none()

        if job:
            logger.info(
                "Claimed job",
                extra={"job_id": str(job_id), "retry_count": job.retry_count},
            )

        return job

    async def mark_completed(self, job_id: UUID, result: Any = None) -> bool:
        """
        Mark an active job as completed.

        Args:
            job_id: The job UUID.
            result: Optional JSON-serializable result.

        Returns:
            True if the job was active and is now completed.
        """
        stmt = (
            update(Job)
            .where(
                and_(
                    Job.id == job_id,
                    Job.status == JobStatus.ACTIVE,
                )
            )
            .values(
                status=JobStatus.COMPLETED,
                result=result,
                completed_at=self._clock(),
            )
        )

        outcome = await self._session.execute(stmt)
        updated = outcome.rowcount > 0

        if updated:
            logger.info("Job completed", extra={"job_id": str(job_id)})

        return updated

    async def mark_failed(self, job_id: UUID, error: str) -> bool:
        """
        Mark an active job as failed.

        Args:
            job_id: The job UUID.
            error: Error message.

        Returns:
            True if the job was active and is now failed.
        """
        stmt = (
            update(Job)
            .where(
                and_(
                    Job.id == job_id,
                    Job.status == JobStatus.ACTIVE,
                )
            )
            .values(
                status=JobStatus.FAILED,
                error=error,
                completed_at=self._clock(),
            )
        )

        outcome = await self._session.execute(stmt)
        updated = outcome.rowcount > 0

        if updated:
            logger.info(
                "Job failed",
                extra={"job_id": str(job_id), "error": error},
            )

        return updated

    async def counts_by_status(self) -> dict[str, int]:
        """
        Get job counts by status.

        Returns:
            Dictionary of status -> count, with every status present.
        """
        stmt = select(Job.status, func.count()).group_by(Job.status)
        result = await self._session.execute(stmt)

        counts = {status.value: 0 for status in JobStatus}
        for status, count in result.all():
            counts[JobStatus(status).value] = count
        return counts

    async def recent_jobs(self, limit: int = 100) -> Sequence[Job]:
        """
        Get the most recently created jobs, newest first.

        Args:
            limit: Maximum number of jobs to return.

        Returns:
            List of jobs.
        """
        stmt = select(Job).order_by(Job.created_at.desc()).limit(limit)
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def delete_aged_terminal(self, cutoff: datetime) -> int:
        """
        Delete terminal jobs that finished before cutoff.

        Args:
            cutoff: Terminal jobs completed before this instant are deleted.

        Returns:
            Number of deleted jobs.
        """
        stmt = delete(Job).where(
            and_(
                Job.status.in_(TERMINAL_STATUSES),
                Job.completed_at < cutoff,
            )
        )

        result = await self._session.execute(stmt)
        count = result.rowcount

        if count > 0:
            logger.info(f"Deleted {count} terminal jobs")

        return count
