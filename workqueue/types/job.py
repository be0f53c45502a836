"""
Job-related type definitions for internal use.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from workqueue.constants import MAX_CLAIMS, JobStatus


@dataclass(frozen=True)
class ClaimedJob:
    """
    A job handed to a worker by a successful claim.
    """

    id: UUID
    type: str
    data: Any
    retry_count: int

    @property
    def is_retry(self) -> bool:
        """Check if this claim is the reclaim after a timeout."""
        return self.retry_count >= MAX_CLAIMS


@dataclass(frozen=True)
class JobSummary:
    """
    Read-only row for the dashboard listing.
    """

    id: UUID
    type: str
    status: JobStatus
    created_at: datetime


@dataclass
class JobContext:
    """
    Context passed to job handlers during execution.
    """

    job_id: UUID
    job_type: str
    data: Any
    retry_count: int

    @property
    def is_last_attempt(self) -> bool:
        """Check if a timeout now would fail the job instead of requeueing it."""
        return self.retry_count >= MAX_CLAIMS

    @classmethod
    def from_claim(cls, job: ClaimedJob) -> "JobContext":
        """Build a handler context from a claimed job."""
        return cls(
            job_id=job.id,
            job_type=job.type,
            data=job.data,
            retry_count=job.retry_count,
        )


class JobResult(BaseModel):
    """
    Result of job execution.
    Returned by job handlers after processing.
    """

    success: bool
    output: Any = None
    error: str | None = None
