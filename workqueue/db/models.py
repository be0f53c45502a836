"""
SQLAlchemy database models.
Defines the Job table.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from workqueue.constants import MAX_CLAIMS, MAX_TYPE_LENGTH, TERMINAL_STATUSES, JobStatus
from workqueue.utils import utcnow


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Job(Base):
    """
    Job model representing a unit of work in the queue.

    This is the authoritative source of truth for job state.
    All job lifecycle transitions are managed through this table.

    Key constraints:
    - status = active exactly when started_at is set and retry_count >= 1
    - completed_at is set once a job reaches a terminal status
    - retry_count counts claims and never exceeds MAX_CLAIMS
    """

    __tablename__ = "jobs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    # Producer supplied
    type: Mapped[str] = mapped_column(
        String(MAX_TYPE_LENGTH),
        nullable=False,
    )
    data: Mapped[Any] = mapped_column(
        JSON,
        nullable=True,
    )

    status: Mapped[JobStatus] = mapped_column(
        Enum(
            JobStatus,
            name="job_status",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=JobStatus.WAITING,
    )

    # Outcome
    result: Mapped[Any] = mapped_column(
        JSON(none_as_null=True),
        nullable=True,
    )
    error: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    # Claim tracking
    retry_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    # Timestamps (naive UTC)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
    )
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime,
        nullable=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime,
        nullable=True,
    )

    __table_args__ = (
        # FIFO polling
        Index("ix_jobs_status_created", "status", "created_at"),
        # Timeout scans only look at active rows
        Index(
            "ix_jobs_started",
            "started_at",
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        # Cleanup scans
        Index("ix_jobs_status_completed", "status", "completed_at"),
    )

    @property
    def is_terminal(self) -> bool:
        """Check if the job has reached a terminal status."""
        return self.status in TERMINAL_STATUSES

    @property
    def can_be_reclaimed(self) -> bool:
        """Check if a timeout on the current claim would send the job back to waiting."""
        return self.retry_count < MAX_CLAIMS

    def __repr__(self) -> str:
        return (
            f"Job(id={self.id}, type={self.type}, "
            f"status={self.status}, retry_count={self.retry_count})"
        )
