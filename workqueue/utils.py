"""
Small shared helpers.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from uuid import UUID

# Zero-argument callable returning the current time as naive UTC.
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_job_id(value: UUID | str) -> UUID | None:
    """Parse a job id from the wire; None if it cannot name any job."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None
