"""
API request and response type definitions.
"""

import json
from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from workqueue.constants import MAX_TYPE_LENGTH, JobStatus


def payload_size(data: Any) -> int:
    """Size in bytes of the compact UTF-8 JSON encoding of data."""
    return len(
        json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    )


class SubmitJobRequest(BaseModel):
    """
    Request body for submitting a job.

    The payload limit is read from the validation context key
    `max_payload_bytes`; without it the size is not checked.
    """

    type: str = Field(..., min_length=1, max_length=MAX_TYPE_LENGTH, description="Job type label")
    data: Any = Field(..., description="Job payload, any JSON value")

    @field_validator("data")
    @classmethod
    def check_payload_size(cls, value: Any, info: ValidationInfo) -> Any:
        max_bytes = (info.context or {}).get("max_payload_bytes")
        if max_bytes is None:
            return value

        try:
            size = payload_size(value)
        except (TypeError, ValueError):
            raise PydanticCustomError(
                "data_not_serializable", "data must be JSON serializable"
            ) from None

        if size > max_bytes:
            raise PydanticCustomError(
                "data_too_large",
                "data exceeds {max_bytes} bytes",
                {"max_bytes": max_bytes},
            )
        return value


class CompleteJobRequest(BaseModel):
    """Request body for completing or failing a job."""

    status: Literal["completed", "failed"]
    result: Any = None
    error: str | None = None

    @field_validator("error", mode="before")
    @classmethod
    def drop_non_string_error(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None


class SubmitJobResponse(BaseModel):
    """Response body after submitting a job."""

    id: UUID
    status: JobStatus = JobStatus.WAITING


class ClaimedJobResponse(BaseModel):
    """Job handed to a polling worker."""

    id: UUID
    type: str
    data: Any


class CompleteJobResponse(BaseModel):
    """Response body after completing or failing a job."""

    success: bool = True


class JobSummaryResponse(BaseModel):
    """Row of the dashboard job listing."""

    id: UUID
    type: str
    status: JobStatus
    created_at: datetime


class DashboardResponse(BaseModel):
    """Counts by status plus the most recent jobs."""

    counts: dict[str, int]
    jobs: list[JobSummaryResponse]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
