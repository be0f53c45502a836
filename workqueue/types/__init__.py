"""
Type definitions for the work queue.
Contains input/output type definitions, grouped by module.
"""

from workqueue.types.api import (
    ClaimedJobResponse,
    CompleteJobRequest,
    CompleteJobResponse,
    DashboardResponse,
    ErrorResponse,
    HealthResponse,
    JobSummaryResponse,
    SubmitJobRequest,
    SubmitJobResponse,
)
from workqueue.types.job import (
    ClaimedJob,
    JobContext,
    JobResult,
    JobSummary,
)

__all__ = [
    # API types
    "SubmitJobRequest",
    "CompleteJobRequest",
    "SubmitJobResponse",
    "ClaimedJobResponse",
    "CompleteJobResponse",
    "JobSummaryResponse",
    "DashboardResponse",
    "HealthResponse",
    "ErrorResponse",
    # Job types
    "ClaimedJob",
    "JobSummary",
    "JobContext",
    "JobResult",
]
