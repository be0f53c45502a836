"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class JobStatus(StrEnum):
    """
    Job lifecycle states.

    State transitions:
    - WAITING -> ACTIVE (claimed, retry_count += 1)
    - ACTIVE -> COMPLETED (worker reported success)
    - ACTIVE -> FAILED (worker reported failure)
    - ACTIVE -> WAITING (first timeout, started_at cleared)
    - ACTIVE -> FAILED (second timeout)
    """

    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES: tuple[JobStatus, ...] = (JobStatus.COMPLETED, JobStatus.FAILED)

# A job is claimed at most this many times (initial claim + one reclaim).
MAX_CLAIMS = 2

# Input limits
MAX_TYPE_LENGTH = 100

# Error messages stored on jobs
TIMED_OUT_AFTER_RETRY_ERROR = "timed out after retry"
UNKNOWN_ERROR = "Unknown error"

# Bound on re-selection when a concurrent claim wins the promote race
CLAIM_RACE_RETRIES = 3

# API constants
QUEUE_PREFIX = "/queue"
DASHBOARD_PREFIX = "/dashboard"

# Metrics names
METRIC_QUEUE_DEPTH = "job_queue_depth"
METRIC_JOBS_SUBMITTED = "jobs_submitted_total"
METRIC_JOBS_CLAIMED = "jobs_claimed_total"
METRIC_JOBS_FINISHED = "jobs_finished_total"
METRIC_TIMEOUTS_RECOVERED = "timeouts_recovered_total"
METRIC_TIMEOUTS_FAILED = "timeouts_failed_total"
METRIC_JOBS_CLEANED = "jobs_cleaned_total"
METRIC_JOB_DURATION = "job_duration_seconds"
METRIC_API_REQUESTS = "api_requests_total"
METRIC_API_LATENCY = "api_request_latency_seconds"

# Trace span names
SPAN_SUBMIT_JOB = "submit_job"
SPAN_CLAIM_JOB = "claim_job"
SPAN_COMPLETE_JOB = "complete_job"
SPAN_FAIL_JOB = "fail_job"
SPAN_SWEEP = "sweep_terminal_jobs"
SPAN_EXECUTE_JOB = "execute_job"
