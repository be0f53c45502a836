"""
Input contracts for job submission and completion.

Bodies are validated by the pydantic request models in workqueue.types.api.
Failures come back as results with ok=False and a message suitable for the
response body; validation never raises.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from workqueue.constants import MAX_TYPE_LENGTH, JobStatus
from workqueue.types.api import CompleteJobRequest, SubmitJobRequest

NOT_AN_OBJECT = "Request body must be an object"
INVALID_STATUS = 'status must be "completed" or "failed"'


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a submission body."""

    ok: bool
    job_type: str | None = None
    data: Any = None
    error: str | None = None

    @classmethod
    def accepted(cls, job_type: str, data: Any) -> "ValidationResult":
        return cls(ok=True, job_type=job_type, data=data)

    @classmethod
    def rejected(cls, error: str) -> "ValidationResult":
        return cls(ok=False, error=error)


@dataclass(frozen=True)
class CompletionValidationResult:
    """Outcome of validating a completion body."""

    ok: bool
    status: JobStatus | None = None
    result: Any = None
    error: str | None = None
    message: str | None = None

    @classmethod
    def rejected(cls, message: str) -> "CompletionValidationResult":
        return cls(ok=False, message=message)


def _submission_message(exc: ValidationError) -> str:
    """Message for the first failing field, in declaration order."""
    first = exc.errors()[0]
    field = first["loc"][0] if first["loc"] else None

    if field is None:
        return NOT_AN_OBJECT
    if field == "type":
        if first["type"] == "string_too_long":
            return f"type must be {MAX_TYPE_LENGTH} characters or less"
        return "type must be a non-empty string"
    if first["type"] == "missing":
        return "data is required"
    return first["msg"]


def validate_job_input(body: Any, max_payload_bytes: int) -> ValidationResult:
    """
    Validate a submission body of the form {"type": str, "data": any}.

    Args:
        body: Decoded JSON request body.
        max_payload_bytes: Upper bound on the encoded size of data.

    Returns:
        ValidationResult carrying the type and data when accepted.
    """
    try:
        request = SubmitJobRequest.model_validate(
            body, context={"max_payload_bytes": max_payload_bytes}
        )
    except ValidationError as exc:
        return ValidationResult.rejected(_submission_message(exc))

    return ValidationResult.accepted(request.type, request.data)


def validate_completion_input(body: Any) -> CompletionValidationResult:
    """
    Validate a completion body of the form
    {"status": "completed"|"failed", "result"?: any, "error"?: str}.

    A non-string error is dropped rather than rejected.
    """
    try:
        request = CompleteJobRequest.model_validate(body)
    except ValidationError as exc:
        if not exc.errors()[0]["loc"]:
            return CompletionValidationResult.rejected(NOT_AN_OBJECT)
        return CompletionValidationResult.rejected(INVALID_STATUS)

    return CompletionValidationResult(
        ok=True,
        status=JobStatus(request.status),
        result=request.result,
        error=request.error,
    )
