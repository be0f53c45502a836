"""
Queue routes: submit, claim, and complete/fail.
"""

import logging
from typing import Any

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse

from workqueue.api.dependencies import Service
from workqueue.constants import QUEUE_PREFIX, UNKNOWN_ERROR, JobStatus
from workqueue.core.validation import validate_completion_input, validate_job_input
from workqueue.types.api import (
    ClaimedJobResponse,
    CompleteJobResponse,
    ErrorResponse,
    SubmitJobResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix=QUEUE_PREFIX, tags=["Queue"])


class InvalidJSON(Exception):
    """Request body is not valid JSON."""


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise InvalidJSON() from exc


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SubmitJobResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Submit a job",
    description="Add a job to the queue. The job starts out waiting.",
)
async def submit_job(request: Request, service: Service):
    """
    Submit a new job.

    Body: {"type": str (<=100 chars), "data": any JSON}.
    """
    try:
        body = await _read_json(request)
    except InvalidJSON:
        return _error("Invalid JSON", status.HTTP_400_BAD_REQUEST)

    validation = validate_job_input(body, service.settings.max_payload_bytes)
    if not validation.ok:
        return _error(validation.error, status.HTTP_400_BAD_REQUEST)

    job_id = await service.submit(validation.job_type, validation.data)

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=SubmitJobResponse(id=job_id).model_dump(mode="json"),
    )


@router.get(
    "",
    response_model=ClaimedJobResponse,
    responses={204: {"description": "No job available"}},
    summary="Claim the next job",
    description="Claim the oldest waiting job. Returns 204 when the queue is empty.",
)
async def claim_job(service: Service):
    """
    Claim the next job for a polling worker.

    Aged terminal jobs are swept first when cleanup_on_claim is enabled.
    """
    if service.settings.cleanup_on_claim:
        await service.sweep()

    job = await service.claim()

    if job is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return ClaimedJobResponse(id=job.id, type=job.type, data=job.data)


@router.put(
    "/{job_id}",
    response_model=CompleteJobResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Complete or fail a job",
    description="Report the outcome of an active job.",
)
async def finish_job(job_id: str, request: Request, service: Service):
    """
    Complete or fail an active job.

    Body: {"status": "completed"|"failed", "result"?: any, "error"?: str}.
    """
    try:
        body = await _read_json(request)
    except InvalidJSON:
        return _error("Invalid JSON", status.HTTP_400_BAD_REQUEST)

    validation = validate_completion_input(body)
    if not validation.ok:
        return _error(validation.message, status.HTTP_400_BAD_REQUEST)

    if validation.status == JobStatus.COMPLETED:
        success = await service.complete(job_id, validation.result)
    else:
        success = await service.fail(job_id, validation.error or UNKNOWN_ERROR)

    if not success:
        return _error("Job not found or not active", status.HTTP_404_NOT_FOUND)

    return CompleteJobResponse(success=True)
