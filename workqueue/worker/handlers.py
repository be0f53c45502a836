"""
Job handlers registry and implementations.

Job handlers should be idempotent: a job whose worker times out is handed to
a second worker, so the same job may run twice.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from workqueue.types.job import JobContext, JobResult

logger = logging.getLogger(__name__)

# Type alias for job handler functions
JobHandler = Callable[[JobContext], Awaitable[JobResult]]

# Handler registry
_handlers: dict[str, JobHandler] = {}


def register_handler(job_type: str) -> Callable[[JobHandler], JobHandler]:
    """
    Decorator to register a job handler.

    Args:
        job_type: The job type this handler processes.

    Returns:
        Decorator function.

    Example:
        @register_handler("send_email")
        async def handle_send_email(context: JobContext) -> JobResult:
            ...
    """
    def decorator(handler: JobHandler) -> JobHandler:
        _handlers[job_type] = handler
        logger.debug(f"Registered handler for job type: {job_type}")
        return handler
    return decorator


def get_handler(job_type: str) -> JobHandler | None:
    """
    Get the handler for a job type.

    Args:
        job_type: The job type.

    Returns:
        The handler function or None if not found.
    """
    return _handlers.get(job_type)


def list_handlers() -> list[str]:
    """List all registered job types."""
    return list(_handlers.keys())


def _option(data: Any, key: str, default: Any) -> Any:
    if isinstance(data, dict):
        return data.get(key, default)
    return default


# ============================================================================
# Built-in job handlers
# ============================================================================


@register_handler("echo")
async def handle_echo(context: JobContext) -> JobResult:
    """
    Echo handler for testing.

    Returns the job data as output.
    """
    logger.info(
        "Echo job executing",
        extra={"job_id": str(context.job_id), "retry_count": context.retry_count}
    )

    return JobResult(
        success=True,
        output={"echo": context.data},
    )


@register_handler("sleep")
async def handle_sleep(context: JobContext) -> JobResult:
    """
    Sleep handler for testing delays and timeouts.

    Data may contain:
    - duration_seconds: How long to sleep
    """
    duration = _option(context.data, "duration_seconds", 1)

    logger.info(
        "Sleep job starting",
        extra={"job_id": str(context.job_id), "duration": duration}
    )

    await asyncio.sleep(duration)

    return JobResult(
        success=True,
        output={"slept_for": duration},
    )


@register_handler("fail")
async def handle_fail(context: JobContext) -> JobResult:
    """
    Handler that always fails.

    Data may contain:
    - message: Error message to report
    """
    message = _option(context.data, "message", "Intentional failure")

    logger.info(
        "Failing job executing (will fail)",
        extra={"job_id": str(context.job_id)}
    )

    return JobResult(success=False, error=message)


async def execute_job(context: JobContext) -> JobResult:
    """
    Execute a job using the handler registered for its type.

    Args:
        context: The job context.

    Returns:
        JobResult from the handler, or a failed result if there is no
        handler or the handler raised.
    """
    handler = get_handler(context.job_type)

    if handler is None:
        logger.error(
            f"No handler for job type: {context.job_type}",
            extra={"job_id": str(context.job_id)}
        )
        return JobResult(
            success=False,
            error=f"No handler registered for job type: {context.job_type}",
        )

    try:
        return await handler(context)
    except Exception as e:
        logger.exception(
            "Handler raised exception",
            extra={"job_id": str(context.job_id), "error": str(e)}
        )
        return JobResult(
            success=False,
            error=f"Handler exception: {e}",
        )
