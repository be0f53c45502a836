"""
FastAPI dependencies.
"""

from typing import Annotated

from fastapi import Depends, Request

from workqueue.core.service import QueueService


def get_service(request: Request) -> QueueService:
    """
    Get the queue service created at startup.

    Raises:
        RuntimeError: If the application has not been started.
    """
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise RuntimeError("Queue service not initialized.")
    return service


Service = Annotated[QueueService, Depends(get_service)]
