"""
Health check routes.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from workqueue import __version__
from workqueue.api.dependencies import Service
from workqueue.types.api import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


async def _database_ok(service) -> bool:
    try:
        async with service.database.session() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError, RuntimeError):
        logger.warning("Database health probe failed", exc_info=True)
        return False
    return True


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health of the API and database connection.",
)
async def health_check(service: Service) -> HealthResponse:
    """
    Perform a health check.

    Checks database connectivity and returns service status.
    """
    db_status = "healthy" if await _database_ok(service) else "unhealthy"

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        version=__version__,
        database=db_status,
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the service is ready to receive traffic.",
)
async def readiness_check(service: Service) -> dict:
    """Readiness probe endpoint."""
    return {"ready": await _database_ok(service)}


@router.get(
    "/live",
    summary="Liveness check",
    description="Check if the service is alive.",
)
async def liveness_check() -> dict:
    """Liveness probe endpoint."""
    return {"alive": True}


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Expose Prometheus metrics.",
)
async def metrics(request: Request) -> Response:
    """Expose Prometheus metrics."""
    metrics_collector = request.app.state.metrics
    return Response(
        content=metrics_collector.get_metrics(),
        media_type=metrics_collector.get_content_type(),
    )
