"""
FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from workqueue import __version__
from workqueue.api.middleware import create_metrics_middleware
from workqueue.api.routes import dashboard_router, health_router, queue_router
from workqueue.config import Settings, get_settings
from workqueue.core.service import QueueService
from workqueue.db.connection import Database
from workqueue.observability.logging import setup_logging
from workqueue.observability.metrics import MetricsCollector, setup_metrics
from workqueue.observability.tracing import (
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_tracing,
)

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    service: QueueService | None = None,
    metrics: MetricsCollector | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    When no service is given, the lifespan opens the database named in
    settings, creates the schema, and disposes of the engine at shutdown.
    An injected service is used as-is and left open.

    Args:
        settings: Application settings.
        service: Pre-built queue service (tests, embedding).
        metrics: Metrics collector. Defaults to the process-wide one.

    Returns:
        FastAPI: The configured application instance.
    """
    settings = settings or get_settings()
    if metrics is None:
        metrics = service.metrics if service is not None else setup_metrics()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Handles startup and shutdown events.
        """
        owned: Database | None = None
        if app.state.service is None:
            setup_logging(settings)
            setup_tracing(settings)

            owned = Database.from_settings(settings)
            await owned.create_schema()
            if settings.otel_enabled:
                instrument_sqlalchemy(owned.engine.sync_engine)
            app.state.service = QueueService(owned, settings, metrics=metrics)

        logger.info("Application started")

        yield

        if owned is not None:
            await owned.close()
            app.state.service = None
        logger.info("Application shutdown")

    app = FastAPI(
        title="Work Queue API",
        description="Durable work queue with atomic claims and timeout retry",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.service = service
    app.state.metrics = metrics

    app.add_middleware(
        BaseHTTPMiddleware,
        dispatch=create_metrics_middleware(metrics),
    )

    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
        """Store and other unexpected failures surface as a plain 500."""
        logger.error(
            "Unhandled error",
            exc_info=exc,
            extra={"method": request.method, "path": request.url.path},
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(health_router)
    app.include_router(queue_router)
    app.include_router(dashboard_router)

    if settings.otel_enabled:
        instrument_fastapi(app)

    return app


def run() -> None:
    """Run the API server."""
    settings = get_settings()
    app = create_app(settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
