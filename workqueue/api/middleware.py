"""
Request metrics middleware.
"""

import time
from collections.abc import Callable

from fastapi import Request

from workqueue.observability.metrics import MetricsCollector

# Paths not worth counting
SKIPPED_PATHS = {"/metrics", "/live", "/docs", "/openapi.json"}


def _endpoint_label(request: Request) -> str:
    """Route template when matched, so ids do not explode label cardinality."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def create_metrics_middleware(metrics: MetricsCollector) -> Callable:
    """
    Create request metrics middleware for FastAPI.

    Args:
        metrics: Collector receiving request counts and latencies.

    Returns:
        The middleware function.
    """

    async def metrics_middleware(request: Request, call_next: Callable):
        """Middleware to record request count and latency."""
        if request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        metrics.record_api_request(
            method=request.method,
            endpoint=_endpoint_label(request),
            status=response.status_code,
            duration_seconds=time.perf_counter() - start,
        )
        return response

    return metrics_middleware
