"""
API routes module.
"""

from workqueue.api.routes.dashboard import router as dashboard_router
from workqueue.api.routes.health import router as health_router
from workqueue.api.routes.queue import router as queue_router

__all__ = ["queue_router", "dashboard_router", "health_router"]
