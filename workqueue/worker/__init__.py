"""
Worker module.
Contains the polling worker and the job handler registry.
"""

from workqueue.worker.handlers import execute_job, get_handler, register_handler
from workqueue.worker.main import Worker, run

__all__ = ["Worker", "run", "execute_job", "get_handler", "register_handler"]
