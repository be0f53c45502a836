"""
Database module.
Contains the database handle, models, and repository implementation.
"""

from workqueue.db.connection import Database
from workqueue.db.models import Base, Job
from workqueue.db.repository import JobRepository

__all__ = [
    "Database",
    "Job",
    "Base",
    "JobRepository",
]
