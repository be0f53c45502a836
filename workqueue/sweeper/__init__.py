"""
Sweeper module.
Contains the periodic cleanup process for terminal jobs.
"""

from workqueue.sweeper.main import Sweeper, run

__all__ = ["Sweeper", "run"]
