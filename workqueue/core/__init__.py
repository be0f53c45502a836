"""
Core job lifecycle engine.
Claim, completion, cleanup and input validation.
"""

from workqueue.core.claim import ClaimEngine
from workqueue.core.cleanup import CleanupSweeper
from workqueue.core.completion import CompletionHandler
from workqueue.core.service import QueueService
from workqueue.core.validation import (
    CompletionValidationResult,
    ValidationResult,
    validate_completion_input,
    validate_job_input,
)

__all__ = [
    "ClaimEngine",
    "CompletionHandler",
    "CleanupSweeper",
    "QueueService",
    "ValidationResult",
    "CompletionValidationResult",
    "validate_job_input",
    "validate_completion_input",
]
