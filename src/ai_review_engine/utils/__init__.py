"""
Utilities for logging and retrying external calls.
"""

from ai_review_engine.utils.logging import setup_logging
from ai_review_engine.utils.resilience import RetryableError, retry_call

__all__ = [
    "RetryableError",
    "retry_call",
    "setup_logging",
]
