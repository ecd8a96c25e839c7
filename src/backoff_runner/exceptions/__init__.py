"""
Backoff Runner - Exception Hierarchy.

Custom exceptions with error-kind tags for retry classification.
"""

from .base import (
    NON_RETRYABLE,
    BackoffError,
    NonRetryableError,
    ConfigurationError,
    HTTPStatusError,
)

__all__ = [
    "NON_RETRYABLE",
    "BackoffError",
    "NonRetryableError",
    "ConfigurationError",
    "HTTPStatusError",
]
