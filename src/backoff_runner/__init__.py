"""
Backoff Runner - Retry with Exponential Backoff.

Retries a unit of work with exponential backoff, optional jitter,
attempt and duration budgets, and a typed "do not retry" escape hatch.
"""

from .exceptions import (
    NON_RETRYABLE,
    BackoffError,
    NonRetryableError,
    ConfigurationError,
    HTTPStatusError,
)
from .retry import (
    Backoff,
    BackoffConfig,
    BackoffRunner,
    RetrySession,
    calculate_backoff,
    should_retry,
    with_retry,
    async_with_retry,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Exceptions
    "NON_RETRYABLE",
    "BackoffError",
    "NonRetryableError",
    "ConfigurationError",
    "HTTPStatusError",
    # Retry
    "Backoff",
    "BackoffConfig",
    "BackoffRunner",
    "RetrySession",
    "calculate_backoff",
    "should_retry",
    "with_retry",
    "async_with_retry",
]
