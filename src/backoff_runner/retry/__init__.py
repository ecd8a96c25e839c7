"""
Backoff Runner - Retry Logic.

Exponential backoff with optional jitter, attempt and duration budgets,
and callback- or future-style retry sessions.
"""

from .config import BackoffConfig, ErrorKind, matches_kind
from .backoff import Backoff, calculate_backoff, calculate_delay
from .budget import RetrySession, should_retry
from .scheduler import BlockingScheduler, Scheduler, ThreadingScheduler
from .runner import BackoffRunner, with_retry, async_with_retry

__all__ = [
    "BackoffConfig",
    "ErrorKind",
    "matches_kind",
    "Backoff",
    "calculate_backoff",
    "calculate_delay",
    "RetrySession",
    "should_retry",
    "BlockingScheduler",
    "Scheduler",
    "ThreadingScheduler",
    "BackoffRunner",
    "with_retry",
    "async_with_retry",
]
