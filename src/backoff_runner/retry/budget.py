"""
Retry budget tracking for a single session.
"""

from dataclasses import dataclass, field
from typing import Any


def should_retry(
    attempts_made: int,
    max_attempts: int,
    candidate_delay: float,
    start_time: float,
    max_duration: float | None,
    now: float,
) -> bool:
    """
    Decide whether another attempt is permitted after a failure.

    The duration check uses the delay that will actually be waited, so the
    next attempt must start inside the window, not just the failure.

    Args:
        attempts_made: Attempts already made in the session
        max_attempts: Total attempts allowed
        candidate_delay: Delay before the next attempt, in milliseconds
        start_time: Session start, in milliseconds
        max_duration: Optional budget from session start, in milliseconds
        now: Current time, in milliseconds

    Returns:
        True if another attempt should be made
    """
    if attempts_made >= max_attempts:
        return False
    if max_duration is not None and now + candidate_delay > start_time + max_duration:
        return False
    return True


@dataclass
class RetrySession:
    """
    Mutable state for one call to the runner.

    Attributes:
        start_time: Session start, in milliseconds
        attempts_made: Incremented immediately before each attempt
        delays: Delays waited so far, in milliseconds
        last_error: Most recent failure
        settled: Whether the terminal outcome has been reported
    """

    start_time: float
    attempts_made: int = 0
    delays: list = field(default_factory=list)
    last_error: Any = None
    settled: bool = False
    cancelled: bool = False
    _timer: Any = field(default=None, repr=False)

    def cancel(self) -> None:
        """Discard the pending retry timer; no further attempts start."""
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
