"""
Backoff delay calculation.
"""

import math
import random
from typing import Any, Callable

from .config import BackoffConfig

RandomSource = Callable[[], float]
Report = Callable[..., None]


def calculate_delay(
    attempt: int,
    min_delay: float,
    max_delay: float,
    use_jitter: bool = False,
    rng: RandomSource | None = None,
) -> float:
    """
    Calculate the delay before the next attempt.

    Implements: delay = min(round(min_delay * 2^(attempt-1) * factor), max_delay)
    where factor is 1, or drawn from [1, 2) when jitter is enabled.

    Args:
        attempt: One-based number of attempts already made
        min_delay: Delay for the first retry, in milliseconds
        max_delay: Ceiling for any delay, in milliseconds
        use_jitter: Scale the delay by a random factor in [1, 2)
        rng: Random source returning floats in [0, 1) (default: random.random)

    Returns:
        Delay in milliseconds
    """
    if attempt < 1:
        raise ValueError("attempt must be >= 1")

    factor = 1.0
    if use_jitter:
        factor += (rng or random.random)()

    if min_delay == 0:
        return 0
    try:
        # Half-up rounding, so .5 never rounds towards even.
        delay = math.floor(min_delay * 2 ** (attempt - 1) * factor + 0.5)
    except OverflowError:
        return max_delay
    return min(delay, max_delay)


def calculate_backoff(
    attempt: int,
    config: BackoffConfig,
    rng: RandomSource | None = None,
) -> float:
    """Calculate the delay for a given attempt using a retry configuration."""
    return calculate_delay(
        attempt,
        config.min_delay,
        config.max_delay,
        config.use_jitter,
        rng,
    )


class Backoff:
    """
    Stateful exponential backoff delay generator.

    Each call to `next_delay()` advances the retry counter:

        >>> backoff = Backoff(1000, 10000)
        >>> [backoff.next_delay() for _ in range(6)]
        [1000, 2000, 4000, 8000, 10000, 10000]
    """

    def __init__(
        self,
        min_delay: float,
        max_delay: float,
        use_jitter: bool = False,
        rng: RandomSource | None = None,
    ):
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.use_jitter = use_jitter
        self.rng = rng
        self.retries = 0

    def next_delay(self) -> float:
        """Advance the retry counter and return the delay for it."""
        self.retries += 1
        return calculate_delay(
            self.retries, self.min_delay, self.max_delay, self.use_jitter, self.rng
        )

    def reset(self) -> None:
        """Restart the delay sequence from the first retry."""
        self.retries = 0

    def attempt(
        self,
        max_attempts: int,
        operation: Callable[[Report], Any],
        done: Report,
        **runner_kwargs,
    ):
        """
        Retry a callback-style operation with this generator's delay settings.

        Args:
            max_attempts: Total attempts allowed, including the first
            operation: Callable receiving a `report(error, *payload)` callback
            done: Called once with `(error, *payload)` when the session ends
            **runner_kwargs: Passed through to `BackoffRunner`

        Returns:
            The `RetrySession` driving the attempts
        """
        from .runner import BackoffRunner

        config = BackoffConfig(
            min_delay=self.min_delay,
            max_delay=self.max_delay,
            max_attempts=max_attempts,
            use_jitter=self.use_jitter,
        )
        runner_kwargs.setdefault("rng", self.rng)
        return BackoffRunner(config, **runner_kwargs).attempt(operation, done)
