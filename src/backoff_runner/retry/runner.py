"""
Attempt driver and retry decorators.

`BackoffRunner` drives one retry session per call. Sessions share a single
state machine with two front-ends:

- `attempt(operation, done)`: callback style. The operation receives a
  `report(error, *payload)` callback and `done(error, *payload)` is called
  once with the terminal outcome.
- `run(operation)`: future style. The operation takes no arguments and
  returns a value or awaitable; the returned `asyncio.Future` settles once.
"""

import asyncio
import functools
import inspect
import logging
import time
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, ParamSpec, TypeVar

from .backoff import RandomSource, Report, calculate_backoff
from .budget import RetrySession, should_retry
from .config import BackoffConfig
from .scheduler import BlockingScheduler, Scheduler, default_scheduler

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

OnRetry = Callable[[int, Any, float], None]


class BackoffRunner:
    """
    Retries a unit of work with exponential backoff.

    Features:
    - Exponential delays capped by `max_delay`, with optional jitter
    - Attempt-count and wall-clock budgets
    - Immediate termination on non-retryable error kinds
    - Injectable scheduler, clock and random source
    """

    def __init__(
        self,
        config: BackoffConfig | Mapping[str, Any],
        *,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] | None = None,
        rng: RandomSource | None = None,
        on_retry: OnRetry | None = None,
    ):
        """
        Initialize the runner.

        Args:
            config: Retry configuration, or a mapping of options for it
            scheduler: Timer capability (default: running event loop, or
                a threading scheduler outside one)
            clock: Returns the current time in seconds (default: time.monotonic)
            rng: Random source for jitter (default: random.random)
            on_retry: Optional callback(attempt, error, delay_ms) called
                before each retry is scheduled
        """
        if isinstance(config, Mapping):
            config = BackoffConfig.from_mapping(config)
        self.config = config
        self.scheduler = scheduler
        self.clock = clock or time.monotonic
        self.rng = rng
        self.on_retry = on_retry

    def _now(self) -> float:
        return self.clock() * 1000

    def attempt(
        self,
        operation: Callable[[Report], Any],
        done: Report,
        *,
        scheduler: Scheduler | None = None,
    ) -> RetrySession:
        """
        Retry a callback-style operation.

        The operation is called with a `report` callback and must call it
        exactly once per attempt: `report(error)` on failure, or
        `report(None, *payload)` on success. Any falsy first argument
        (`None`, `False`, `0`, `""`) counts as success. An exception raised
        by the operation before it reports counts as that attempt's failure;
        one raised after a retry is already scheduled is logged and ignored.

        Args:
            operation: Unit of work taking a `report` callback
            done: Called exactly once with `(error, *payload)`; `error` is
                None unless the session failed
            scheduler: Overrides the runner's scheduler for this session

        Returns:
            The session, which can be cancelled to drop a pending retry
        """
        if scheduler is None:
            scheduler = self.scheduler if self.scheduler is not None else default_scheduler()
        session = RetrySession(start_time=self._now())
        self._run_attempt(session, operation, done, scheduler)
        return session

    def _run_attempt(
        self,
        session: RetrySession,
        operation: Callable[[Report], Any],
        done: Report,
        scheduler: Scheduler,
    ) -> None:
        session._timer = None
        if session.cancelled or session.settled:
            return

        session.attempts_made += 1
        attempt = session.attempts_made
        reported = False

        def report(error: Any = None, *payload: Any) -> None:
            nonlocal reported
            if reported:
                logger.warning(f"Attempt {attempt} reported more than once, ignoring")
                return
            reported = True
            self._handle_outcome(session, operation, done, scheduler, error, payload)

        try:
            operation(report)
        except Exception as e:
            if not reported:
                report(e)
            elif session.settled:
                raise
            else:
                logger.warning(
                    f"Attempt {attempt} raised after reporting its outcome, ignoring: {e!r}",
                    exc_info=True,
                )

    def _handle_outcome(
        self,
        session: RetrySession,
        operation: Callable[[Report], Any],
        done: Report,
        scheduler: Scheduler,
        error: Any,
        payload: tuple,
    ) -> None:
        if session.cancelled:
            return

        if not error:
            self._settle(session, done, None, payload)
            return

        session.last_error = error
        if self.config.is_non_retryable(error):
            logger.debug(f"Attempt {session.attempts_made} failed with non-retryable error: {error!r}")
            self._settle(session, done, error)
            return

        delay = calculate_backoff(session.attempts_made, self.config, self.rng)
        if not should_retry(
            session.attempts_made,
            self.config.max_attempts,
            delay,
            session.start_time,
            self.config.max_duration,
            self._now(),
        ):
            logger.debug(f"Giving up after {session.attempts_made} attempts: {error!r}")
            self._settle(session, done, error)
            return

        if self.on_retry:
            self.on_retry(session.attempts_made, error, delay)
        else:
            logger.warning(
                f"Retry {session.attempts_made}/{self.config.max_attempts - 1}: {error}, "
                f"waiting {delay}ms"
            )
        session.delays.append(delay)
        session._timer = scheduler.call_later(
            delay / 1000,
            functools.partial(self._run_attempt, session, operation, done, scheduler),
        )

    def _settle(
        self,
        session: RetrySession,
        done: Report,
        error: Any,
        payload: tuple = (),
    ) -> None:
        session.settled = True
        if error is None:
            done(None, *payload)
        else:
            done(error)

    def run(self, operation: Callable[[], Awaitable[T] | T]) -> "asyncio.Future[T]":
        """
        Retry an operation, returning a future for its terminal outcome.

        Must be called while an event loop is running. Cancelling the
        returned future cancels the in-flight attempt and any pending retry.

        Args:
            operation: Unit of work taking no arguments; may return a value
                or an awaitable, and fails by raising

        Returns:
            Future resolving to the operation's result, or raising its
            last error
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        current: asyncio.Future | None = None

        def unit(report: Report) -> None:
            nonlocal current
            result = operation()
            if not inspect.isawaitable(result):
                report(None, result)
                return

            current = asyncio.ensure_future(result)

            def on_complete(task: asyncio.Future) -> None:
                if task.cancelled():
                    report(asyncio.CancelledError())
                elif task.exception() is not None:
                    report(task.exception())
                else:
                    report(None, task.result())

            current.add_done_callback(on_complete)

        def done(error: Any, *payload: Any) -> None:
            if future.done():
                return
            if error is None:
                future.set_result(payload[0] if payload else None)
            elif isinstance(error, asyncio.CancelledError):
                future.cancel()
            else:
                future.set_exception(error)

        scheduler = self.scheduler if self.scheduler is not None else loop
        session = self.attempt(unit, done, scheduler=scheduler)

        def on_future_done(fut: asyncio.Future) -> None:
            if fut.cancelled():
                session.cancel()
                if current is not None and not current.done():
                    current.cancel()

        future.add_done_callback(on_future_done)
        return future

    def run_sync(
        self,
        operation: Callable[[], T],
        *,
        scheduler: BlockingScheduler | None = None,
    ) -> T:
        """
        Retry a blocking operation on the calling thread.

        Args:
            operation: Unit of work taking no arguments; fails by raising
            scheduler: Blocking scheduler to sleep with (default: time.sleep)

        Returns:
            The operation's result

        Raises:
            The last error once retrying stops
        """
        if scheduler is None:
            scheduler = BlockingScheduler()
        outcome: dict[str, Any] = {}

        def unit(report: Report) -> None:
            report(None, operation())

        def done(error: Any, *payload: Any) -> None:
            outcome["error"] = error
            outcome["result"] = payload[0] if payload else None

        self.attempt(unit, done, scheduler=scheduler)
        scheduler.run()

        if outcome["error"] is not None:
            raise outcome["error"]
        return outcome["result"]


def with_retry(
    config: BackoffConfig | None = None,
    on_retry: OnRetry | None = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator for synchronous functions with retry logic.

    Args:
        config: Retry configuration (default: BackoffConfig.conservative())
        on_retry: Optional callback(attempt, error, delay_ms) called before each retry

    Returns:
        Decorated function with retry behavior
    """
    if config is None:
        config = BackoffConfig.conservative()
    runner = BackoffRunner(config, on_retry=on_retry)

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return runner.run_sync(lambda: func(*args, **kwargs))

        return wrapper

    return decorator


def async_with_retry(
    config: BackoffConfig | None = None,
    on_retry: OnRetry | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Decorator for async functions with retry logic.

    Args:
        config: Retry configuration (default: BackoffConfig.conservative())
        on_retry: Optional callback(attempt, error, delay_ms) called before each retry

    Returns:
        Decorated async function with retry behavior
    """
    if config is None:
        config = BackoffConfig.conservative()
    runner = BackoffRunner(config, on_retry=on_retry)

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await runner.run(lambda: func(*args, **kwargs))

        return wrapper

    return decorator
