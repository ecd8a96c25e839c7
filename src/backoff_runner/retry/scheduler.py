"""
Timer scheduling for delayed retry attempts.

Any object with a ``call_later(delay, callback)`` method returning a handle
with ``cancel()`` can drive the runner. The asyncio event loop already
satisfies this interface.
"""

import asyncio
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


class Scheduler(Protocol):
    """Schedules a callback to run after a delay in seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingScheduler:
    """
    Scheduler backed by `threading.Timer`, for code without an event loop.

    Timers are non-daemon, so a pending retry keeps the interpreter alive
    until it runs or its session is cancelled.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.start()
        return timer


@dataclass
class _PendingCall:
    delay: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class BlockingScheduler:
    """
    Scheduler that runs delayed callbacks on the calling thread.

    Callbacks are queued by `call_later` and executed in order by `run`,
    which sleeps for each delay first.
    """

    def __init__(self, sleep: Callable[[float], None] = time.sleep):
        self._sleep = sleep
        self._pending: deque[_PendingCall] = deque()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _PendingCall:
        call = _PendingCall(delay, callback)
        self._pending.append(call)
        return call

    def run(self) -> None:
        """Run queued callbacks until none remain."""
        while self._pending:
            call = self._pending.popleft()
            if call.cancelled:
                continue
            self._sleep(call.delay)
            call.callback()


def default_scheduler() -> Scheduler:
    """Return the running event loop, or a threading scheduler outside one."""
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return ThreadingScheduler()
