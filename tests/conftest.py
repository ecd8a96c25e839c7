"""Shared fixtures - virtual time so retries never wait on the wall clock."""

import asyncio

import pytest

from backoff_runner.retry import BlockingScheduler


class FakeClock:
    """Clock in seconds that only moves when told to."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class LoopScheduler:
    """Advances the fake clock, then runs the callback on the event loop."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.delays: list[float] = []

    def call_later(self, delay, callback):
        self.delays.append(delay)
        self.clock.now += delay
        return asyncio.get_running_loop().call_soon(callback)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def blocking_scheduler(clock):
    """Queues retries and sleeps on the fake clock when run."""
    return BlockingScheduler(sleep=clock.sleep)


@pytest.fixture
def loop_scheduler(clock):
    return LoopScheduler(clock)


class Flaky:
    """Unit of work that fails a fixed number of times before succeeding."""

    def __init__(self, failures: int, error_factory=lambda n: RuntimeError(f"failure {n}"), result="ok"):
        self.failures = failures
        self.error_factory = error_factory
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error_factory(self.calls)
        return self.result


@pytest.fixture
def flaky():
    return Flaky
