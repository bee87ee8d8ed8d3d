"""Shared fixtures: a controllable clock and an in-memory store."""

import threading
import time
from collections.abc import Iterator

import pytest

from etcd_primitives_tool.kvstore.core.memory import MemoryClient


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self._now = start
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += seconds


def wait_for(condition, timeout: float = 2.0) -> bool:
    """Poll condition until it is true or timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> Iterator[MemoryClient]:
    client = MemoryClient(clock=clock)
    yield client
    client.close()


@pytest.fixture
def wait():
    return wait_for
