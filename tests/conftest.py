"""Shared test fixtures."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

import pytest

from rxprobe.health.engine import Result


class StaticCheck:
    """Check with a fixed outcome; counts how often it ran."""

    def __init__(self, name: str, ok: bool = True, duration: float | None = 1.0, message: str = "") -> None:
        self.name = name
        self.ok = ok
        self.duration = duration
        self.message = message
        self.calls = 0
        self._lock = threading.Lock()

    def check(self) -> Result:
        with self._lock:
            self.calls += 1
        return Result(self.name, self.ok, self.duration, self.message)


class RaisingCheck:
    def __init__(self, name: str = "boom", exc: Exception | None = None) -> None:
        self.name = name
        self.exc = exc or RuntimeError("probe exploded")

    def check(self) -> Result:
        raise self.exc


class SleepyCheck:
    """Passes after sleeping; used to scramble completion order."""

    def __init__(self, name: str, seconds: float) -> None:
        self.name = name
        self.seconds = seconds

    def check(self) -> Result:
        time.sleep(self.seconds)
        return Result(self.name, True)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingCompute:
    """Zero-arg compute function that returns its call count."""

    def __init__(self, value: Callable[[int], Any] = lambda n: n) -> None:
        self.calls = 0
        self._value = value

    def __call__(self) -> Any:
        self.calls += 1
        return self._value(self.calls)


@pytest.fixture
def passing() -> StaticCheck:
    return StaticCheck("passing", ok=True)


@pytest.fixture
def failing() -> StaticCheck:
    return StaticCheck("failing", ok=False, message="err")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def compute() -> CountingCompute:
    return CountingCompute()
