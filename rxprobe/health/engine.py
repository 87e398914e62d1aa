"""Health check engine — runs checks concurrently and collects results.

Each check produces a Result. ``run_checks`` launches every check on its own
worker thread, waits for all of them and returns the results in input order.
A check that raises (including ``sys.exit()``) is turned into a failing
Result; it never takes its siblings down with it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


# ── Models ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Result:
    """Outcome of a single check execution.

    ``duration`` is in milliseconds. ``None`` means the check did not time
    itself and the runner should fill in the wall-clock measurement.
    """

    name: str
    ok: bool
    duration: float | None = None
    message: str = ""

    def __post_init__(self) -> None:
        if self.duration is not None and self.duration < 0:
            raise ValueError(f"duration must be >= 0, got {self.duration}")

    @property
    def timing(self) -> float:
        return self.duration or 0.0

    @classmethod
    def from_call(cls, name: str, fn: Callable[[], Any]) -> Result:
        """Time ``fn()`` and wrap its truthiness (or exception) in a Result."""
        t0 = time.perf_counter()
        try:
            ok = bool(fn())
            message = "" if ok else "check returned a falsy value"
        except Exception as e:
            ok = False
            message = f"{type(e).__name__}: {e}"
        return cls(
            name=name, ok=ok,
            duration=_elapsed_ms(t0),
            message=message,
        )


@runtime_checkable
class Check(Protocol):
    """A named probe. ``check()`` does the work and reports a Result."""

    name: str

    def check(self) -> Result:
        ...


# ── Runner ───────────────────────────────────────────────────────────────────


def _elapsed_ms(t0: float) -> float:
    return round((time.perf_counter() - t0) * 1000, 2)


def check_name(check: Any) -> str:
    """Best-effort name for a check, even a misbehaving one."""
    try:
        name = getattr(check, "name", None)
    except Exception:
        name = None
    return str(name or type(check).__name__)


def _execute_single(check: Any) -> Result:
    """Run one check, converting any failure into a failing Result."""
    name = check_name(check)
    t0 = time.perf_counter()
    try:
        result = check.check()
    except (Exception, SystemExit) as e:
        # KeyboardInterrupt still propagates
        logger.warning("Check %s raised: %s: %s", name, type(e).__name__, e)
        return Result(
            name=name, ok=False,
            duration=_elapsed_ms(t0),
            message=f"{type(e).__name__}: {e}",
        )

    elapsed = _elapsed_ms(t0)
    if not isinstance(result, Result):
        logger.warning("Check %s returned %s instead of a Result", name, type(result).__name__)
        return Result(
            name=name, ok=False, duration=elapsed,
            message=f"Invalid result type: {type(result).__name__}",
        )
    if result.duration is None:
        result = replace(result, duration=elapsed)
    if not result.ok:
        logger.warning("Check %s failed (%.1fms): %s", result.name, result.timing, result.message)
    return result


def run_checks(checks: Sequence[Any]) -> list[Result]:
    """Run all checks in parallel and return their results in input order.

    The pool is sized to the number of checks so every check is in flight at
    once. There is no timeout: a hanging check holds up the whole call.
    """
    if not checks:
        return []

    slots: list[Result | None] = [None] * len(checks)

    with ThreadPoolExecutor(max_workers=len(checks), thread_name_prefix="rxprobe-check") as executor:
        futures: dict[Future[Result], int] = {
            executor.submit(_execute_single, check): i
            for i, check in enumerate(checks)
        }
        for future, i in futures.items():
            try:
                slots[i] = future.result()
            except Exception as exc:
                # _execute_single absorbs check errors; this is the wrapper itself failing
                logger.error("Check future %d raised: %s", i, exc)
                slots[i] = Result(
                    name=check_name(checks[i]), ok=False, duration=0.0,
                    message=f"{type(exc).__name__}: {exc}",
                )

    return [r for r in slots if r is not None]
