"""Aggregation — per-check components and the overall verdict.

Liveness and readiness are binary: every component alive means ``ok``,
anything else is ``error``. The deep check weighs critical against secondary
components: a dead critical component is always ``error``, a dead secondary
one only downgrades the label to ``degraded`` and keeps the 200.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .engine import Result


class Status(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    ERROR = "error"
    AUTH_FAILED = "auth_failed"


STATUS_CODES: dict[Status, int] = {
    Status.OK: 200,
    Status.DEGRADED: 200,
    Status.ERROR: 500,
    Status.AUTH_FAILED: 403,
}


@dataclass(frozen=True)
class Component:
    """Summary of one check as exposed in the response payload."""

    name: str
    alive: bool
    duration: float
    required: bool = True
    message: str = ""

    def to_dict(self) -> dict[str, dict[str, Any]]:
        body: dict[str, Any] = {
            "alive": self.alive,
            "duration": self.duration,
            "required": self.required,
        }
        if not self.alive and self.message:
            body["message"] = self.message
        return {self.name: body}


@dataclass(frozen=True)
class HealthReport:
    """What an endpoint evaluates to: a status class plus its components."""

    status: Status
    components: list[Component] = field(default_factory=list)

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.status]

    def to_dict(self) -> dict[str, Any]:
        if self.status is Status.AUTH_FAILED:
            return {"message": "authorization failed"}
        return {
            "status": self.status.value,
            "integrations": [c.to_dict() for c in self.components],
        }


AUTH_FAILED_REPORT = HealthReport(status=Status.AUTH_FAILED)


def summarize(
    results: Sequence[Result],
    required_predicate: Callable[[str], bool],
) -> list[Component]:
    """Wrap each result as a Component, keeping input order."""
    return [
        Component(
            name=str(r.name),
            alive=bool(r.ok),
            duration=r.timing,
            required=bool(required_predicate(str(r.name))),
            message=r.message,
        )
        for r in results
    ]


def overall_status(components: Sequence[Component]) -> Status:
    """Binary verdict for liveness/readiness. Empty input is ``ok``."""
    return Status.OK if all(c.alive for c in components) else Status.ERROR


def deep_status(
    critical: Sequence[Component],
    secondary: Sequence[Component],
) -> Status:
    """Three-state verdict: critical failure dominates, secondary only degrades."""
    if not all(c.alive for c in critical):
        return Status.ERROR
    if not all(c.alive for c in secondary):
        return Status.DEGRADED
    return Status.OK
