"""Health check middleware — serves liveness, readiness and deep endpoints.

Requests for any other path go straight to the wrapped app. The deep
endpoint is authorized first and then answered from the cache when a fresh
report is available.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Callable, Sequence
from typing import Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from rxprobe.errors import ConfigurationError
from rxprobe.health.aggregate import (
    AUTH_FAILED_REPORT,
    Component,
    HealthReport,
    deep_status,
    overall_status,
    summarize,
)
from rxprobe.health.cache import DEFAULT_MAX_SIZE, DEFAULT_TTL_SECONDS, Cache, cache_factory
from rxprobe.health.checks import FileSystemCheck
from rxprobe.health.engine import Check, check_name, run_checks

logger = logging.getLogger(__name__)

LIVENESS = "liveness"
READINESS = "readiness"
DEEP = "deep"
DEEP_CACHE_KEY = "deep"

Authorization = str | Callable[[Any], Any] | None


# ── Authorization ────────────────────────────────────────────────────────────


def authorize(request: Any, authorization: Authorization) -> bool:
    """Decide whether a deep health request may run.

    No authorization configured lets everything through; a string must match
    the Authorization header; a callable is asked with the request.
    """
    if authorization is None or authorization == "":
        return True
    if isinstance(authorization, str):
        provided = request.headers.get("authorization", "")
        return hmac.compare_digest(provided.encode(), authorization.encode())
    if callable(authorization):
        return bool(authorization(request))
    return False


# ── Dispatcher ───────────────────────────────────────────────────────────────


class HealthDispatcher:
    """Maps a path to an endpoint and evaluates it into a HealthReport."""

    def __init__(
        self,
        liveness: Sequence[Check] | None = None,
        readiness: Sequence[Check] | None = None,
        deep_critical: Sequence[Check] = (),
        deep_secondary: Sequence[Check] = (),
        *,
        cache: str | bool | None = True,
        cache_ttl: float = DEFAULT_TTL_SECONDS,
        cache_max_size: int = DEFAULT_MAX_SIZE,
        authorization: Authorization = None,
        liveness_path: str = "/liveness",
        readiness_path: str = "/readiness",
        deep_path: str = "/deep",
    ) -> None:
        self.liveness_checks = list(liveness) if liveness is not None else [FileSystemCheck()]
        self.readiness_checks = list(readiness) if readiness is not None else [FileSystemCheck()]
        self.deep_critical_checks = list(deep_critical)
        self.deep_secondary_checks = list(deep_secondary)
        self.authorization = authorization

        self._paths = _validate_paths({
            LIVENESS: liveness_path,
            READINESS: readiness_path,
            DEEP: deep_path,
        })
        self._cache = cache_factory(cache, ttl=cache_ttl, max_size=cache_max_size)
        self._secondary_names = {check_name(c) for c in self.deep_secondary_checks}

    @property
    def cache(self) -> Cache:
        return self._cache

    @property
    def paths(self) -> dict[str, str]:
        return dict(self._paths)

    def endpoint_for(self, path: str) -> str | None:
        for endpoint, endpoint_path in self._paths.items():
            if path == endpoint_path:
                return endpoint
        return None

    def is_required(self, name: str) -> bool:
        return str(name) not in self._secondary_names

    def handle(self, endpoint: str, request: Any) -> HealthReport:
        """Authorize (deep only) and evaluate an endpoint."""
        if endpoint == DEEP and not authorize(request, self.authorization):
            logger.warning("Deep health check authorization failed")
            return AUTH_FAILED_REPORT
        return self.evaluate(endpoint)

    def evaluate(self, endpoint: str) -> HealthReport:
        if endpoint == LIVENESS:
            return self._binary_report(self.liveness_checks)
        if endpoint == READINESS:
            return self._binary_report(self.readiness_checks)
        if endpoint == DEEP:
            return self._cache.cached(DEEP_CACHE_KEY, self._deep_report)
        raise ValueError(f"Unknown health endpoint: {endpoint}")

    def _components(self, checks: Sequence[Check]) -> list[Component]:
        return summarize(run_checks(checks), self.is_required)

    def _binary_report(self, checks: Sequence[Check]) -> HealthReport:
        components = self._components(checks)
        return HealthReport(status=overall_status(components), components=components)

    def _deep_report(self) -> HealthReport:
        # Both sets in one run so critical and secondary probes overlap
        n_critical = len(self.deep_critical_checks)
        components = self._components(self.deep_critical_checks + self.deep_secondary_checks)
        critical, secondary = components[:n_critical], components[n_critical:]
        return HealthReport(status=deep_status(critical, secondary), components=components)


def _validate_paths(paths: dict[str, str]) -> dict[str, str]:
    for endpoint, path in paths.items():
        if not isinstance(path, str) or not path.startswith("/"):
            raise ConfigurationError(f"{endpoint} path must start with '/', got {path!r}")
    if len(set(paths.values())) != len(paths):
        raise ConfigurationError(f"Health endpoint paths must be distinct: {paths}")
    return paths


def render_report(report: HealthReport) -> JSONResponse:
    return JSONResponse(status_code=report.status_code, content=report.to_dict())


# ── Middleware ───────────────────────────────────────────────────────────────


class HealthCheckMiddleware(BaseHTTPMiddleware):
    """Answer health paths directly; pass everything else to the app.

    Either hand in a ready ``dispatcher`` or the keyword options that
    ``HealthDispatcher`` accepts.
    """

    def __init__(
        self,
        app: ASGIApp,
        dispatcher: HealthDispatcher | None = None,
        **options: Any,
    ) -> None:
        super().__init__(app)
        if dispatcher is not None and options:
            raise ConfigurationError("Pass either a dispatcher or dispatcher options, not both")
        self.dispatcher = dispatcher or HealthDispatcher(**options)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        endpoint = self.dispatcher.endpoint_for(request.url.path)
        if endpoint is None:
            return await call_next(request)

        # Checks block; keep them off the event loop
        report = await run_in_threadpool(self.dispatcher.handle, endpoint, request)
        logger.debug("Health %s -> %s", endpoint, report.status.value)
        return render_report(report)
