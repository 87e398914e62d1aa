"""FastAPI server exposing the health endpoints."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request

from rxprobe import __version__
from rxprobe.api.middleware import HealthCheckMiddleware, HealthDispatcher
from rxprobe.config import Settings, settings
from rxprobe.registry import CheckRegistry, CheckSets

logger = logging.getLogger(__name__)


def resolve_checks_file(cfg: Settings) -> Path:
    path = Path(cfg.checks_file)
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


def build_dispatcher(cfg: Settings, check_sets: CheckSets) -> HealthDispatcher:
    """Wire settings and loaded check sets into a dispatcher."""
    return HealthDispatcher(
        liveness=check_sets.liveness,
        readiness=check_sets.readiness,
        deep_critical=check_sets.deep_critical,
        deep_secondary=check_sets.deep_secondary,
        cache=cfg.cache,
        cache_ttl=cfg.cache_ttl_seconds,
        cache_max_size=cfg.cache_max_size,
        authorization=cfg.authorization or None,
        liveness_path=cfg.liveness_path,
        readiness_path=cfg.readiness_path,
        deep_path=cfg.deep_path,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    dispatcher: HealthDispatcher = app.state.health_dispatcher
    logger.info(
        "Health endpoints ready: %s (cache=%s)",
        ", ".join(dispatcher.paths.values()),
        type(dispatcher.cache).__name__,
    )
    yield


def create_app(
    cfg: Settings | None = None,
    check_sets: CheckSets | None = None,
) -> FastAPI:
    """Create the FastAPI application with the health middleware installed.

    Configuration problems raise ``ConfigurationError`` here, not on the
    first request.
    """
    cfg = cfg or settings
    if check_sets is None:
        check_sets = CheckRegistry(path=resolve_checks_file(cfg)).load()

    dispatcher = build_dispatcher(cfg, check_sets)

    app = FastAPI(
        title="rxprobe — Health Endpoints",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.health_dispatcher = dispatcher
    app.add_middleware(HealthCheckMiddleware, dispatcher=dispatcher)

    @app.get("/")
    def service_info(request: Request) -> dict[str, Any]:
        """Service metadata, including where the health endpoints live."""
        return {
            "name": "rxprobe",
            "version": __version__,
            "health": request.app.state.health_dispatcher.paths,
        }

    return app
