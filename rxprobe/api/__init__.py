"""HTTP surface — health middleware and the FastAPI app factory."""

from .middleware import HealthCheckMiddleware, HealthDispatcher, authorize

__all__ = ["HealthCheckMiddleware", "HealthDispatcher", "authorize"]
