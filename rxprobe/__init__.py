"""rxprobe — liveness, readiness and deep health endpoints for ASGI services."""

__version__ = "0.1.0"
