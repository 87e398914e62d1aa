from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "RX_",
        "extra": "ignore",
    }

    # Deep check cache: "lru" | "map" | "none"
    cache: str = "lru"
    cache_ttl_seconds: float = 5.0
    cache_max_size: int = 200

    # Shared token for the deep endpoint (empty = no authorization)
    authorization: str = ""

    # Endpoint paths
    liveness_path: str = "/liveness"
    readiness_path: str = "/readiness"
    deep_path: str = "/deep"

    # Check definitions (absolute or relative to CWD)
    checks_file: str = "checks.yaml"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"

    @field_validator("cache", mode="before")
    @classmethod
    def _normalize_cache(cls, v: object) -> object:
        # RX_CACHE=true / false mirror the boolean switch
        if isinstance(v, bool):
            return "lru" if v else "none"
        if isinstance(v, str):
            lowered = v.strip().lower()
            return {"true": "lru", "false": "none", "": "none"}.get(lowered, lowered)
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()


settings = Settings()
