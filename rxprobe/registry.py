"""Check registry — loads checks.yaml and builds the four check sets.

Both the server and the CLI build their dispatcher from this. A missing file is
not an error: liveness and readiness fall back to a filesystem check and the
deep sets stay empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError
from .health.checks import DatabaseCheck, FileSystemCheck, HttpCheck, TcpCheck
from .health.engine import Check

logger = logging.getLogger(__name__)


# ── Data models ──────────────────────────────────────────────────────────────


@dataclass
class CheckDef:
    """Definition of a single check from the registry."""

    type: str  # filesystem | database | http | tcp
    name: str = ""
    url: str = ""
    hostname: str = ""
    port: int = 0
    method: str = "GET"
    expected_status: int = 200
    timeout_ms: int = 10_000
    dsn: str = ":memory:"
    directory: str | None = None


@dataclass
class CheckSets:
    """Check sets for the three endpoints; deep is split by weight."""

    liveness: list[Check] = field(default_factory=list)
    readiness: list[Check] = field(default_factory=list)
    deep_critical: list[Check] = field(default_factory=list)
    deep_secondary: list[Check] = field(default_factory=list)

    def names(self) -> dict[str, list[str]]:
        return {
            "liveness": [c.name for c in self.liveness],
            "readiness": [c.name for c in self.readiness],
            "deep_critical": [c.name for c in self.deep_critical],
            "deep_secondary": [c.name for c in self.deep_secondary],
        }


def default_check_sets() -> CheckSets:
    return CheckSets(liveness=[FileSystemCheck()], readiness=[FileSystemCheck()])


# ── Builders ─────────────────────────────────────────────────────────────────


def _build_filesystem(d: CheckDef) -> Check:
    return FileSystemCheck(name=d.name or "fs", directory=d.directory)


def _build_database(d: CheckDef) -> Check:
    return DatabaseCheck(name=d.name or "database", dsn=d.dsn, timeout_ms=d.timeout_ms)


def _build_http(d: CheckDef) -> Check:
    if not d.url:
        raise ConfigurationError(f"HTTP check {d.name or '<unnamed>'!r} needs a url")
    return HttpCheck(
        name=d.name or d.url, url=d.url, method=d.method,
        expected_status=d.expected_status, timeout_ms=d.timeout_ms,
    )


def _build_tcp(d: CheckDef) -> Check:
    if not d.hostname or not d.port:
        raise ConfigurationError(f"TCP check {d.name or '<unnamed>'!r} needs hostname and port")
    return TcpCheck(
        name=d.name or f"{d.hostname}:{d.port}",
        hostname=d.hostname, port=d.port, timeout_ms=d.timeout_ms,
    )


# Dispatcher
CHECK_BUILDERS = {
    "filesystem": _build_filesystem,
    "fs": _build_filesystem,
    "database": _build_database,
    "http": _build_http,
    "tcp": _build_tcp,
}


def build_check(check_def: CheckDef) -> Check:
    """Turn a definition into a concrete check by type."""
    builder = CHECK_BUILDERS.get(check_def.type)
    if not builder:
        raise ConfigurationError(f"Unknown check type: {check_def.type}")
    return builder(check_def)


# ── Registry ─────────────────────────────────────────────────────────────────


class CheckRegistry:
    """Loads and caches check sets from checks.yaml."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path("checks.yaml")
        self._sets: CheckSets | None = None

    def load(self, force: bool = False) -> CheckSets:
        """Parse the checks file and return the built check sets."""
        if self._sets is not None and not force:
            return self._sets

        if not self._path.exists():
            logger.info("Checks file not found: %s, using defaults", self._path)
            self._sets = default_check_sets()
            return self._sets

        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to read {self._path}: {e}") from e

        self._sets = parse_check_sets(raw or {})
        logger.info(
            "Loaded checks from %s: %s",
            self._path,
            {k: len(v) for k, v in self._sets.names().items()},
        )
        return self._sets

    def reload(self) -> CheckSets:
        """Force reload from disk."""
        return self.load(force=True)

    def register(self, endpoint: str, check: Check) -> None:
        """Add a caller-supplied check (e.g. a GenericCheck) to one set."""
        sets = self.load()
        target = getattr(sets, endpoint, None)
        if not isinstance(target, list):
            raise ConfigurationError(f"Unknown check set: {endpoint}")
        target.append(check)


# ── Parsers ──────────────────────────────────────────────────────────────────


def parse_check_sets(raw: Any) -> CheckSets:
    if not isinstance(raw, dict):
        raise ConfigurationError("Checks file must contain a mapping at the top level")

    deep = raw.get("deep") or {}
    if not isinstance(deep, dict):
        raise ConfigurationError("'deep' must be a mapping with 'critical' and 'secondary'")

    sets = CheckSets(
        liveness=_parse_list(raw, "liveness"),
        readiness=_parse_list(raw, "readiness"),
        deep_critical=_parse_list(deep, "critical"),
        deep_secondary=_parse_list(deep, "secondary"),
    )
    # Endpoints without a section keep the filesystem default
    if "liveness" not in raw:
        sets.liveness = [FileSystemCheck()]
    if "readiness" not in raw:
        sets.readiness = [FileSystemCheck()]
    return sets


def _parse_list(raw: dict[str, Any], key: str) -> list[Check]:
    entries = raw.get(key) or []
    if not isinstance(entries, list):
        raise ConfigurationError(f"'{key}' must be a list of checks")
    return [build_check(_parse_check_def(e)) for e in entries]


def _parse_check_def(raw: Any) -> CheckDef:
    if not isinstance(raw, dict) or "type" not in raw:
        raise ConfigurationError(f"Malformed check entry: {raw!r}")
    try:
        return _check_def_from(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Malformed check entry {raw!r}: {e}") from e


def _check_def_from(raw: dict[str, Any]) -> CheckDef:
    return CheckDef(
        type=str(raw["type"]).lower(),
        name=str(raw.get("name") or ""),
        url=raw.get("url", ""),
        hostname=raw.get("hostname", ""),
        port=int(raw.get("port", 0)),
        method=raw.get("method", "GET"),
        expected_status=int(raw.get("expected_status", 200)),
        timeout_ms=int(raw.get("timeout_ms", 10_000)),
        dsn=raw.get("dsn", ":memory:"),
        directory=raw.get("directory"),
    )
