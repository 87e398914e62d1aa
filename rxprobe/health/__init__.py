"""Health subsystem — check engine, aggregation, deep-check cache."""

from .aggregate import Component, HealthReport, Status, deep_status, overall_status, summarize
from .cache import LRUCache, MapCache, NoOpCache, cache_factory
from .checks import DatabaseCheck, FileSystemCheck, GenericCheck, HttpCheck, TcpCheck
from .engine import Check, Result, run_checks

__all__ = [
    "Check",
    "Component",
    "DatabaseCheck",
    "FileSystemCheck",
    "GenericCheck",
    "HealthReport",
    "HttpCheck",
    "LRUCache",
    "MapCache",
    "NoOpCache",
    "Result",
    "Status",
    "TcpCheck",
    "cache_factory",
    "deep_status",
    "overall_status",
    "run_checks",
    "summarize",
]
