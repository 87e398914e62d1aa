"""Short-lived caches for expensive aggregate checks.

All strategies expose ``cached(key, compute)``. ``compute`` always runs
outside the lock, so two concurrent misses on the same key may both compute;
the later write wins.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any, TypeVar

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

V = TypeVar("V")

DEFAULT_TTL_SECONDS = 5.0
DEFAULT_MAX_SIZE = 200


class NoOpCache:
    """Passthrough used when caching is disabled."""

    def cached(self, key: str, compute: Callable[[], V]) -> V:
        return compute()


class MapCache:
    """One entry per key with a fixed TTL and no capacity bound."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ConfigurationError(f"Cache TTL must be positive, got {ttl}")
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float, Any]] = {}

    def cached(self, key: str, compute: Callable[[], V]) -> V:
        hit, value = self._lookup(key)
        if hit:
            logger.debug("Cache hit: %s", key)
            return value

        logger.debug("Cache miss: %s", key)
        value = compute()
        self._store(key, value)
        return value

    def _lookup(self, key: str) -> tuple[bool, Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False, None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return False, None
            self._touch(key)
            return True, value

    def _store(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + self.ttl, value)
            self._touch(key)
            self._evict()

    # Hooks for LRUCache; called with the lock held.
    def _touch(self, key: str) -> None:
        pass

    def _evict(self) -> None:
        pass

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[arg-type]
            return entry is not None and self._clock() < entry[0]


class LRUCache(MapCache):
    """TTL cache bounded to ``max_size`` entries, least-recently-used out first."""

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ConfigurationError(f"Cache max_size must be >= 1, got {max_size}")
        super().__init__(ttl=ttl, clock=clock)
        self.max_size = max_size
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()

    def _touch(self, key: str) -> None:
        self._entries.move_to_end(key)

    def _evict(self) -> None:
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Cache evicted: %s", evicted)


Cache = NoOpCache | MapCache

CACHE_STRATEGIES = ("lru", "map", "none")


def cache_factory(
    strategy: str | bool | None,
    ttl: float = DEFAULT_TTL_SECONDS,
    max_size: int = DEFAULT_MAX_SIZE,
) -> Cache:
    """Build a cache from a selector: ``True``/"lru", "map", or ``False``/``None``/"none"."""
    if strategy is True:
        strategy = "lru"
    elif strategy is False or strategy is None:
        strategy = "none"

    selector = str(strategy).strip().lower()
    if selector == "lru":
        return LRUCache(max_size=max_size, ttl=ttl)
    if selector == "map":
        return MapCache(ttl=ttl)
    if selector == "none":
        return NoOpCache()
    raise ConfigurationError(
        f"Unknown cache strategy {strategy!r} (expected one of {', '.join(CACHE_STRATEGIES)})"
    )
