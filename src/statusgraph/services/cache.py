"""Read-through cache used for derived counts and activity buckets."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from threading import Lock
from typing import Any

import redis

from statusgraph.core.settings import settings

logger = logging.getLogger(__name__)


class MemoryCache:
    """In-process cache with per-key expiry.

    Suitable for tests and single-process deployments; values are lost on
    restart and not shared between workers.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[Any, float | None]] = {}
        self._lock = Lock()

    def _live_entry(self, key: str) -> tuple[Any, float | None] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        _, expiry = entry
        if expiry is not None and expiry <= self._clock():
            self._entries.pop(key, None)
            return None
        return entry

    def get(self, key: str) -> Any | None:
        """Return the cached value or None when absent or expired."""
        with self._lock:
            entry = self._live_entry(key)
            return None if entry is None else entry[0]

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store ``value`` under ``key``, optionally expiring after ``ttl_seconds``."""
        expiry = None if ttl_seconds is None else self._clock() + ttl_seconds
        with self._lock:
            self._entries[key] = (value, expiry)

    def fetch(self, key: str, ttl_seconds: int, compute: Callable[[], int]) -> int:
        """Return the cached integer for ``key``, computing and storing it on a miss."""
        cached = self.get(key)
        if cached is not None:
            return int(cached)
        logger.debug("Cache miss for %s", key)
        value = compute()
        self.set(key, value, ttl_seconds)
        return value

    def increment(self, key: str, ttl_seconds: int | None = None) -> int:
        """Atomically add one to ``key`` and return the new value."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                value = 1
                expiry = None if ttl_seconds is None else self._clock() + ttl_seconds
            else:
                value = int(entry[0]) + 1
                expiry = entry[1] if ttl_seconds is None else self._clock() + ttl_seconds
            self._entries[key] = (value, expiry)
            return value

    def delete(self, key: str) -> None:
        """Drop ``key`` if present."""
        with self._lock:
            self._entries.pop(key, None)


class RedisCache:
    """Cache backed by Redis, shared between processes."""

    def __init__(self, client: redis.Redis | None = None) -> None:
        self._redis = client if client is not None else redis.from_url(
            settings.redis_url,
            decode_responses=True,
        )

    def get(self, key: str) -> Any | None:
        """Return the cached value or None when absent."""
        return self._redis.get(key)

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store ``value`` under ``key``, optionally expiring after ``ttl_seconds``."""
        self._redis.set(key, value, ex=ttl_seconds)

    def fetch(self, key: str, ttl_seconds: int, compute: Callable[[], int]) -> int:
        """Return the cached integer for ``key``, computing and storing it on a miss."""
        cached = self._redis.get(key)
        if cached is not None:
            return int(cached)
        logger.debug("Cache miss for %s", key)
        value = compute()
        self._redis.set(key, value, ex=ttl_seconds)
        return value

    def increment(self, key: str, ttl_seconds: int | None = None) -> int:
        """Atomically add one to ``key`` and return the new value."""
        pipe = self._redis.pipeline()
        pipe.incr(key)
        if ttl_seconds is not None:
            pipe.expire(key, ttl_seconds)
        value, *_ = pipe.execute()
        return int(value)

    def delete(self, key: str) -> None:
        """Drop ``key`` if present."""
        self._redis.delete(key)


Cache = MemoryCache | RedisCache

_default_cache: Cache | None = None
_DEFAULT_LOCK = Lock()


def get_cache() -> Cache:
    """Return the process-wide cache selected by ``CACHE_BACKEND``."""
    global _default_cache
    with _DEFAULT_LOCK:
        if _default_cache is None:
            if settings.cache_backend == "redis":
                _default_cache = RedisCache()
            else:
                _default_cache = MemoryCache()
        return _default_cache
