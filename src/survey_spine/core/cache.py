"""
Result memoization backends.

The compute orchestrator memoizes finished results under the deterministic
request key built by ``survey_spine.compute.cache_key``. Any object matching
``CacheBackend`` can be plugged in; ``InMemoryCache`` ships for single-process
deployments and tests.

Architecture:
    ::

        CacheBackend (Protocol)
        └── InMemoryCache  : single-process, bounded LRU with TTL

        API: get(key) → value | None
             set(key, value, ttl_seconds=None)
             delete(key)
             exists(key) → bool
             clear()

Examples:
    >>> cache = InMemoryCache(max_size=100, default_ttl_seconds=60)
    >>> cache.set("generic(...)", [{"editionId": "js2023", "buckets": []}])
    >>> cache.exists("generic(...)")
    True
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheBackend(Protocol):
    """Protocol for cache backend implementations.

    Keys are strings, values are JSON-serializable.
    """

    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` if missing or expired."""
        ...

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        """Store a value with optional TTL (``None`` → default TTL)."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key. No-op if absent."""
        ...

    def exists(self, key: str) -> bool:
        """Check if a key exists and has not expired."""
        ...

    def clear(self) -> None:
        """Remove all keys."""
        ...


class InMemoryCache:
    """Bounded in-memory cache with TTL support.

    Uses LRU eviction when ``max_size`` is reached. Guarded by a lock so
    concurrent requests in one process can share it.

    Example:
        cache = InMemoryCache(max_size=500, default_ttl_seconds=1800)
        cache.set(key, payload)
        payload = cache.get(key)
    """

    def __init__(
        self,
        *,
        max_size: int = 1000,
        default_ttl_seconds: int | None = 3600,
    ):
        self._store: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()
        self._max_size = max_size
        self._default_ttl = default_ttl_seconds
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Retrieve a value by key."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if expires_at is not None and time.time() > expires_at:
                del self._store[key]
                return None

            self._store.move_to_end(key)
            return value

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        """Store a value with optional TTL."""
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        expires_at = (time.time() + ttl) if ttl else None

        with self._lock:
            if key not in self._store and len(self._store) >= self._max_size:
                self._store.popitem(last=False)
            self._store[key] = (value, expires_at)
            self._store.move_to_end(key)

    def delete(self, key: str) -> None:
        """Remove a key from the cache."""
        with self._lock:
            self._store.pop(key, None)

    def exists(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        return self.get(key) is not None

    def clear(self) -> None:
        """Remove all keys."""
        with self._lock:
            self._store.clear()

    def size(self) -> int:
        """Return current number of cached keys."""
        return len(self._store)
