"""In-memory read-through cache with TTL, version invalidation and FIFO eviction."""

import copy
import logging
import threading
import time
from typing import Any, Callable, NamedTuple, Optional

from cachetools import FIFOCache

from .. import config

logger = logging.getLogger(__name__)

# Returned by get() when the key is not usable; distinct from a cached None
MISS = object()


class _Entry(NamedTuple):
    value: Any
    stored_at: float
    version: int


class ReadThroughCache:
    """Thread-safe cache of decoded collections keyed by storage key.

    Entries expire after ``ttl`` seconds, and a global invalidation bumps a
    version so every older entry misses. Values are deep-copied on the way
    in and out so callers never share state with the cache. When full, the
    oldest inserted key is evicted first.

    A ``ttl`` of zero disables the cache: ``get`` always misses.
    """

    def __init__(
        self,
        ttl: float = config.CACHE_TTL_MS / 1000.0,
        maxsize: int = config.CACHE_MAX_SIZE,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._timer = timer
        self._entries: FIFOCache = FIFOCache(maxsize=max(1, maxsize))
        self._version = 0
        self._hits = 0
        self._misses = 0

        # Lock for thread safety
        self._lock = threading.RLock()

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    @property
    def version(self) -> int:
        return self._version

    def get(self, key: str) -> Any:
        """Get an independent copy of a cached value.

        Args:
            key: The storage key

        Returns:
            The cached value, or MISS if absent, expired or outdated
        """
        if not self.enabled:
            return MISS

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return MISS

            expired = self._timer() - entry.stored_at > self.ttl
            if expired or entry.version < self._version:
                del self._entries[key]
                self._misses += 1
                return MISS

            self._hits += 1
            return copy.deepcopy(entry.value)

    def set(self, key: str, value: Any) -> None:
        """Cache a copy of a value.

        Args:
            key: The storage key
            value: The decoded value
        """
        if not self.enabled:
            return

        with self._lock:
            # Re-inserting moves the key to the back of the eviction queue
            self._entries.pop(key, None)
            self._entries[key] = _Entry(copy.deepcopy(value), self._timer(), self._version)

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one key, or everything when key is None.

        Args:
            key: The storage key, or None for a global invalidation
        """
        with self._lock:
            if key is not None:
                self._entries.pop(key, None)
            else:
                self._entries.clear()
                self._version += 1
                logger.debug(f"Cache invalidated, version {self._version}")

    def stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with size, maxsize, version, hits, misses and keys
        """
        with self._lock:
            return {
                "enabled": self.enabled,
                "size": len(self._entries),
                "maxsize": self._entries.maxsize,
                "version": self._version,
                "hits": self._hits,
                "misses": self._misses,
                "keys": list(self._entries.keys()),
            }
