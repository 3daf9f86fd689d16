"""
Search Result Cache - bounded TTL cache of ranked search pages.
"""

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

import structlog

from docsearch.domain.interfaces import IHealthCheck

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_KEY_LIMIT = 10
DEFAULT_KEY_THRESHOLD = 0.5


@dataclass
class CacheEntry(Generic[T]):
    """Cached value with its insertion time"""
    data: T
    timestamp: float


class SearchResultCache(IHealthCheck, Generic[T]):
    """In-memory search cache with lazy expiry and oldest-first eviction.

    Cache failures are logged and reported as misses; they never reach the
    search caller.
    """

    def __init__(
        self,
        max_size: int = 500,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._cache: Dict[str, CacheEntry[T]] = {}
        self._lock = asyncio.Lock()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "evictions": 0,
            "expirations": 0,
        }

    @staticmethod
    def generate_key(
        search_type: str,
        query: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> str:
        """Deterministic key; equal inputs always produce equal keys."""
        filters_json = json.dumps(filters or {}, sort_keys=True, separators=(",", ":"), default=str)
        return (
            f"{search_type}:{query}:{filters_json}:"
            f"{limit or DEFAULT_KEY_LIMIT}:{DEFAULT_KEY_THRESHOLD if threshold is None else threshold}"
        )

    async def get(self, key: str) -> Optional[T]:
        """Get a live entry; expired or corrupt entries are evicted and count as misses."""
        async with self._lock:
            entry = self._cache.get(key)

            if entry is None:
                self._stats["misses"] += 1
                return None

            if not isinstance(entry, CacheEntry):
                del self._cache[key]
                self._stats["misses"] += 1
                logger.warning("Corrupt search cache entry dropped", key=key)
                return None

            if self._clock() - entry.timestamp > self.ttl_seconds:
                del self._cache[key]
                self._stats["misses"] += 1
                self._stats["expirations"] += 1
                logger.debug("Search cache expired", key=key)
                return None

            self._stats["hits"] += 1
            logger.debug("Search cache hit", key=key)
            return entry.data

    async def set(self, key: str, value: T) -> bool:
        """Store a value, evicting the oldest insertion when full."""
        async with self._lock:
            try:
                if key in self._cache:
                    # Re-inserting moves the key to the newest position
                    del self._cache[key]
                elif len(self._cache) >= self.max_size:
                    oldest_key = next(iter(self._cache))
                    del self._cache[oldest_key]
                    self._stats["evictions"] += 1
                    logger.debug("Search cache eviction", key=oldest_key)

                self._cache[key] = CacheEntry(data=value, timestamp=self._clock())
                self._stats["sets"] += 1
                return True

            except Exception as e:
                logger.error("Search cache set failed", key=key, error=str(e))
                return False

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._cache.pop(key, None) is not None

    async def clear(self) -> int:
        async with self._lock:
            count = len(self._cache)
            self._cache.clear()
        logger.info("Search cache cleared", count=count)
        return count

    def __len__(self) -> int:
        return len(self._cache)

    def get_stats(self) -> Dict[str, Any]:
        lookups = self._stats["hits"] + self._stats["misses"]
        return {
            **self._stats,
            "size": len(self._cache),
            "max_size": self.max_size,
            "ttl_seconds": self.ttl_seconds,
            "hit_rate": self._stats["hits"] / lookups if lookups else 0.0,
        }

    async def check_health(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "service": "SearchResultCache",
            "cache_size": len(self._cache),
            "max_size": self.max_size,
            "stats": self._stats.copy(),
        }


__all__ = ["SearchResultCache", "CacheEntry"]
