"""
Bounded in-memory cache of text embeddings.

Entries are keyed by model version and a SHA-256 digest of the text, so
switching models never serves a vector produced by another model. The oldest
inserted entry is evicted first once the cache is full.
"""

import asyncio
import hashlib
from collections import OrderedDict
from typing import Any, Dict, List, Optional

import structlog

logger = structlog.get_logger(__name__)


class EmbeddingCache:
    """FIFO-bounded embedding cache guarded by an asyncio lock."""

    def __init__(self, max_size: int = 1500):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._entries: "OrderedDict[str, List[float]]" = OrderedDict()
        self._lock = asyncio.Lock()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "evictions": 0,
        }

    @staticmethod
    def make_key(text: str, model_version: str) -> str:
        digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
        return f"{model_version}:{digest}"

    async def get(self, text: str, model_version: str) -> Optional[List[float]]:
        key = self.make_key(text, model_version)
        async with self._lock:
            vector = self._entries.get(key)
            if vector is None:
                self._stats["misses"] += 1
                return None
            self._stats["hits"] += 1
            return list(vector)

    async def set(self, text: str, model_version: str, vector: List[float]) -> None:
        key = self.make_key(text, model_version)
        async with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                evicted_key, _ = self._entries.popitem(last=False)
                self._stats["evictions"] += 1
                logger.debug("Embedding cache eviction", key=evicted_key)
            self._entries[key] = list(vector)
            self._stats["sets"] += 1

    async def clear(self) -> int:
        async with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Embedding cache cleared", count=count)
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        lookups = self._stats["hits"] + self._stats["misses"]
        return {
            **self._stats,
            "size": len(self._entries),
            "max_size": self.max_size,
            "hit_rate": self._stats["hits"] / lookups if lookups else 0.0,
        }


__all__ = ["EmbeddingCache"]
