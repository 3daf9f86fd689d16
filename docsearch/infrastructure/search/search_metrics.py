"""Thread-safe search counters and latency tracking."""

import threading
from typing import Any, Dict

import structlog

from docsearch.domain.entities import SearchMode

logger = structlog.get_logger(__name__)


class SearchMetricsCollector:
    """Counts searches per method, cache hits and a running mean latency.

    Branch searches issued internally by a hybrid search are counted under
    their own method but excluded from ``total_searches`` and latency.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._reset_unlocked()

    def _reset_unlocked(self) -> None:
        self._counts = {
            "total_searches": 0,
            "vector_searches": 0,
            "keyword_searches": 0,
            "hybrid_searches": 0,
            "cache_hits": 0,
        }
        self._average_latency_ms = 0.0

    def record_search(self, mode: SearchMode, latency_ms: float, internal: bool = False) -> None:
        with self._lock:
            self._counts[f"{SearchMode(mode).value}_searches"] += 1
            if internal:
                return
            self._counts["total_searches"] += 1
            total = self._counts["total_searches"]
            self._average_latency_ms += (latency_ms - self._average_latency_ms) / total

    def record_cache_hit(self) -> None:
        with self._lock:
            self._counts["cache_hits"] += 1

    def get_metrics(self) -> Dict[str, Any]:
        with self._lock:
            total = self._counts["total_searches"]
            return {
                **self._counts,
                "average_latency_ms": round(self._average_latency_ms, 2),
                "cache_hit_rate": self._counts["cache_hits"] / total if total else 0.0,
            }

    def reset(self) -> None:
        with self._lock:
            self._reset_unlocked()
        logger.info("Search metrics reset")


__all__ = ["SearchMetricsCollector"]
