"""Search components: query processing, vector and keyword scoring, caching, metrics."""

from .keyword_search import KeywordSearchService
from .query_processor import QueryProcessor
from .search_cache import CacheEntry, SearchResultCache
from .search_metrics import SearchMetricsCollector
from .vector_search import VectorSearchService

__all__ = [
    "KeywordSearchService",
    "QueryProcessor",
    "CacheEntry",
    "SearchResultCache",
    "SearchMetricsCollector",
    "VectorSearchService",
]
