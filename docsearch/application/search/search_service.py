"""
Document search application service.

Orchestrates a search request end to end:
- Query preparation and empty-query short-circuit
- Cache lookup keyed by mode, query, filters, paging and threshold
- Concurrent vector and keyword branches over the filtered corpus
- Hybrid fusion, degraded keyword-only ranking when embeddings are unavailable
- Sorting, pagination and metrics
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog

from docsearch.application.search.hybrid_search import HybridCombiner
from docsearch.core.scoring_config import ScoringConfig
from docsearch.domain.entities import (
    QueryVariants,
    SearchableDocument,
    SearchHit,
    SearchMode,
    SearchOptions,
    SearchPage,
    SearchResult,
    SortField,
    SortOrder,
)
from docsearch.domain.exceptions import EmbeddingGenerationError
from docsearch.domain.interfaces import IDocumentStore, IEmbeddingRepository, IHealthCheck
from docsearch.infrastructure.ai.embedding_service import EmbeddingService
from docsearch.infrastructure.search.keyword_search import KeywordSearchService
from docsearch.infrastructure.search.query_processor import QueryProcessor
from docsearch.infrastructure.search.search_cache import SearchResultCache
from docsearch.infrastructure.search.search_metrics import SearchMetricsCollector
from docsearch.infrastructure.search.vector_search import VectorSearchService

logger = structlog.get_logger(__name__)

_SORT_ATTRIBUTES = {
    SortField.RATING: lambda d: d.average_rating,
    SortField.DOWNLOADS: lambda d: d.download_count,
    SortField.VIEWS: lambda d: d.view_count,
    SortField.DATE: lambda d: d.created_at.timestamp(),
}


class DocumentSearchService(IHealthCheck):
    """
    Hybrid document search.

    Features:
    - Vector, keyword and hybrid modes
    - Typed filters applied before scoring
    - Result page caching with TTL
    - Graceful degradation to keyword ranking on embedding failures
    """

    def __init__(
        self,
        scoring: ScoringConfig,
        document_store: IDocumentStore,
        embedding_repository: IEmbeddingRepository,
        embedding_service: EmbeddingService,
        query_processor: QueryProcessor,
        vector_search: VectorSearchService,
        keyword_search: KeywordSearchService,
        combiner: HybridCombiner,
        cache: SearchResultCache,
        metrics: SearchMetricsCollector,
    ):
        self.scoring = scoring
        self.document_store = document_store
        self.embedding_repository = embedding_repository
        self.embedding_service = embedding_service
        self.query_processor = query_processor
        self.vector_search = vector_search
        self.keyword_search = keyword_search
        self.combiner = combiner
        self.cache = cache
        self.metrics = metrics

    def default_threshold(self, mode: SearchMode) -> float:
        thresholds = self.scoring.search_thresholds
        if mode == SearchMode.VECTOR:
            return thresholds.vector
        if mode == SearchMode.KEYWORD:
            return thresholds.keyword
        return thresholds.hybrid

    def cache_key(self, options: SearchOptions, variants: QueryVariants, threshold: float) -> str:
        filters = options.filters.to_cache_dict()
        filters.update(page=options.page, sort=options.sort.value, order=options.order.value)
        return self.cache.generate_key(options.mode.value, variants.trimmed, filters, options.limit, threshold)

    async def search(self, options: SearchOptions) -> SearchPage:
        """
        Execute a search request.

        Args:
            options: Query, filters, paging, sort and mode

        Returns:
            One page of ranked hits
        """
        start_time = time.perf_counter()
        variants = self.query_processor.prepare(options.query)

        if variants.is_empty:
            self.metrics.record_search(options.mode, self._elapsed_ms(start_time))
            logger.debug("Empty query short-circuited", mode=options.mode.value)
            return SearchPage.empty(options)

        threshold = options.threshold if options.threshold is not None else self.default_threshold(options.mode)
        key = self.cache_key(options, variants, threshold)

        cached = await self._cache_get(key)
        if cached is not None:
            elapsed_ms = self._elapsed_ms(start_time)
            self.metrics.record_cache_hit()
            self.metrics.record_search(options.mode, elapsed_ms)
            return replace(cached, cache_hit=True, search_time_ms=elapsed_ms)

        documents = await self.document_store.list_documents(options.filters)
        ranked, degraded = await self._rank(options.mode, variants, documents, threshold)

        documents_by_id = {document.id: document for document in documents}
        ordered = self._apply_sort(ranked, documents_by_id, options.sort, options.order)
        page_results = ordered[options.offset: options.offset + options.limit]

        elapsed_ms = self._elapsed_ms(start_time)
        page = SearchPage(
            hits=tuple(SearchHit(document=documents_by_id[r.document_id], result=r) for r in page_results),
            total=len(ordered),
            page=options.page,
            limit=options.limit,
            search_method=options.mode,
            degraded=degraded,
            search_time_ms=elapsed_ms,
        )

        if not degraded:
            # Degraded pages would outlive a recovered embedding provider
            await self._cache_set(key, page)
        self.metrics.record_search(options.mode, elapsed_ms)

        logger.info(
            "Search completed",
            mode=options.mode.value,
            query=variants.trimmed,
            candidates=len(documents),
            total_results=page.total,
            degraded=degraded,
            search_time_ms=round(elapsed_ms, 2),
        )
        return page

    async def _rank(
        self,
        mode: SearchMode,
        variants: QueryVariants,
        documents: Sequence[SearchableDocument],
        threshold: float,
    ) -> Tuple[List[SearchResult], bool]:
        if not documents:
            return [], False

        if mode == SearchMode.KEYWORD:
            return self.keyword_search.search(variants, documents, threshold), False

        if mode == SearchMode.VECTOR:
            try:
                return await self._vector_branch(variants, documents, threshold), False
            except EmbeddingGenerationError as e:
                return self._degrade(variants, documents, e), True

        thresholds = self.scoring.search_thresholds
        vector_outcome, keyword_outcome = await asyncio.gather(
            self._vector_branch(variants, documents, thresholds.vector, internal=True),
            self._keyword_branch(variants, documents, thresholds.keyword),
            return_exceptions=True,
        )

        if isinstance(keyword_outcome, BaseException):
            logger.error("Keyword branch failed", error=str(keyword_outcome))
            keyword_outcome = []

        if isinstance(vector_outcome, BaseException):
            if not isinstance(vector_outcome, EmbeddingGenerationError):
                logger.error("Vector branch failed", error=str(vector_outcome))
            return self._degrade(variants, documents, vector_outcome, keyword_outcome), True

        weights = self.scoring.hybrid
        combined = self.combiner.combine(vector_outcome, keyword_outcome, weights.vector, weights.text, threshold)

        if not combined and keyword_outcome:
            logger.info("Hybrid search empty, falling back to keyword results", query=variants.trimmed)
            combined = self.combiner.combine([], keyword_outcome, 0.0, 1.0, thresholds.keyword)

        return combined, False

    def _degrade(
        self,
        variants: QueryVariants,
        documents: Sequence[SearchableDocument],
        error: BaseException,
        keyword_results: Optional[List[SearchResult]] = None,
    ) -> List[SearchResult]:
        logger.warning("Search degraded to keyword-only ranking", query=variants.trimmed, error=str(error))
        keyword_threshold = self.scoring.search_thresholds.keyword
        if keyword_results is None:
            keyword_results = self.keyword_search.search(variants, documents, keyword_threshold)
        return self.combiner.combine([], keyword_results, 0.0, 1.0, keyword_threshold)

    async def _vector_branch(
        self,
        variants: QueryVariants,
        documents: Sequence[SearchableDocument],
        threshold: float,
        internal: bool = False,
    ) -> List[SearchResult]:
        start_time = time.perf_counter()
        query_embedding = await self.embedding_service.get_embedding(variants.embedding_text)
        embeddings = await self.embedding_repository.get_many(document.id for document in documents)
        results = self.vector_search.search(
            query_embedding,
            documents,
            embeddings,
            threshold,
            model_version=self.embedding_service.model_version,
        )
        if internal:
            self.metrics.record_search(SearchMode.VECTOR, self._elapsed_ms(start_time), internal=True)
        return results

    async def _keyword_branch(
        self,
        variants: QueryVariants,
        documents: Sequence[SearchableDocument],
        threshold: float,
    ) -> List[SearchResult]:
        start_time = time.perf_counter()
        results = self.keyword_search.search(variants, documents, threshold)
        self.metrics.record_search(SearchMode.KEYWORD, self._elapsed_ms(start_time), internal=True)
        return results

    @staticmethod
    def _apply_sort(
        ranked: List[SearchResult],
        documents_by_id: Dict[str, SearchableDocument],
        sort: SortField,
        order: SortOrder,
    ) -> List[SearchResult]:
        """Relevance keeps the ranked order; other fields sort stably so ties stay in relevance order."""
        if sort == SortField.RELEVANCE:
            return list(ranked)
        attribute = _SORT_ATTRIBUTES[sort]
        return sorted(
            ranked,
            key=lambda r: attribute(documents_by_id[r.document_id]),
            reverse=order == SortOrder.DESC,
        )

    async def _cache_get(self, key: str) -> Optional[SearchPage]:
        try:
            return await self.cache.get(key)
        except Exception as e:
            logger.warning("Search cache read failed", error=str(e))
            return None

    async def _cache_set(self, key: str, page: SearchPage) -> None:
        try:
            await self.cache.set(key, page)
        except Exception as e:
            logger.warning("Search cache write failed", error=str(e))

    async def clear_caches(self) -> Dict[str, int]:
        """Drop cached search pages and embeddings."""
        search_entries = await self.cache.clear()
        embedding_entries = await self.embedding_service.cache.clear()
        return {"search_entries": search_entries, "embedding_entries": embedding_entries}

    def get_metrics(self) -> Dict[str, Any]:
        return {
            **self.metrics.get_metrics(),
            "search_cache": self.cache.get_stats(),
            "embeddings": self.embedding_service.get_metrics(),
        }

    async def check_health(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "service": "DocumentSearchService",
            "metrics": self.metrics.get_metrics(),
        }

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000


__all__ = ["DocumentSearchService"]
