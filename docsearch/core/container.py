"""
Service Container

Builds every service once per application and hands them out explicitly.
Caches, metrics and background workers are owned by the container instance
rather than module-level singletons, so tests and multiple apps never share
state.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import structlog

from docsearch.application.embedding.embedding_migration import EmbeddingMigrationService
from docsearch.application.search.hybrid_search import HybridCombiner
from docsearch.application.search.search_service import DocumentSearchService
from docsearch.application.similarity.moderation_service import SimilarityModerationService
from docsearch.application.similarity.similarity_service import DetectionLimits, SimilarityDetectionService
from docsearch.application.similarity.sweep_scheduler import SimilaritySweepScheduler
from docsearch.core.config import Settings
from docsearch.core.scoring_config import ScoringConfig
from docsearch.domain.interfaces import (
    IDocumentStore,
    IEmbeddingProvider,
    IEmbeddingRepository,
    ISimilarityRepository,
)
from docsearch.domain.services.similarity_scoring import SimilarityScorer
from docsearch.infrastructure.ai.embedding_cache import EmbeddingCache
from docsearch.infrastructure.ai.embedding_service import EmbeddingService
from docsearch.infrastructure.ai.hashing_provider import HashingEmbeddingProvider
from docsearch.infrastructure.ai.openai_provider import OpenAIEmbeddingProvider
from docsearch.infrastructure.persistence import (
    InMemoryDocumentStore,
    InMemoryEmbeddingRepository,
    InMemorySimilarityRepository,
)
from docsearch.infrastructure.search.keyword_search import KeywordSearchService
from docsearch.infrastructure.search.query_processor import QueryProcessor
from docsearch.infrastructure.search.search_cache import SearchResultCache
from docsearch.infrastructure.search.search_metrics import SearchMetricsCollector
from docsearch.infrastructure.search.vector_search import VectorSearchService
from docsearch.infrastructure.task_manager import TaskManager

logger = structlog.get_logger(__name__)


@dataclass
class ServiceContainer:
    """All wired services of one application instance."""

    settings: Settings
    scoring: ScoringConfig
    document_store: IDocumentStore
    embedding_repository: IEmbeddingRepository
    similarity_repository: ISimilarityRepository
    embedding_provider: IEmbeddingProvider
    embedding_service: EmbeddingService
    search_cache: SearchResultCache
    search_metrics: SearchMetricsCollector
    search_service: DocumentSearchService
    task_manager: TaskManager
    migration_service: EmbeddingMigrationService
    detection_service: SimilarityDetectionService
    moderation_service: SimilarityModerationService
    sweep_scheduler: SimilaritySweepScheduler

    async def shutdown(self) -> None:
        await self.sweep_scheduler.stop()
        await self.task_manager.shutdown()
        logger.info("Service container shut down")

    async def check_health(self) -> Dict[str, Any]:
        checks = {
            "search": await self.search_service.check_health(),
            "embeddings": await self.embedding_service.check_health(),
            "search_cache": await self.search_cache.check_health(),
            "similarity": await self.detection_service.check_health(),
            "tasks": await self.task_manager.check_health(),
            "document_store": await self.document_store.check_health(),
        }
        healthy = all(check.get("status") == "healthy" for check in checks.values())
        return {"status": "healthy" if healthy else "degraded", "services": checks}


def create_embedding_provider(settings: Settings) -> IEmbeddingProvider:
    """OpenAI when configured, otherwise the deterministic hashing provider."""
    if settings.is_openai_configured():
        return OpenAIEmbeddingProvider(settings)
    logger.warning("OPENAI_API_KEY not set, using deterministic hashing embeddings")
    return HashingEmbeddingProvider(dimension=settings.EMBEDDING_DIMENSION)


def build_container(
    settings: Settings,
    *,
    document_store: Optional[IDocumentStore] = None,
    embedding_repository: Optional[IEmbeddingRepository] = None,
    similarity_repository: Optional[ISimilarityRepository] = None,
    embedding_provider: Optional[IEmbeddingProvider] = None,
) -> ServiceContainer:
    """
    Wire all services from settings.

    Collaborators default to in-memory adapters; pass real adapters to embed
    the engine in a larger platform.

    Raises:
        ConfigurationError: a weight group does not sum to 1.0
    """
    scoring = ScoringConfig.from_settings(settings)

    document_store = document_store or InMemoryDocumentStore()
    embedding_repository = embedding_repository or InMemoryEmbeddingRepository()
    similarity_repository = similarity_repository or InMemorySimilarityRepository()
    embedding_provider = embedding_provider or create_embedding_provider(settings)

    embedding_service = EmbeddingService(
        provider=embedding_provider,
        cache=EmbeddingCache(max_size=settings.EMBEDDING_CACHE_MAX_SIZE),
        embedding_repository=embedding_repository,
        timeout_seconds=settings.EMBEDDING_TIMEOUT_SECONDS,
        max_input_chars=settings.EMBEDDING_MAX_INPUT_CHARS,
    )

    query_processor = QueryProcessor()
    search_cache: SearchResultCache = SearchResultCache(
        max_size=settings.SEARCH_CACHE_MAX_SIZE,
        ttl_seconds=settings.SEARCH_CACHE_TTL_SECONDS,
    )
    search_metrics = SearchMetricsCollector()
    search_service = DocumentSearchService(
        scoring=scoring,
        document_store=document_store,
        embedding_repository=embedding_repository,
        embedding_service=embedding_service,
        query_processor=query_processor,
        vector_search=VectorSearchService(),
        keyword_search=KeywordSearchService(scoring.keyword_fields, query_processor),
        combiner=HybridCombiner(),
        cache=search_cache,
        metrics=search_metrics,
    )

    task_manager = TaskManager()
    migration_service = EmbeddingMigrationService(
        document_store=document_store,
        embedding_repository=embedding_repository,
        embedding_service=embedding_service,
        task_manager=task_manager,
        batch_size=settings.EMBEDDING_MIGRATION_BATCH_SIZE,
        batch_delay_seconds=settings.EMBEDDING_MIGRATION_BATCH_DELAY_SECONDS,
    )

    detection_service = SimilarityDetectionService(
        document_store=document_store,
        embedding_repository=embedding_repository,
        similarity_repository=similarity_repository,
        embedding_service=embedding_service,
        scorer=SimilarityScorer(scoring.similarity, scoring.text_similarity),
        thresholds=scoring.similarity_thresholds,
        task_manager=task_manager,
        limits=DetectionLimits(
            max_candidates=settings.SIMILARITY_MAX_CANDIDATES,
            batch_size=settings.SIMILARITY_BATCH_SIZE,
            max_results=settings.SIMILARITY_MAX_RESULTS,
            retention_days=settings.SIMILARITY_RETENTION_DAYS,
            pending_job_batch=settings.SIMILARITY_PENDING_JOB_BATCH,
        ),
    )

    container = ServiceContainer(
        settings=settings,
        scoring=scoring,
        document_store=document_store,
        embedding_repository=embedding_repository,
        similarity_repository=similarity_repository,
        embedding_provider=embedding_provider,
        embedding_service=embedding_service,
        search_cache=search_cache,
        search_metrics=search_metrics,
        search_service=search_service,
        task_manager=task_manager,
        migration_service=migration_service,
        detection_service=detection_service,
        moderation_service=SimilarityModerationService(similarity_repository, document_store),
        sweep_scheduler=SimilaritySweepScheduler(
            detection_service, interval_seconds=settings.SIMILARITY_SWEEP_INTERVAL_SECONDS
        ),
    )

    logger.info(
        "Service container built",
        embedding_model=embedding_provider.model_version,
        hybrid_weights=(scoring.hybrid.vector, scoring.hybrid.text),
    )
    return container


__all__ = ["ServiceContainer", "build_container", "create_embedding_provider"]
