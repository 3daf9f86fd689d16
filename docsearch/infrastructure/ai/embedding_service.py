"""
Embedding Service

Cached, time-bounded access to the embedding provider:
- Cache-first lookup keyed by model version and text digest
- Explicit per-call timeout so a slow provider cannot stall search
- Document text assembly for stored document embeddings
- Request and latency metrics
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

import structlog

from docsearch.domain.entities import EmbeddingRecord, SearchableDocument, utc_now
from docsearch.domain.exceptions import EmbeddingGenerationError, ValidationError
from docsearch.domain.interfaces import IEmbeddingProvider, IEmbeddingRepository, IHealthCheck
from docsearch.infrastructure.ai.embedding_cache import EmbeddingCache

logger = structlog.get_logger(__name__)

MAX_FILE_CONTENT_CHARS = 6000
MAX_DOCUMENT_TEXT_CHARS = 9000


def build_document_text(
    document: SearchableDocument,
    max_file_content_chars: int = MAX_FILE_CONTENT_CHARS,
    max_total_chars: int = MAX_DOCUMENT_TEXT_CHARS,
) -> str:
    """Assemble the text embedded for a document.

    Order: title, main content (summary or description), extracted file
    content, key points, tags.
    """
    parts: List[str] = []
    if document.title and document.title.strip():
        parts.append(document.title.strip())

    if document.main_content:
        parts.append(document.main_content)

    if document.content_text and document.content_text.strip():
        parts.append(document.content_text.strip()[:max_file_content_chars])

    key_points = [point.strip() for point in document.key_points if point and point.strip()]
    if key_points:
        parts.append("Key points: " + "; ".join(key_points))

    tags = [tag.strip() for tag in document.tags if tag and tag.strip()]
    if tags:
        parts.append("Tags: " + ", ".join(tags))

    return "\n\n".join(parts)[:max_total_chars]


class EmbeddingService(IHealthCheck):
    """
    Embedding generation with caching and timeouts.

    Features:
    - Cache hit never reaches the provider
    - Provider failures and timeouts surface as EmbeddingGenerationError
    - Stores document embeddings tagged with the active model version
    """

    def __init__(
        self,
        provider: IEmbeddingProvider,
        cache: EmbeddingCache,
        embedding_repository: Optional[IEmbeddingRepository] = None,
        timeout_seconds: float = 5.0,
        max_input_chars: int = 8000,
    ):
        self.provider = provider
        self.cache = cache
        self.embedding_repository = embedding_repository
        self.timeout_seconds = timeout_seconds
        self.max_input_chars = max_input_chars
        self._metrics = {
            "requests": 0,
            "provider_calls": 0,
            "cache_hits": 0,
            "failures": 0,
            "total_provider_ms": 0.0,
        }

    @property
    def model_version(self) -> str:
        return self.provider.model_version

    async def get_embedding(self, text: str) -> List[float]:
        """
        Return the embedding for text, using the cache when possible.

        Args:
            text: Text to embed

        Returns:
            Embedding vector for the active model

        Raises:
            ValidationError: text is empty
            EmbeddingGenerationError: provider failed or timed out
        """
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        self._metrics["requests"] += 1
        prepared = text.strip()[: self.max_input_chars]
        model_version = self.provider.model_version

        cached = await self.cache.get(prepared, model_version)
        if cached is not None:
            self._metrics["cache_hits"] += 1
            logger.debug("Embedding cache hit", model=model_version)
            return cached

        start_time = time.perf_counter()
        self._metrics["provider_calls"] += 1
        try:
            vector = await asyncio.wait_for(self.provider.embed(prepared), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            self._metrics["failures"] += 1
            logger.warning("Embedding provider timed out", timeout_seconds=self.timeout_seconds)
            raise EmbeddingGenerationError(
                f"Embedding provider timed out after {self.timeout_seconds}s"
            ) from e
        except Exception as e:
            self._metrics["failures"] += 1
            logger.warning("Embedding provider failed", error=str(e))
            raise EmbeddingGenerationError(f"Failed to generate embedding: {e}") from e
        finally:
            self._metrics["total_provider_ms"] += (time.perf_counter() - start_time) * 1000

        if not vector:
            self._metrics["failures"] += 1
            raise EmbeddingGenerationError("Embedding provider returned an empty vector")

        await self.cache.set(prepared, model_version, vector)
        logger.debug("Generated embedding", model=model_version, dimensions=len(vector))
        return list(vector)

    async def embed_document(self, document: SearchableDocument) -> EmbeddingRecord:
        """Generate and store the embedding of a document under the active model."""
        if self.embedding_repository is None:
            raise EmbeddingGenerationError("No embedding repository configured")

        text = build_document_text(document)
        if not text:
            raise ValidationError(f"Document {document.id} has no embeddable text")

        vector = await self.get_embedding(text)
        record = EmbeddingRecord(
            document_id=document.id,
            vector=vector,
            model_version=self.provider.model_version,
            updated_at=utc_now(),
        )
        await self.embedding_repository.save(record)
        logger.info("Document embedding stored", document_id=document.id, model=record.model_version)
        return record

    def get_metrics(self) -> Dict[str, Any]:
        calls = self._metrics["provider_calls"]
        return {
            "requests": self._metrics["requests"],
            "provider_calls": calls,
            "cache_hits": self._metrics["cache_hits"],
            "failures": self._metrics["failures"],
            "average_provider_ms": round(self._metrics["total_provider_ms"] / calls, 2) if calls else 0.0,
            "cache": self.cache.get_stats(),
        }

    async def check_health(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "service": "EmbeddingService",
            "model": self.provider.model_version,
            "metrics": self.get_metrics(),
        }


__all__ = ["EmbeddingService", "build_document_text", "MAX_FILE_CONTENT_CHARS", "MAX_DOCUMENT_TEXT_CHARS"]
