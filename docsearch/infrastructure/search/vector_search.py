"""
Vector similarity search over stored document embeddings.

- Cosine similarity via scikit-learn, clamped to [0, 1]
- Skips missing, stale or dimension-mismatched vectors
- Deterministic ordering: score desc, newest document first, then id
"""

import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np
import structlog
from sklearn.metrics.pairwise import cosine_similarity

from docsearch.domain.entities import EmbeddingRecord, SearchableDocument, SearchResult

logger = structlog.get_logger(__name__)


def clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def vector_sort_key(result: SearchResult):
    created = result.created_at.timestamp() if result.created_at else float("-inf")
    return (-result.vector_score, -created, result.document_id)


class VectorSearchService:
    """Ranks candidate documents by cosine similarity to a query embedding."""

    def __init__(self):
        self._stats = {
            "searches": 0,
            "candidates_scored": 0,
            "skipped_vectors": 0,
            "total_time_ms": 0.0,
        }

    def search(
        self,
        query_embedding: Sequence[float],
        documents: Sequence[SearchableDocument],
        embeddings: Mapping[str, EmbeddingRecord],
        threshold: float,
        limit: Optional[int] = None,
        model_version: Optional[str] = None,
    ) -> List[SearchResult]:
        """
        Score documents against the query embedding.

        Args:
            query_embedding: Embedding of the query text
            documents: Filtered candidate documents
            embeddings: Stored embeddings keyed by document id
            threshold: Minimum similarity to keep
            limit: Optional maximum number of results
            model_version: When set, vectors from other models are ignored

        Returns:
            Results with ``vector_score`` populated, best first
        """
        start_time = time.perf_counter()
        self._stats["searches"] += 1

        query = np.asarray(query_embedding, dtype=np.float64)
        if query.size == 0 or not documents:
            return []

        scored_documents: List[SearchableDocument] = []
        vectors: List[Sequence[float]] = []
        for document in documents:
            record = embeddings.get(document.id)
            if record is None or len(record.vector) != query.size:
                self._stats["skipped_vectors"] += 1
                continue
            if model_version and record.is_stale(model_version):
                self._stats["skipped_vectors"] += 1
                continue
            scored_documents.append(document)
            vectors.append(record.vector)

        if not vectors:
            return []

        similarities = cosine_similarity(query.reshape(1, -1), np.asarray(vectors, dtype=np.float64))[0]
        self._stats["candidates_scored"] += len(vectors)

        results = []
        for document, similarity in zip(scored_documents, similarities):
            score = clamp_unit(similarity)
            if score < threshold:
                continue
            results.append(
                SearchResult(
                    document_id=document.id,
                    vector_score=score,
                    combined_score=score,
                    created_at=document.created_at,
                    sources=("vector",),
                )
            )

        results.sort(key=vector_sort_key)
        if limit is not None:
            results = results[:limit]

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self._stats["total_time_ms"] += elapsed_ms
        logger.debug(
            "Vector search completed",
            candidates=len(vectors),
            results_count=len(results),
            threshold=threshold,
            search_time_ms=round(elapsed_ms, 2),
        )
        return results

    def get_stats(self) -> Dict[str, Any]:
        return self._stats.copy()


__all__ = ["VectorSearchService", "clamp_unit", "vector_sort_key"]
