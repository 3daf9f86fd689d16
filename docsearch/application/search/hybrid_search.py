"""
Hybrid result fusion.

Merges vector and keyword result lists with a weighted average:

    combined = vector_weight * vector_score + text_weight * text_score

A document missing from one list contributes 0 for that side. The combiner is
stateless and pure: the same inputs always yield the same ranked output.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

import structlog

from docsearch.core.scoring_config import ensure_weights_sum_to_one
from docsearch.domain.entities import SearchResult

logger = structlog.get_logger(__name__)


def combined_score(vector_score: float, text_score: float, vector_weight: float, text_weight: float) -> float:
    """Weighted sum of the two scores clamped to [0, 1]."""
    value = vector_weight * vector_score + text_weight * text_score
    return max(0.0, min(1.0, value))


def hybrid_sort_key(result: SearchResult):
    return (-result.combined_score, -result.vector_score, result.document_id)


class HybridCombiner:
    """Weighted-average fusion of vector and keyword results."""

    def combine(
        self,
        vector_results: Sequence[SearchResult],
        text_results: Sequence[SearchResult],
        vector_weight: float,
        text_weight: float,
        threshold: float,
    ) -> List[SearchResult]:
        """
        Merge both result lists into one ranked list.

        Args:
            vector_results: Results carrying ``vector_score``
            text_results: Results carrying ``text_score`` and field breakdown
            vector_weight: Weight of the vector score
            text_weight: Weight of the text score; must sum to 1.0 with vector_weight
            threshold: Minimum combined score to keep

        Returns:
            New results sorted by combined score, then vector score, then id

        Raises:
            ConfigurationError: the weights do not sum to 1.0
        """
        ensure_weights_sum_to_one("Hybrid", {"vector": vector_weight, "text": text_weight})

        merged: Dict[str, SearchResult] = {}

        for result in vector_results:
            merged[result.document_id] = SearchResult(
                document_id=result.document_id,
                vector_score=result.vector_score,
                created_at=result.created_at,
                sources=("vector",),
            )

        for result in text_results:
            entry = merged.get(result.document_id)
            if entry is None:
                entry = SearchResult(document_id=result.document_id, created_at=result.created_at)
                merged[result.document_id] = entry
            entry.text_score = result.text_score
            entry.field_scores = dict(result.field_scores)
            entry.sources = entry.sources + ("keyword",)

        combined = []
        for entry in merged.values():
            entry.combined_score = combined_score(
                entry.vector_score, entry.text_score, vector_weight, text_weight
            )
            if entry.combined_score >= threshold:
                combined.append(entry)

        combined.sort(key=hybrid_sort_key)

        logger.debug(
            "Hybrid results combined",
            vector_results=len(vector_results),
            text_results=len(text_results),
            merged=len(merged),
            kept=len(combined),
            threshold=threshold,
        )
        return combined


__all__ = ["HybridCombiner", "combined_score", "hybrid_sort_key"]
