"""
Keyword search with weighted per-field scoring.

Each field scores the best of phrase containment, condensed containment
(spacing and punctuation insensitive) and token coverage. Field scores are
blended with the configured field weights and capped at 1.0.
"""

import time
from typing import Any, Dict, List, Optional, Sequence

import structlog

from docsearch.core.scoring_config import KeywordFieldWeights
from docsearch.domain.entities import QueryVariants, SearchableDocument, SearchResult
from docsearch.infrastructure.search.query_processor import QueryProcessor

logger = structlog.get_logger(__name__)


def document_fields(document: SearchableDocument) -> Dict[str, str]:
    """Searchable text of each weighted field."""
    return {
        "title": document.title or "",
        "description": document.description or "",
        "summary": document.summary or "",
        "key_points": " ".join(document.key_points),
        "tags": " ".join(document.tags),
        "suggested_tags": " ".join(document.suggested_tags),
    }


class KeywordSearchService:
    """Lexical scoring of documents against query variants."""

    def __init__(self, field_weights: KeywordFieldWeights, query_processor: Optional[QueryProcessor] = None):
        self.field_weights = field_weights
        self.query_processor = query_processor or QueryProcessor()
        self._stats = {"searches": 0, "documents_scored": 0, "total_time_ms": 0.0}

    def score_field(self, field_text: str, variants: QueryVariants) -> float:
        """Score one field in [0, 1]."""
        if not field_text:
            return 0.0

        lowered = field_text.lower()
        condensed = self.query_processor.condense(field_text)

        indicators = [
            bool(variants.lower_trimmed) and variants.lower_trimmed in lowered,
            bool(variants.lower_normalized) and variants.lower_normalized in lowered,
            bool(variants.condensed_trimmed) and variants.condensed_trimmed in condensed,
            bool(variants.condensed_normalized) and variants.condensed_normalized in condensed,
        ]
        phrase_score = 1.0 if any(indicators) else 0.0
        coverage = self.query_processor.calculate_token_coverage(field_text, variants.lower_tokens)
        return max(phrase_score, coverage)

    def score_document(self, document: SearchableDocument, variants: QueryVariants) -> SearchResult:
        weights = self.field_weights.as_dict()
        field_scores = {
            name: self.score_field(text, variants)
            for name, text in document_fields(document).items()
        }
        text_score = min(1.0, sum(weights[name] * score for name, score in field_scores.items()))
        return SearchResult(
            document_id=document.id,
            text_score=text_score,
            combined_score=text_score,
            created_at=document.created_at,
            field_scores=field_scores,
            sources=("keyword",),
        )

    def search(
        self,
        variants: QueryVariants,
        documents: Sequence[SearchableDocument],
        threshold: float,
        limit: Optional[int] = None,
    ) -> List[SearchResult]:
        """
        Rank documents by weighted field scores.

        Args:
            variants: Prepared query variants
            documents: Filtered candidate documents
            threshold: Minimum text score to keep
            limit: Optional maximum number of results

        Returns:
            Results with ``text_score`` populated, best first, ties by document id
        """
        if variants.is_empty:
            return []

        start_time = time.perf_counter()
        self._stats["searches"] += 1

        results = []
        for document in documents:
            result = self.score_document(document, variants)
            if result.text_score >= threshold and result.text_score > 0:
                results.append(result)
        self._stats["documents_scored"] += len(documents)

        results.sort(key=lambda r: (-r.text_score, r.document_id))
        if limit is not None:
            results = results[:limit]

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self._stats["total_time_ms"] += elapsed_ms
        logger.debug(
            "Keyword search completed",
            query=variants.trimmed,
            candidates=len(documents),
            results_count=len(results),
            search_time_ms=round(elapsed_ms, 2),
        )
        return results

    def get_stats(self) -> Dict[str, Any]:
        return self._stats.copy()


__all__ = ["KeywordSearchService", "document_fields"]
