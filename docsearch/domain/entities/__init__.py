"""Domain entities and value objects."""

from .document import SearchableDocument, ensure_utc, utc_now
from .embedding import EmbeddingRecord, ModelConsistencyReport, RegenerationProgress
from .search import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    QueryVariants,
    SearchFilters,
    SearchHit,
    SearchMode,
    SearchOptions,
    SearchPage,
    SearchResult,
    SortField,
    SortOrder,
)
from .similarity import (
    DecisionReason,
    DuplicateDecision,
    JobStatus,
    ModerationDecision,
    SimilarityJob,
    SimilarityMatch,
    SimilarityRecord,
    SimilarityScores,
    SimilaritySignal,
    SimilarityState,
)

__all__ = [
    "SearchableDocument",
    "ensure_utc",
    "utc_now",
    "EmbeddingRecord",
    "ModelConsistencyReport",
    "RegenerationProgress",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "QueryVariants",
    "SearchFilters",
    "SearchHit",
    "SearchMode",
    "SearchOptions",
    "SearchPage",
    "SearchResult",
    "SortField",
    "SortOrder",
    "DecisionReason",
    "DuplicateDecision",
    "JobStatus",
    "ModerationDecision",
    "SimilarityJob",
    "SimilarityMatch",
    "SimilarityRecord",
    "SimilarityScores",
    "SimilaritySignal",
    "SimilarityState",
]
