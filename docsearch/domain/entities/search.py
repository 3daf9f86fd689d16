"""Search value objects: query variants, typed filters, options, results and pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from docsearch.domain.entities.document import SearchableDocument, ensure_utc
from docsearch.domain.exceptions import ValidationError

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class SearchMode(str, Enum):
    """Search methods supported by the engine."""

    HYBRID = "hybrid"
    VECTOR = "vector"
    KEYWORD = "keyword"


class SortField(str, Enum):
    """Orderings applied to the ranked result set."""

    RELEVANCE = "relevance"
    RATING = "rating"
    DOWNLOADS = "downloads"
    VIEWS = "views"
    DATE = "date"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class QueryVariants:
    """Normalized forms of a raw search query.

    ``tokens`` keeps the raw-case tokens; ``lower_tokens`` holds the expanded,
    deduplicated lowercase tokens in first-seen order.
    """

    trimmed: str = ""
    normalized: str = ""
    lower_trimmed: str = ""
    lower_normalized: str = ""
    condensed_trimmed: str = ""
    condensed_normalized: str = ""
    tokens: Tuple[str, ...] = ()
    lower_tokens: Tuple[str, ...] = ()
    embedding_text: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.trimmed


@dataclass(frozen=True)
class SearchFilters:
    """Typed filters applied to the candidate corpus before scoring."""

    category_id: Optional[str] = None
    tags: Tuple[str, ...] = ()
    language: Optional[str] = None
    is_public: Optional[bool] = None
    min_rating: Optional[float] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    include_unapproved: bool = False

    def __post_init__(self):
        for name in ("date_from", "date_to"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, ensure_utc(value))

    def matches(self, document: SearchableDocument) -> bool:
        """Check whether a document passes every configured filter."""
        if not self.include_unapproved and not document.is_approved:
            return False
        if self.category_id and self.category_id not in (
            document.category_id,
            document.parent_category_id,
        ):
            return False
        if self.tags:
            wanted = {tag.lower() for tag in self.tags}
            if not wanted.intersection(tag.lower() for tag in document.tags):
                return False
        if self.language and document.language != self.language:
            return False
        if self.is_public is not None and document.is_public != self.is_public:
            return False
        if self.min_rating is not None and document.average_rating < self.min_rating:
            return False
        created_at = ensure_utc(document.created_at)
        if self.date_from and created_at < self.date_from:
            return False
        if self.date_to and created_at > self.date_to:
            return False
        return True

    def to_cache_dict(self) -> Dict[str, Any]:
        """Deterministic representation used in cache keys; unset filters are omitted."""
        data: Dict[str, Any] = {}
        if self.category_id:
            data["category_id"] = self.category_id
        if self.tags:
            data["tags"] = sorted(self.tags)
        if self.language:
            data["language"] = self.language
        if self.is_public is not None:
            data["is_public"] = self.is_public
        if self.min_rating is not None:
            data["min_rating"] = self.min_rating
        if self.date_from:
            data["date_from"] = self.date_from.isoformat()
        if self.date_to:
            data["date_to"] = self.date_to.isoformat()
        if self.include_unapproved:
            data["include_unapproved"] = True
        return data


@dataclass(frozen=True)
class SearchOptions:
    """A single search request."""

    query: str
    filters: SearchFilters = field(default_factory=SearchFilters)
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    sort: SortField = SortField.RELEVANCE
    order: SortOrder = SortOrder.DESC
    mode: SearchMode = SearchMode.HYBRID
    threshold: Optional[float] = None

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValidationError("page must be >= 1")
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if self.threshold is not None and not 0.0 <= self.threshold <= 1.0:
            raise ValidationError("threshold must be within [0, 1]")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class SearchResult:
    """Transient score record for one document."""

    document_id: str
    vector_score: float = 0.0
    text_score: float = 0.0
    combined_score: float = 0.0
    created_at: Optional[datetime] = None
    field_scores: Dict[str, float] = field(default_factory=dict)
    sources: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_id": self.document_id,
            "vector_score": round(self.vector_score, 4),
            "text_score": round(self.text_score, 4),
            "combined_score": round(self.combined_score, 4),
            "field_scores": {k: round(v, 4) for k, v in self.field_scores.items()},
            "sources": list(self.sources),
        }


@dataclass(frozen=True)
class SearchHit:
    """A ranked document together with its scores."""

    document: SearchableDocument
    result: SearchResult


@dataclass(frozen=True)
class SearchPage:
    """One page of ranked results."""

    hits: Tuple[SearchHit, ...]
    total: int
    page: int
    limit: int
    search_method: SearchMode
    degraded: bool = False
    cache_hit: bool = False
    search_time_ms: float = 0.0

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return (self.total + self.limit - 1) // self.limit

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages

    @classmethod
    def empty(cls, options: SearchOptions) -> "SearchPage":
        return cls(hits=(), total=0, page=options.page, limit=options.limit, search_method=options.mode)


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "SearchMode",
    "SortField",
    "SortOrder",
    "QueryVariants",
    "SearchFilters",
    "SearchOptions",
    "SearchResult",
    "SearchHit",
    "SearchPage",
]
