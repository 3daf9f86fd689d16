"""
Search API Schemas

Request/response models for document search:
- Typed filters mirroring the domain SearchFilters
- Paging, sorting and mode selection with validated bounds
- Per-result score breakdown
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docsearch.domain.entities import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    SearchFilters,
    SearchMode,
    SearchOptions,
    SearchPage,
    SortField,
    SortOrder,
)


class SearchFiltersRequest(BaseModel):
    """Filters applied before scoring"""

    category_id: Optional[str] = Field(default=None, description="Category; child categories are included")
    tags: List[str] = Field(default_factory=list, description="Match documents having any of these tags")
    language: Optional[str] = Field(default=None, description="Document language code")
    is_public: Optional[bool] = Field(default=None, description="Restrict to public or private documents")
    min_rating: Optional[float] = Field(default=None, ge=0, le=5, description="Minimum average rating")
    date_from: Optional[datetime] = Field(default=None, description="Created on or after")
    date_to: Optional[datetime] = Field(default=None, description="Created on or before")

    def to_domain(self) -> SearchFilters:
        return SearchFilters(
            category_id=self.category_id,
            tags=tuple(tag.strip() for tag in self.tags if tag and tag.strip()),
            language=self.language,
            is_public=self.is_public,
            min_rating=self.min_rating,
            date_from=self.date_from,
            date_to=self.date_to,
        )


class SearchRequest(BaseModel):
    """Document search request"""

    query: str = Field(default="", max_length=500, description="Search text")
    filters: SearchFiltersRequest = Field(default_factory=SearchFiltersRequest)
    page: int = Field(default=1, ge=1, description="Page number")
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Results per page")
    sort: SortField = Field(default=SortField.RELEVANCE, description="Sort field")
    order: SortOrder = Field(default=SortOrder.DESC, description="Sort order")
    mode: SearchMode = Field(default=SearchMode.HYBRID, description="Search method")
    threshold: Optional[float] = Field(default=None, ge=0, le=1, description="Override minimum score")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"query": "ReactJS tutorial", "filters": {"tags": ["javascript"]}, "limit": 10}
            ]
        }
    )

    @field_validator("query")
    @classmethod
    def strip_query(cls, v: str) -> str:
        return v.strip()

    def to_options(self) -> SearchOptions:
        return SearchOptions(
            query=self.query,
            filters=self.filters.to_domain(),
            page=self.page,
            limit=self.limit,
            sort=self.sort,
            order=self.order,
            mode=self.mode,
            threshold=self.threshold,
        )


class SearchResultItem(BaseModel):
    """One ranked document"""

    document_id: str
    title: str
    description: str
    tags: List[str]
    category_id: Optional[str]
    average_rating: float
    download_count: int
    view_count: int
    created_at: datetime
    combined_score: float = Field(..., ge=0, le=1)
    vector_score: float = Field(..., ge=0, le=1)
    text_score: float = Field(..., ge=0, le=1)
    field_scores: Dict[str, float] = Field(default_factory=dict)
    sources: List[str] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """Paged search response"""

    results: List[SearchResultItem]
    total: int
    page: int
    limit: int
    total_pages: int
    has_more: bool
    search_method: SearchMode
    degraded: bool = Field(default=False, description="Vector ranking was unavailable")
    cache_hit: bool = False
    search_time_ms: float

    @classmethod
    def from_page(cls, page: SearchPage) -> "SearchResponse":
        return cls(
            results=[
                SearchResultItem(
                    document_id=hit.document.id,
                    title=hit.document.title,
                    description=hit.document.description,
                    tags=list(hit.document.tags),
                    category_id=hit.document.category_id,
                    average_rating=hit.document.average_rating,
                    download_count=hit.document.download_count,
                    view_count=hit.document.view_count,
                    created_at=hit.document.created_at,
                    combined_score=round(hit.result.combined_score, 4),
                    vector_score=round(hit.result.vector_score, 4),
                    text_score=round(hit.result.text_score, 4),
                    field_scores={k: round(v, 4) for k, v in hit.result.field_scores.items()},
                    sources=list(hit.result.sources),
                )
                for hit in page.hits
            ],
            total=page.total,
            page=page.page,
            limit=page.limit,
            total_pages=page.total_pages,
            has_more=page.has_more,
            search_method=page.search_method,
            degraded=page.degraded,
            cache_hit=page.cache_hit,
            search_time_ms=round(page.search_time_ms, 2),
        )


class SearchMetricsResponse(BaseModel):
    """Search counters with cache statistics"""

    total_searches: int
    vector_searches: int
    keyword_searches: int
    hybrid_searches: int
    cache_hits: int
    average_latency_ms: float
    cache_hit_rate: float
    search_cache: Dict[str, Any]
    embeddings: Dict[str, Any]
