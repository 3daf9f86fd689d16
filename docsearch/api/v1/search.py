"""
Search API Endpoints

Document search with:
- Hybrid, vector and keyword modes
- Typed filters, paging and sorting
- Search metrics and cache statistics
"""

import structlog
from fastapi import APIRouter, HTTPException

from docsearch.api.dependencies import SearchServiceDep, map_domain_exception_to_http
from docsearch.api.schemas.search_schemas import SearchMetricsResponse, SearchRequest, SearchResponse
from docsearch.domain.exceptions import DomainException

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/search", tags=["search"])


@router.post("", response_model=SearchResponse)
async def search_documents(
    search_request: SearchRequest,
    search_service: SearchServiceDep,
) -> SearchResponse:
    """
    Search documents.

    - **hybrid**: weighted blend of embedding similarity and keyword score
    - **vector**: embedding similarity only
    - **keyword**: weighted per-field keyword score only

    An empty query returns an empty page. When embeddings are unavailable the
    response is ranked by keyword score and marked ``degraded``.
    """
    try:
        page = await search_service.search(search_request.to_options())
        return SearchResponse.from_page(page)
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    except HTTPException:
        raise
    except Exception as exc:  # pragma: no cover - unexpected errors bubble to API layer
        logger.error("Search request failed", error=str(exc))
        raise HTTPException(
            status_code=500,
            detail={"error": "search_failed", "message": "Search request could not be completed"},
        )


@router.get("/metrics", response_model=SearchMetricsResponse)
async def get_search_metrics(search_service: SearchServiceDep) -> SearchMetricsResponse:
    """Search counters, average latency and cache statistics."""
    return SearchMetricsResponse(**search_service.get_metrics())
