"""
Admin API Endpoints

Maintenance operations:
- Search and embedding cache reset
- Embedding regeneration (full or partial), progress, cancellation
- Embedding model consistency status
"""

import structlog
from fastapi import APIRouter, status

from docsearch.api.dependencies import (
    MigrationServiceDep,
    SearchServiceDep,
    map_domain_exception_to_http,
)
from docsearch.api.schemas.admin_schemas import (
    CacheClearResponse,
    ModelConsistencyResponse,
    RegenerateEmbeddingsRequest,
    RegenerationProgressResponse,
)
from docsearch.domain.exceptions import DomainException

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/cache/clear", response_model=CacheClearResponse)
async def clear_caches(search_service: SearchServiceDep) -> CacheClearResponse:
    result = await search_service.clear_caches()
    logger.info("Caches cleared via admin API", **result)
    return CacheClearResponse(**result)


@router.post(
    "/embeddings/regenerate",
    response_model=RegenerationProgressResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def regenerate_embeddings(
    request: RegenerateEmbeddingsRequest,
    migration_service: MigrationServiceDep,
) -> RegenerationProgressResponse:
    """Start regeneration in the background; 409 when a run is already active."""
    try:
        progress = await migration_service.start_regeneration(
            document_ids=request.document_ids,
            force=request.force,
        )
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    return RegenerationProgressResponse.from_progress(progress)


@router.get("/embeddings/progress", response_model=RegenerationProgressResponse)
async def get_regeneration_progress(migration_service: MigrationServiceDep) -> RegenerationProgressResponse:
    return RegenerationProgressResponse.from_progress(await migration_service.get_progress())


@router.post("/embeddings/cancel")
async def cancel_regeneration(migration_service: MigrationServiceDep) -> dict:
    cancelled = await migration_service.cancel_regeneration()
    return {"cancelled": cancelled}


@router.get("/embeddings/status", response_model=ModelConsistencyResponse)
async def get_embedding_status(migration_service: MigrationServiceDep) -> ModelConsistencyResponse:
    report = await migration_service.check_model_consistency()
    return ModelConsistencyResponse.from_report(report)
