"""
API dependencies.

Services are read from the ServiceContainer stored on ``app.state`` during
startup and exposed as FastAPI ``Annotated`` dependencies.
"""

from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, Request

from docsearch.application.embedding.embedding_migration import EmbeddingMigrationService
from docsearch.application.search.search_service import DocumentSearchService
from docsearch.application.similarity.moderation_service import SimilarityModerationService
from docsearch.application.similarity.similarity_service import SimilarityDetectionService
from docsearch.core.container import ServiceContainer
from docsearch.domain.exceptions import (
    ConcurrencyError,
    ConfigurationError,
    DomainException,
    NotFoundError,
    ProcessingError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def get_container(request: Request) -> ServiceContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return container


ContainerDep = Annotated[ServiceContainer, Depends(get_container)]


def get_search_service(container: ContainerDep) -> DocumentSearchService:
    return container.search_service


def get_detection_service(container: ContainerDep) -> SimilarityDetectionService:
    return container.detection_service


def get_moderation_service(container: ContainerDep) -> SimilarityModerationService:
    return container.moderation_service


def get_migration_service(container: ContainerDep) -> EmbeddingMigrationService:
    return container.migration_service


SearchServiceDep = Annotated[DocumentSearchService, Depends(get_search_service)]
DetectionServiceDep = Annotated[SimilarityDetectionService, Depends(get_detection_service)]
ModerationServiceDep = Annotated[SimilarityModerationService, Depends(get_moderation_service)]
MigrationServiceDep = Annotated[EmbeddingMigrationService, Depends(get_migration_service)]


def map_domain_exception_to_http(exception: Exception) -> HTTPException:
    """Map domain exceptions to appropriate HTTP responses."""

    # NotFoundError hierarchy - 404 Not Found
    if isinstance(exception, NotFoundError):
        return HTTPException(status_code=404, detail=str(exception))

    # ValidationError hierarchy - 400 Bad Request
    elif isinstance(exception, ValidationError):
        return HTTPException(status_code=400, detail=str(exception))

    # ProcessingError hierarchy - 422 Unprocessable Entity
    elif isinstance(exception, ProcessingError):
        return HTTPException(status_code=422, detail=str(exception))

    # ConfigurationError - 500 Internal Server Error
    elif isinstance(exception, ConfigurationError):
        logger.error("Configuration error", error=str(exception))
        return HTTPException(status_code=500, detail="Service configuration error")

    # ConcurrencyError - 409 Conflict
    elif isinstance(exception, ConcurrencyError):
        return HTTPException(status_code=409, detail=str(exception))

    elif isinstance(exception, DomainException):
        logger.error("Unhandled domain exception", exception_type=type(exception).__name__, error=str(exception))
        return HTTPException(status_code=500, detail="Domain operation failed")

    else:
        logger.error("Non-domain exception in mapping", exception_type=type(exception).__name__, error=str(exception))
        return HTTPException(status_code=500, detail="Internal server error")


__all__ = [
    "get_container",
    "ContainerDep",
    "SearchServiceDep",
    "DetectionServiceDep",
    "ModerationServiceDep",
    "MigrationServiceDep",
    "map_domain_exception_to_http",
]
