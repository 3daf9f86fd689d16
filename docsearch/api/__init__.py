"""
API Package

Versioned API routes. Routers are imported lazily so importing the package
does not pull in every application service.
"""

from fastapi import APIRouter


def create_api_router(prefix: str = "/api/v1") -> APIRouter:
    """Create the main API router with all v1 routes."""
    from docsearch.api.v1.admin import router as admin_router
    from docsearch.api.v1.search import router as search_router
    from docsearch.api.v1.similarity import router as similarity_router

    api_router = APIRouter()
    api_router.include_router(search_router, prefix=prefix)
    api_router.include_router(similarity_router, prefix=prefix)
    api_router.include_router(admin_router, prefix=prefix)
    return api_router


__all__ = ["create_api_router"]
