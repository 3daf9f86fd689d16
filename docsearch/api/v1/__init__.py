"""API v1 routes."""

from .admin import router as admin_router
from .search import router as search_router
from .similarity import router as similarity_router

__all__ = ["admin_router", "search_router", "similarity_router"]
