"""Search application services."""

from .hybrid_search import HybridCombiner, combined_score
from .search_service import DocumentSearchService

__all__ = ["HybridCombiner", "combined_score", "DocumentSearchService"]
