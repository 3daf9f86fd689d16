"""Pure domain services."""

from .similarity_scoring import SimilarityScorer, evaluate_duplicate_policy

__all__ = ["SimilarityScorer", "evaluate_duplicate_policy"]
