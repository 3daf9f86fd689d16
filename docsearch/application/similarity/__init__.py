"""Duplicate detection, moderation and maintenance services."""

from .moderation_service import PendingSimilarity, SimilarityModerationService
from .similarity_service import DetectionLimits, SimilarityDetectionService
from .sweep_scheduler import SimilaritySweepScheduler

__all__ = [
    "PendingSimilarity",
    "SimilarityModerationService",
    "DetectionLimits",
    "SimilarityDetectionService",
    "SimilaritySweepScheduler",
]
