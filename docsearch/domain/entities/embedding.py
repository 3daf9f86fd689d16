"""Embedding records and regeneration progress."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from docsearch.domain.entities.document import utc_now


@dataclass
class EmbeddingRecord:
    """Stored embedding of a document tagged with the model that produced it."""

    document_id: str
    vector: List[float]
    model_version: str
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def dimension(self) -> int:
        return len(self.vector)

    def is_stale(self, active_model: str) -> bool:
        """A record is stale when it was produced by another model."""
        return self.model_version != active_model


@dataclass
class RegenerationProgress:
    """Progress of an embedding regeneration run."""

    total: int = 0
    processed: int = 0
    failed: int = 0
    is_running: bool = False
    cancelled: bool = False
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return round((self.processed + self.failed) / self.total * 100, 2)

    def snapshot(self) -> "RegenerationProgress":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "processed": self.processed,
            "failed": self.failed,
            "percentage": self.percentage,
            "is_running": self.is_running,
            "cancelled": self.cancelled,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


@dataclass(frozen=True)
class ModelConsistencyReport:
    """Summary of which models produced the stored embeddings."""

    total_embeddings: int
    outdated_embeddings: int
    current_model: str
    models_found: Dict[str, int]

    @property
    def regeneration_required(self) -> bool:
        return self.outdated_embeddings > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_embeddings": self.total_embeddings,
            "outdated_embeddings": self.outdated_embeddings,
            "current_model": self.current_model,
            "models_found": dict(self.models_found),
            "regeneration_required": self.regeneration_required,
        }


__all__ = ["EmbeddingRecord", "RegenerationProgress", "ModelConsistencyReport"]
