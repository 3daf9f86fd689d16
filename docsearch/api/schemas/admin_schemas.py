"""Admin API schemas for cache and embedding maintenance."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from docsearch.domain.entities import ModelConsistencyReport, RegenerationProgress


class RegenerateEmbeddingsRequest(BaseModel):
    document_ids: Optional[List[str]] = Field(
        default=None, description="Regenerate only these documents; all documents when omitted"
    )
    force: bool = Field(default=False, description="Also regenerate embeddings of the active model")


class RegenerationProgressResponse(BaseModel):
    total: int
    processed: int
    failed: int
    percentage: float
    is_running: bool
    cancelled: bool
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @classmethod
    def from_progress(cls, progress: RegenerationProgress) -> "RegenerationProgressResponse":
        return cls(
            total=progress.total,
            processed=progress.processed,
            failed=progress.failed,
            percentage=progress.percentage,
            is_running=progress.is_running,
            cancelled=progress.cancelled,
            started_at=progress.started_at,
            finished_at=progress.finished_at,
        )


class ModelConsistencyResponse(BaseModel):
    total_embeddings: int
    outdated_embeddings: int
    current_model: str
    models_found: Dict[str, int]
    regeneration_required: bool

    @classmethod
    def from_report(cls, report: ModelConsistencyReport) -> "ModelConsistencyResponse":
        return cls(**report.to_dict())


class CacheClearResponse(BaseModel):
    search_entries: int
    embedding_entries: int
