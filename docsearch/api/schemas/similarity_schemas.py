"""Similarity detection and moderation API schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from docsearch.domain.entities import SimilarityJob, SimilarityMatch, SimilarityRecord


class SimilarityMatchResponse(BaseModel):
    """A scored candidate document"""

    document_id: str
    combined_score: float = Field(..., ge=0, le=1)
    hash_score: float
    text_score: float
    embedding_score: float
    flagged: bool
    reason: str
    dominant_signal: str
    explanation: str

    @classmethod
    def from_match(cls, match: SimilarityMatch) -> "SimilarityMatchResponse":
        return cls(**match.to_dict())


class SimilarityCheckResponse(BaseModel):
    document_id: str
    has_similar_documents: bool
    highest_similarity_score: float
    matches: List[SimilarityMatchResponse]


class SimilarSegmentResponse(BaseModel):
    source_text: str
    target_text: str
    similarity: float
    source_start: int
    target_start: int


class SimilarityComparisonResponse(SimilarityMatchResponse):
    source_document_id: str
    similar_segments: List[SimilarSegmentResponse]


class SimilarityJobResponse(BaseModel):
    id: str
    document_id: str
    status: str
    progress: int
    error_message: Optional[str] = None
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: SimilarityJob) -> "SimilarityJobResponse":
        return cls(
            id=job.id,
            document_id=job.document_id,
            status=job.status.value,
            progress=job.progress,
            error_message=job.error_message,
            created_at=job.created_at,
            started_at=job.started_at,
            completed_at=job.completed_at,
        )


class SimilarityRecordResponse(BaseModel):
    """Flagged pair awaiting or after review"""

    id: str
    source_document_id: str
    target_document_id: str
    target_title: Optional[str] = None
    hash_score: float
    text_score: float
    embedding_score: float
    combined_score: float
    state: str
    decision: str
    is_processed: bool
    dominant_signal: str
    explanation: str
    admin_notes: Optional[str] = None
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_record(cls, record: SimilarityRecord, target_title: Optional[str] = None) -> "SimilarityRecordResponse":
        return cls(
            id=record.id,
            source_document_id=record.source_document_id,
            target_document_id=record.target_document_id,
            target_title=target_title,
            hash_score=round(record.hash_score, 4),
            text_score=round(record.text_score, 4),
            embedding_score=round(record.embedding_score, 4),
            combined_score=round(record.combined_score, 4),
            state=record.state.value,
            decision=record.decision.value,
            is_processed=record.is_processed,
            dominant_signal=record.dominant_signal.value,
            explanation=record.explanation,
            admin_notes=record.admin_notes,
            processed_by=record.processed_by,
            processed_at=record.processed_at,
            created_at=record.created_at,
        )


class SimilarityDecisionRequest(BaseModel):
    """Admin decision on a flagged pair"""

    admin_id: str = Field(..., min_length=1, description="Reviewing administrator")
    is_duplicate: bool = Field(..., description="True confirms the duplicate, False dismisses it")
    notes: Optional[str] = Field(default=None, max_length=2000)
