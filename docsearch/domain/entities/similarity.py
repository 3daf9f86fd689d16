"""Pure domain representation of duplicate-detection results, jobs and moderation state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from docsearch.domain.entities.document import utc_now
from docsearch.domain.exceptions import ConcurrencyError


class SimilarityState(str, Enum):
    """Lifecycle of a flagged pair."""

    PENDING_REVIEW = "pending_review"
    AUTO_FLAGGED = "auto_flagged"
    RESOLVED = "resolved"


class ModerationDecision(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DISMISSED = "dismissed"


class SimilaritySignal(str, Enum):
    """Signal contributing most to a combined score."""

    HASH = "hash"
    TEXT = "text"
    EMBEDDING = "embedding"


class DecisionReason(str, Enum):
    """Which branch of the duplicate policy produced the decision."""

    HASH_MATCH = "hash_match"
    COMBINED_SCORE = "combined_score"
    EMBEDDING_WITH_HASH = "embedding_with_hash"
    BELOW_THRESHOLDS = "below_thresholds"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass(frozen=True)
class SimilarityScores:
    """Per-signal scores of one document pair, all within [0, 1]."""

    hash_score: float = 0.0
    text_score: float = 0.0
    embedding_score: float = 0.0
    combined_score: float = 0.0


@dataclass(frozen=True)
class DuplicateDecision:
    """Outcome of the duplicate policy for one pair."""

    flagged: bool
    reason: DecisionReason


@dataclass(frozen=True)
class SimilarityMatch:
    """A scored candidate returned by a detection run."""

    document_id: str
    scores: SimilarityScores
    decision: DuplicateDecision
    dominant_signal: SimilaritySignal
    explanation: str

    @property
    def combined_score(self) -> float:
        return self.scores.combined_score

    @property
    def flagged(self) -> bool:
        return self.decision.flagged

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_id": self.document_id,
            "combined_score": round(self.scores.combined_score, 4),
            "hash_score": round(self.scores.hash_score, 4),
            "text_score": round(self.scores.text_score, 4),
            "embedding_score": round(self.scores.embedding_score, 4),
            "flagged": self.decision.flagged,
            "reason": self.decision.reason.value,
            "dominant_signal": self.dominant_signal.value,
            "explanation": self.explanation,
        }


@dataclass
class SimilarityRecord:
    """Persisted flag linking an uploaded document to a likely duplicate."""

    source_document_id: str
    target_document_id: str
    hash_score: float
    text_score: float
    embedding_score: float
    combined_score: float
    state: SimilarityState = SimilarityState.PENDING_REVIEW
    decision: ModerationDecision = ModerationDecision.PENDING
    is_processed: bool = False
    dominant_signal: SimilaritySignal = SimilaritySignal.EMBEDDING
    explanation: str = ""
    admin_notes: Optional[str] = None
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utc_now)
    id: str = field(default_factory=lambda: str(uuid4()))

    @classmethod
    def from_match(
        cls,
        source_document_id: str,
        match: SimilarityMatch,
        state: SimilarityState,
    ) -> "SimilarityRecord":
        return cls(
            source_document_id=source_document_id,
            target_document_id=match.document_id,
            hash_score=match.scores.hash_score,
            text_score=match.scores.text_score,
            embedding_score=match.scores.embedding_score,
            combined_score=match.scores.combined_score,
            state=state,
            dominant_signal=match.dominant_signal,
            explanation=match.explanation,
        )

    def resolve(self, admin_id: str, is_duplicate: bool, notes: Optional[str] = None) -> None:
        """Record an admin decision; a resolved record cannot be decided again."""
        if self.is_processed:
            raise ConcurrencyError(f"Similarity record {self.id} has already been resolved")
        self.decision = ModerationDecision.CONFIRMED if is_duplicate else ModerationDecision.DISMISSED
        self.state = SimilarityState.RESOLVED
        self.is_processed = True
        self.admin_notes = notes
        self.processed_by = admin_id
        self.processed_at = utc_now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source_document_id": self.source_document_id,
            "target_document_id": self.target_document_id,
            "hash_score": round(self.hash_score, 4),
            "text_score": round(self.text_score, 4),
            "embedding_score": round(self.embedding_score, 4),
            "combined_score": round(self.combined_score, 4),
            "state": self.state.value,
            "decision": self.decision.value,
            "is_processed": self.is_processed,
            "dominant_signal": self.dominant_signal.value,
            "explanation": self.explanation,
            "admin_notes": self.admin_notes,
            "processed_by": self.processed_by,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class SimilarityJob:
    """Background detection job for one uploaded document."""

    document_id: str
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    id: str = field(default_factory=lambda: str(uuid4()))

    def mark_started(self) -> None:
        self.status = JobStatus.PROCESSING
        self.started_at = utc_now()
        self.progress = 10

    def mark_completed(self) -> None:
        self.status = JobStatus.COMPLETED
        self.completed_at = utc_now()
        self.progress = 100

    def mark_failed(self, error_message: str) -> None:
        self.status = JobStatus.FAILED
        self.completed_at = utc_now()
        self.error_message = error_message

    def requeue(self) -> None:
        """Return an interrupted job to the pending queue."""
        self.status = JobStatus.PENDING
        self.started_at = None
        self.progress = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "document_id": self.document_id,
            "status": self.status.value,
            "progress": self.progress,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


__all__ = [
    "SimilarityState",
    "ModerationDecision",
    "SimilaritySignal",
    "DecisionReason",
    "JobStatus",
    "SimilarityScores",
    "DuplicateDecision",
    "SimilarityMatch",
    "SimilarityRecord",
    "SimilarityJob",
]
