"""Domain layer task types and value objects.

Background work (similarity detection, embedding regeneration, sweeps) is
tracked as tasks so it can be inspected and cancelled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from docsearch.domain.entities.document import utc_now


class TaskType(str, Enum):
    """Types of background tasks in the domain."""

    SIMILARITY_DETECTION = "similarity_detection"
    EMBEDDING_REGENERATION = "embedding_regeneration"
    MAINTENANCE_SWEEP = "maintenance_sweep"


class TaskStatus(str, Enum):
    """Status of background tasks in the domain."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_finished(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED)


@dataclass
class TaskInfo:
    """State of one tracked background task."""

    task_id: str
    subject_id: str
    task_type: TaskType
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime = field(default_factory=utc_now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    additional_data: Dict[str, Any] = field(default_factory=dict)

    def mark_started(self) -> None:
        self.status = TaskStatus.RUNNING
        self.started_at = utc_now()

    def mark_completed(self) -> None:
        self.status = TaskStatus.COMPLETED
        self.completed_at = utc_now()

    def mark_failed(self, error_message: str) -> None:
        self.status = TaskStatus.FAILED
        self.completed_at = utc_now()
        self.error_message = error_message

    def mark_cancelled(self, reason: Optional[str] = None) -> None:
        self.status = TaskStatus.CANCELLED
        self.completed_at = utc_now()
        self.error_message = reason or "Cancelled"


__all__ = ["TaskType", "TaskStatus", "TaskInfo"]
