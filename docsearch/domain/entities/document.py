"""Pure domain representation of a searchable document and its embedding."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with stored timestamps."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class SearchableDocument:
    """Read model of a document as supplied by the document store.

    The engine never owns documents; it only reads the fields that feed
    keyword scoring, filtering, sorting and duplicate detection.
    """

    id: str
    title: str
    description: str = ""
    summary: Optional[str] = None
    key_points: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    suggested_tags: List[str] = field(default_factory=list)
    category_id: Optional[str] = None
    parent_category_id: Optional[str] = None
    language: Optional[str] = None
    is_public: bool = True
    is_approved: bool = True
    average_rating: float = 0.0
    download_count: int = 0
    view_count: int = 0
    created_at: datetime = field(default_factory=utc_now)
    file_hashes: List[str] = field(default_factory=list)
    content_text: Optional[str] = None

    @property
    def main_content(self) -> str:
        """Summary when available, otherwise the description."""
        return (self.summary or "").strip() or (self.description or "").strip()

    def comparable_text(self) -> str:
        """Text used for lexical duplicate comparison."""
        parts = [self.title, self.description, self.summary or "", self.content_text or ""]
        return " ".join(part for part in parts if part)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "summary": self.summary,
            "key_points": list(self.key_points),
            "tags": list(self.tags),
            "suggested_tags": list(self.suggested_tags),
            "category_id": self.category_id,
            "language": self.language,
            "is_public": self.is_public,
            "is_approved": self.is_approved,
            "average_rating": self.average_rating,
            "download_count": self.download_count,
            "view_count": self.view_count,
            "created_at": self.created_at.isoformat(),
        }


__all__ = ["SearchableDocument", "ensure_utc", "utc_now"]
