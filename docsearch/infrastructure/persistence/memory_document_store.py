"""In-memory document store for local development and tests."""

import asyncio
from typing import Any, Dict, Iterable, List, Optional

import structlog

from docsearch.domain.entities import SearchableDocument, SearchFilters
from docsearch.domain.interfaces import IDocumentStore

logger = structlog.get_logger(__name__)


class InMemoryDocumentStore(IDocumentStore):
    """Dictionary-backed document store."""

    def __init__(self, documents: Optional[Iterable[SearchableDocument]] = None):
        self._documents: Dict[str, SearchableDocument] = {}
        self._lock = asyncio.Lock()
        for document in documents or []:
            self._documents[document.id] = document

    async def add(self, document: SearchableDocument) -> None:
        async with self._lock:
            self._documents[document.id] = document

    async def remove(self, document_id: str) -> bool:
        async with self._lock:
            return self._documents.pop(document_id, None) is not None

    async def get_document(self, document_id: str) -> Optional[SearchableDocument]:
        return self._documents.get(document_id)

    async def get_documents(self, document_ids: Iterable[str]) -> Dict[str, SearchableDocument]:
        return {
            document_id: self._documents[document_id]
            for document_id in document_ids
            if document_id in self._documents
        }

    async def list_documents(self, filters: SearchFilters) -> List[SearchableDocument]:
        return [document for document in self._documents.values() if filters.matches(document)]

    async def list_document_ids(self) -> List[str]:
        return list(self._documents)

    async def list_similarity_candidates(self, exclude_id: str, limit: int) -> List[SearchableDocument]:
        candidates = [
            document
            for document in self._documents.values()
            if document.id != exclude_id and (document.is_approved or document.is_public)
        ]
        candidates.sort(key=lambda d: d.created_at, reverse=True)
        return candidates[:limit]

    async def check_health(self) -> Dict[str, Any]:
        return {"status": "healthy", "service": "InMemoryDocumentStore", "documents": len(self._documents)}


__all__ = ["InMemoryDocumentStore"]
