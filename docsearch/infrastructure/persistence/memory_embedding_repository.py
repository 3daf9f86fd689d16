"""In-memory embedding repository."""

import asyncio
from collections import Counter
from typing import Any, Dict, Iterable, Optional

from docsearch.domain.entities import EmbeddingRecord
from docsearch.domain.interfaces import IEmbeddingRepository


class InMemoryEmbeddingRepository(IEmbeddingRepository):
    """Stores one embedding record per document."""

    def __init__(self):
        self._records: Dict[str, EmbeddingRecord] = {}
        self._lock = asyncio.Lock()

    async def get(self, document_id: str) -> Optional[EmbeddingRecord]:
        return self._records.get(document_id)

    async def get_many(self, document_ids: Iterable[str]) -> Dict[str, EmbeddingRecord]:
        return {
            document_id: self._records[document_id]
            for document_id in document_ids
            if document_id in self._records
        }

    async def save(self, record: EmbeddingRecord) -> None:
        async with self._lock:
            self._records[record.document_id] = record

    async def count_by_model(self) -> Dict[str, int]:
        return dict(Counter(record.model_version for record in self._records.values()))

    async def check_health(self) -> Dict[str, Any]:
        return {"status": "healthy", "service": "InMemoryEmbeddingRepository", "records": len(self._records)}


__all__ = ["InMemoryEmbeddingRepository"]
