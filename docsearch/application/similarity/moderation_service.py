"""Admin review of flagged similarity records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import structlog

from docsearch.domain.entities import SearchableDocument, SimilarityRecord
from docsearch.domain.exceptions import SimilarityRecordNotFoundError, ValidationError
from docsearch.domain.interfaces import IDocumentStore, ISimilarityRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PendingSimilarity:
    """An unreviewed record with the document it points at."""

    record: SimilarityRecord
    target_document: Optional[SearchableDocument]


class SimilarityModerationService:
    """Lists pending flags and records admin decisions."""

    def __init__(self, similarity_repository: ISimilarityRepository, document_store: IDocumentStore):
        self.similarity_repository = similarity_repository
        self.document_store = document_store

    async def get_pending_for_document(self, document_id: str) -> List[PendingSimilarity]:
        """Unprocessed records of a source document, highest combined score first."""
        records = await self.similarity_repository.list_unprocessed_for_source(document_id)
        records.sort(key=lambda r: (-r.combined_score, r.target_document_id))
        targets = await self.document_store.get_documents(r.target_document_id for r in records)
        return [PendingSimilarity(record=r, target_document=targets.get(r.target_document_id)) for r in records]

    async def record_decision(
        self,
        record_id: str,
        admin_id: str,
        is_duplicate: bool,
        notes: Optional[str] = None,
    ) -> SimilarityRecord:
        """
        Resolve a flagged record.

        Raises:
            SimilarityRecordNotFoundError: unknown record id
            ConcurrencyError: the record was already resolved
        """
        if not admin_id:
            raise ValidationError("admin_id is required")

        record = await self.similarity_repository.get_record(record_id)
        if record is None:
            raise SimilarityRecordNotFoundError(f"Similarity record {record_id} not found")

        record.resolve(admin_id=admin_id, is_duplicate=is_duplicate, notes=notes)
        await self.similarity_repository.update_record(record)

        logger.info(
            "Similarity decision recorded",
            record_id=record_id,
            admin_id=admin_id,
            decision=record.decision.value,
        )
        return record


__all__ = ["SimilarityModerationService", "PendingSimilarity"]
