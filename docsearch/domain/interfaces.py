"""Domain-layer service interfaces.

These abstractions define the contracts that the application layer relies on,
while infrastructure adapters provide concrete implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Dict, Iterable, List, Optional

from docsearch.domain.entities import (
    EmbeddingRecord,
    SearchableDocument,
    SearchFilters,
    SimilarityJob,
    SimilarityRecord,
)


class IHealthCheck:
    """Health check interface mixin."""

    @abstractmethod
    async def check_health(self) -> Dict[str, Any]:
        """Return health check details."""
        pass


class IEmbeddingProvider(ABC):
    """Produces embedding vectors for text."""

    @property
    @abstractmethod
    def model_version(self) -> str:
        """Identifier of the model producing vectors."""
        pass

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of produced vectors."""
        pass

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Return the embedding for text."""
        pass


class IDocumentStore(IHealthCheck, ABC):
    """Read access to the documents owned by the surrounding platform."""

    @abstractmethod
    async def get_document(self, document_id: str) -> Optional[SearchableDocument]:
        """Return a document by id."""
        pass

    @abstractmethod
    async def get_documents(self, document_ids: Iterable[str]) -> Dict[str, SearchableDocument]:
        """Return the documents that exist among the given ids."""
        pass

    @abstractmethod
    async def list_documents(self, filters: SearchFilters) -> List[SearchableDocument]:
        """Return every document passing the filters."""
        pass

    @abstractmethod
    async def list_document_ids(self) -> List[str]:
        """Return the ids of all stored documents."""
        pass

    @abstractmethod
    async def list_similarity_candidates(self, exclude_id: str, limit: int) -> List[SearchableDocument]:
        """Return approved or public documents other than exclude_id, newest first."""
        pass


class IEmbeddingRepository(IHealthCheck, ABC):
    """Storage of per-document embedding records."""

    @abstractmethod
    async def get(self, document_id: str) -> Optional[EmbeddingRecord]:
        pass

    @abstractmethod
    async def get_many(self, document_ids: Iterable[str]) -> Dict[str, EmbeddingRecord]:
        pass

    @abstractmethod
    async def save(self, record: EmbeddingRecord) -> None:
        pass

    @abstractmethod
    async def count_by_model(self) -> Dict[str, int]:
        """Return the number of records per model version."""
        pass


class ISimilarityRepository(IHealthCheck, ABC):
    """Storage of similarity records and detection jobs."""

    @abstractmethod
    async def save_records(self, records: List[SimilarityRecord]) -> None:
        pass

    @abstractmethod
    async def get_record(self, record_id: str) -> Optional[SimilarityRecord]:
        pass

    @abstractmethod
    async def update_record(self, record: SimilarityRecord) -> None:
        pass

    @abstractmethod
    async def list_unprocessed_for_source(self, source_document_id: str) -> List[SimilarityRecord]:
        pass

    @abstractmethod
    async def delete_unprocessed_for_source(self, source_document_id: str) -> int:
        """Delete unprocessed records of a source document; return the count."""
        pass

    @abstractmethod
    async def delete_unprocessed_older_than(self, cutoff: datetime) -> int:
        pass

    @abstractmethod
    async def save_job(self, job: SimilarityJob) -> None:
        pass

    @abstractmethod
    async def get_job(self, job_id: str) -> Optional[SimilarityJob]:
        pass

    @abstractmethod
    async def find_active_job(self, document_id: str) -> Optional[SimilarityJob]:
        """Return a pending or processing job for the document, if any."""
        pass

    @abstractmethod
    async def list_pending_jobs(self, limit: int) -> List[SimilarityJob]:
        """Return the oldest pending jobs."""
        pass

    @abstractmethod
    async def delete_terminal_jobs_older_than(self, cutoff: datetime) -> int:
        pass


class ITaskManager(IHealthCheck, ABC):
    """Tracks background tasks."""

    @abstractmethod
    def create_task(
        self,
        coro: Awaitable[Any],
        *,
        task_id: str,
        task_type: Any,
        subject_id: str,
        additional_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Schedule a tracked background task."""
        pass

    @abstractmethod
    async def cancel_task(self, task_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def shutdown(self) -> None:
        pass


__all__ = [
    "IHealthCheck",
    "IEmbeddingProvider",
    "IDocumentStore",
    "IEmbeddingRepository",
    "ISimilarityRepository",
    "ITaskManager",
]
