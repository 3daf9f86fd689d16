"""In-memory storage of similarity records and detection jobs."""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

from docsearch.domain.entities import JobStatus, SimilarityJob, SimilarityRecord
from docsearch.domain.interfaces import ISimilarityRepository


class InMemorySimilarityRepository(ISimilarityRepository):
    """Dictionary-backed similarity repository."""

    def __init__(self):
        self._records: Dict[str, SimilarityRecord] = {}
        self._jobs: Dict[str, SimilarityJob] = {}
        self._lock = asyncio.Lock()

    async def save_records(self, records: List[SimilarityRecord]) -> None:
        async with self._lock:
            for record in records:
                self._records[record.id] = record

    async def get_record(self, record_id: str) -> Optional[SimilarityRecord]:
        return self._records.get(record_id)

    async def update_record(self, record: SimilarityRecord) -> None:
        async with self._lock:
            self._records[record.id] = record

    async def list_unprocessed_for_source(self, source_document_id: str) -> List[SimilarityRecord]:
        return [
            record
            for record in self._records.values()
            if record.source_document_id == source_document_id and not record.is_processed
        ]

    async def list_records(self) -> List[SimilarityRecord]:
        return list(self._records.values())

    async def delete_unprocessed_for_source(self, source_document_id: str) -> int:
        async with self._lock:
            doomed = [
                record_id
                for record_id, record in self._records.items()
                if record.source_document_id == source_document_id and not record.is_processed
            ]
            for record_id in doomed:
                del self._records[record_id]
            return len(doomed)

    async def delete_unprocessed_older_than(self, cutoff: datetime) -> int:
        async with self._lock:
            doomed = [
                record_id
                for record_id, record in self._records.items()
                if not record.is_processed and record.created_at < cutoff
            ]
            for record_id in doomed:
                del self._records[record_id]
            return len(doomed)

    async def save_job(self, job: SimilarityJob) -> None:
        async with self._lock:
            self._jobs[job.id] = job

    async def get_job(self, job_id: str) -> Optional[SimilarityJob]:
        return self._jobs.get(job_id)

    async def find_active_job(self, document_id: str) -> Optional[SimilarityJob]:
        for job in self._jobs.values():
            if job.document_id == document_id and not job.status.is_terminal:
                return job
        return None

    async def list_pending_jobs(self, limit: int) -> List[SimilarityJob]:
        pending = [job for job in self._jobs.values() if job.status == JobStatus.PENDING]
        pending.sort(key=lambda job: job.created_at)
        return pending[:limit]

    async def delete_terminal_jobs_older_than(self, cutoff: datetime) -> int:
        async with self._lock:
            doomed = [
                job_id
                for job_id, job in self._jobs.items()
                if job.status.is_terminal and (job.completed_at or job.created_at) < cutoff
            ]
            for job_id in doomed:
                del self._jobs[job_id]
            return len(doomed)

    async def check_health(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "service": "InMemorySimilarityRepository",
            "records": len(self._records),
            "jobs": len(self._jobs),
        }


__all__ = ["InMemorySimilarityRepository"]
