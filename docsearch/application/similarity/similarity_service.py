"""
Similarity Detection Service

Near-duplicate detection pipeline for uploaded documents:
- Candidate loading and batched multi-signal scoring
- Hash fast path for identical file content
- Persistence of flagged pairs for moderation review
- Fire-and-forget background jobs with a pending-job sweep
- Retention cleanup of stale records and finished jobs
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Set

import structlog

from docsearch.core.scoring_config import SimilarityThresholds
from docsearch.domain.entities import (
    DecisionReason,
    EmbeddingRecord,
    SearchableDocument,
    SimilarityJob,
    SimilarityMatch,
    SimilarityRecord,
    SimilarityScores,
    SimilarityState,
    utc_now,
)
from docsearch.domain.exceptions import DocumentNotFoundError, DomainException
from docsearch.domain.interfaces import IDocumentStore, IEmbeddingRepository, IHealthCheck, ISimilarityRepository
from docsearch.domain.services.similarity_scoring import SimilarityScorer, evaluate_duplicate_policy
from docsearch.domain.task_types import TaskType
from docsearch.infrastructure.ai.embedding_service import EmbeddingService
from docsearch.infrastructure.task_manager import TaskManager

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DetectionLimits:
    """Size limits of one detection run."""

    max_candidates: int = 500
    batch_size: int = 20
    max_results: int = 10
    retention_days: int = 30
    pending_job_batch: int = 10


class SimilarityDetectionService(IHealthCheck):
    """
    Scores an uploaded document against existing documents and records likely duplicates.

    Features:
    - Per-candidate failures are logged and skipped
    - Flagged results supersede earlier unprocessed results of the same document
    - Idempotent job queueing per document
    """

    def __init__(
        self,
        document_store: IDocumentStore,
        embedding_repository: IEmbeddingRepository,
        similarity_repository: ISimilarityRepository,
        embedding_service: EmbeddingService,
        scorer: SimilarityScorer,
        thresholds: SimilarityThresholds,
        task_manager: TaskManager,
        limits: Optional[DetectionLimits] = None,
    ):
        self.document_store = document_store
        self.embedding_repository = embedding_repository
        self.similarity_repository = similarity_repository
        self.embedding_service = embedding_service
        self.scorer = scorer
        self.thresholds = thresholds
        self.task_manager = task_manager
        self.limits = limits or DetectionLimits()
        self._in_flight: Set[str] = set()
        self._stats = {
            "detections": 0,
            "candidates_scored": 0,
            "candidate_failures": 0,
            "records_flagged": 0,
            "jobs_completed": 0,
            "jobs_failed": 0,
        }

    async def detect_similar_documents(self, document_id: str) -> List[SimilarityMatch]:
        """
        Score a document against the candidate set and persist flagged pairs.

        Args:
            document_id: Document to check

        Returns:
            Best matches by combined score, at most ``max_results``

        Raises:
            DocumentNotFoundError: the document does not exist
        """
        source = await self.document_store.get_document(document_id)
        if source is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")

        self._stats["detections"] += 1
        candidates = await self.document_store.list_similarity_candidates(
            document_id, self.limits.max_candidates
        )
        source_embedding = await self._source_embedding(source)

        logger.info("Detecting similar documents", document_id=document_id, candidates=len(candidates))

        matches: List[SimilarityMatch] = []
        for start in range(0, len(candidates), self.limits.batch_size):
            batch = candidates[start:start + self.limits.batch_size]
            embeddings = await self.embedding_repository.get_many(d.id for d in batch)
            batch_matches = await asyncio.to_thread(
                self._score_batch, source, source_embedding, batch, embeddings
            )
            matches.extend(batch_matches)

        matches = [m for m in matches if m.combined_score > 0]
        matches.sort(key=lambda m: (-m.combined_score, m.document_id))
        top_matches = matches[:self.limits.max_results]

        await self._persist_flagged(document_id, top_matches)

        logger.info(
            "Similarity detection completed",
            document_id=document_id,
            matches=len(top_matches),
            flagged=sum(1 for m in top_matches if m.flagged),
            highest_score=top_matches[0].combined_score if top_matches else 0.0,
        )
        return top_matches

    def _score_batch(
        self,
        source: SearchableDocument,
        source_embedding: Optional[EmbeddingRecord],
        batch: Sequence[SearchableDocument],
        embeddings: Dict[str, EmbeddingRecord],
    ) -> List[SimilarityMatch]:
        matches = []
        for candidate in batch:
            try:
                matches.append(self.score_pair(source, candidate, source_embedding, embeddings.get(candidate.id)))
                self._stats["candidates_scored"] += 1
            except Exception as e:
                self._stats["candidate_failures"] += 1
                logger.warning(
                    "Candidate scoring failed",
                    source_document_id=source.id,
                    candidate_document_id=candidate.id,
                    error=str(e),
                )
        return matches

    def score_pair(
        self,
        source: SearchableDocument,
        target: SearchableDocument,
        source_embedding: Optional[EmbeddingRecord],
        target_embedding: Optional[EmbeddingRecord],
    ) -> SimilarityMatch:
        """Score one pair; identical file content short-circuits the other signals."""
        hash_score = self.scorer.hash_similarity(source.file_hashes, target.file_hashes)

        if hash_score >= self.thresholds.hash_match:
            scores = SimilarityScores(hash_score=hash_score, combined_score=hash_score)
        else:
            text_score = self.scorer.text_similarity(source.comparable_text(), target.comparable_text())
            embedding_score = 0.0
            if source_embedding and target_embedding and source_embedding.model_version == target_embedding.model_version:
                embedding_score = self.scorer.embedding_similarity(source_embedding.vector, target_embedding.vector)
            scores = self.scorer.score(hash_score, text_score, embedding_score)

        decision = evaluate_duplicate_policy(scores, self.thresholds)
        dominant = self.scorer.dominant_signal(scores)
        return SimilarityMatch(
            document_id=target.id,
            scores=scores,
            decision=decision,
            dominant_signal=dominant,
            explanation=self.scorer.explain(scores, dominant),
        )

    async def compare_documents(self, source_id: str, target_id: str) -> Dict[str, Any]:
        """Detailed comparison of two documents including similar text segments."""
        documents = await self.document_store.get_documents([source_id, target_id])
        for document_id in (source_id, target_id):
            if document_id not in documents:
                raise DocumentNotFoundError(f"Document {document_id} not found")

        source, target = documents[source_id], documents[target_id]
        embeddings = await self.embedding_repository.get_many([source_id, target_id])
        match = self.score_pair(source, target, embeddings.get(source_id), embeddings.get(target_id))
        segments = self.scorer.find_similar_segments(source.comparable_text(), target.comparable_text())
        return {
            **match.to_dict(),
            "source_document_id": source_id,
            "similar_segments": [
                {
                    "source_text": s.source_text,
                    "target_text": s.target_text,
                    "similarity": round(s.similarity, 4),
                    "source_start": s.source_start,
                    "target_start": s.target_start,
                }
                for s in segments
            ],
        }

    async def _source_embedding(self, source: SearchableDocument) -> Optional[EmbeddingRecord]:
        record = await self.embedding_repository.get(source.id)
        if record is not None and not record.is_stale(self.embedding_service.model_version):
            return record
        try:
            return await self.embedding_service.embed_document(source)
        except DomainException as e:
            logger.warning("Source embedding unavailable", document_id=source.id, error=str(e))
            return record

    def state_for(self, match: SimilarityMatch) -> SimilarityState:
        if (
            match.decision.reason == DecisionReason.HASH_MATCH
            or match.combined_score >= self.thresholds.auto_flag
        ):
            return SimilarityState.AUTO_FLAGGED
        return SimilarityState.PENDING_REVIEW

    async def _persist_flagged(self, document_id: str, matches: List[SimilarityMatch]) -> None:
        superseded = await self.similarity_repository.delete_unprocessed_for_source(document_id)
        records = [
            SimilarityRecord.from_match(document_id, match, self.state_for(match))
            for match in matches
            if match.flagged
        ]
        if records:
            await self.similarity_repository.save_records(records)
            self._stats["records_flagged"] += len(records)
        logger.debug(
            "Similarity records saved",
            document_id=document_id,
            saved=len(records),
            superseded=superseded,
        )

    async def queue_detection(self, document_id: str) -> SimilarityJob:
        """Create (or reuse) a pending job and process it in the background."""
        existing = await self.similarity_repository.find_active_job(document_id)
        if existing is not None:
            logger.debug("Similarity job already queued", document_id=document_id, job_id=existing.id)
            return existing

        job = SimilarityJob(document_id=document_id)
        await self.similarity_repository.save_job(job)
        self.task_manager.create_task(
            self.process_job(job.id),
            task_id=job.id,
            task_type=TaskType.SIMILARITY_DETECTION,
            subject_id=document_id,
        )
        logger.info("Similarity detection queued", document_id=document_id, job_id=job.id)
        return job

    async def process_job(self, job_id: str) -> Optional[SimilarityJob]:
        """Run one pending job; failures are recorded on the job, never raised."""
        if job_id in self._in_flight:
            return None
        self._in_flight.add(job_id)
        try:
            job = await self.similarity_repository.get_job(job_id)
            if job is None or job.status.is_terminal or job.started_at is not None:
                return job

            job.mark_started()
            await self.similarity_repository.save_job(job)
            try:
                await self.detect_similar_documents(job.document_id)
                job.mark_completed()
                self._stats["jobs_completed"] += 1
            except asyncio.CancelledError:
                # Interrupted jobs go back to the queue for the next sweep
                job.requeue()
                await self.similarity_repository.save_job(job)
                logger.warning("Similarity job interrupted", job_id=job.id, document_id=job.document_id)
                raise
            except Exception as e:
                job.mark_failed(str(e))
                self._stats["jobs_failed"] += 1
                logger.error(
                    "Similarity job failed",
                    job_id=job.id,
                    document_id=job.document_id,
                    error=str(e),
                )
            await self.similarity_repository.save_job(job)
            return job
        finally:
            self._in_flight.discard(job_id)

    async def process_pending_jobs(self, limit: Optional[int] = None) -> int:
        """Process leftover pending jobs concurrently; returns how many were attempted."""
        jobs = await self.similarity_repository.list_pending_jobs(limit or self.limits.pending_job_batch)
        if not jobs:
            return 0

        outcomes = await asyncio.gather(*(self.process_job(job.id) for job in jobs), return_exceptions=True)
        for job, outcome in zip(jobs, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Pending job processing raised", job_id=job.id, error=str(outcome))

        logger.info("Processed pending similarity jobs", count=len(jobs))
        return len(jobs)

    async def cleanup_stale_records(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Delete unprocessed records and finished jobs older than the retention window."""
        cutoff = (now or utc_now()) - timedelta(days=self.limits.retention_days)
        records_removed = await self.similarity_repository.delete_unprocessed_older_than(cutoff)
        jobs_removed = await self.similarity_repository.delete_terminal_jobs_older_than(cutoff)
        logger.info(
            "Similarity cleanup completed",
            cutoff=cutoff.isoformat(),
            records_removed=records_removed,
            jobs_removed=jobs_removed,
        )
        return {"records_removed": records_removed, "jobs_removed": jobs_removed}

    async def get_job(self, job_id: str) -> Optional[SimilarityJob]:
        return await self.similarity_repository.get_job(job_id)

    def get_stats(self) -> Dict[str, Any]:
        return self._stats.copy()

    async def check_health(self) -> Dict[str, Any]:
        return {"status": "healthy", "service": "SimilarityDetectionService", "stats": self.get_stats()}


__all__ = ["SimilarityDetectionService", "DetectionLimits"]
