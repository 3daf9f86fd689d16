"""
Embedding Migration Service

Keeps stored document embeddings consistent with the active embedding model:
- Consistency report grouped by model version
- Background regeneration in small concurrent batches with a pause between batches
- Partial (selected documents) or full runs; ``force`` re-embeds current records too
- Shared progress snapshot, single-run guard and cancellation
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence
from uuid import uuid4

import structlog

from docsearch.domain.entities import ModelConsistencyReport, RegenerationProgress, utc_now
from docsearch.domain.exceptions import ConcurrencyError, DocumentNotFoundError
from docsearch.domain.interfaces import IDocumentStore, IEmbeddingRepository
from docsearch.domain.task_types import TaskType
from docsearch.infrastructure.ai.embedding_service import EmbeddingService
from docsearch.infrastructure.task_manager import TaskManager

logger = structlog.get_logger(__name__)


class EmbeddingMigrationService:
    """Regenerates outdated document embeddings."""

    def __init__(
        self,
        document_store: IDocumentStore,
        embedding_repository: IEmbeddingRepository,
        embedding_service: EmbeddingService,
        task_manager: TaskManager,
        batch_size: int = 5,
        batch_delay_seconds: float = 1.0,
    ):
        self.document_store = document_store
        self.embedding_repository = embedding_repository
        self.embedding_service = embedding_service
        self.task_manager = task_manager
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds
        self._lock = asyncio.Lock()
        self._progress = RegenerationProgress()
        self._task: Optional[asyncio.Task] = None
        self._task_id: Optional[str] = None

    @property
    def active_model(self) -> str:
        return self.embedding_service.model_version

    async def check_model_consistency(self) -> ModelConsistencyReport:
        """Count stored embeddings per model and how many are outdated."""
        counts = await self.embedding_repository.count_by_model()
        total = sum(counts.values())
        outdated = total - counts.get(self.active_model, 0)
        report = ModelConsistencyReport(
            total_embeddings=total,
            outdated_embeddings=outdated,
            current_model=self.active_model,
            models_found=counts,
        )
        logger.info(
            "Embedding model consistency checked",
            total=total,
            outdated=outdated,
            current_model=self.active_model,
        )
        return report

    async def get_progress(self) -> RegenerationProgress:
        async with self._lock:
            return self._progress.snapshot()

    @property
    def is_running(self) -> bool:
        return self._progress.is_running

    async def _claim_run(self) -> None:
        async with self._lock:
            if self._progress.is_running:
                raise ConcurrencyError("Embedding regeneration is already running")
            self._progress = RegenerationProgress(is_running=True, started_at=utc_now())

    async def start_regeneration(
        self,
        document_ids: Optional[Sequence[str]] = None,
        force: bool = False,
    ) -> RegenerationProgress:
        """
        Launch regeneration in the background and return immediately.

        Args:
            document_ids: Limit the run to these documents; all documents when None
            force: Re-embed records already produced by the active model

        Raises:
            ConcurrencyError: a run is already in progress
        """
        await self._claim_run()
        self._task_id = f"embedding-regeneration-{uuid4()}"
        self._task = self.task_manager.create_task(
            self._run(document_ids, force),
            task_id=self._task_id,
            task_type=TaskType.EMBEDDING_REGENERATION,
            subject_id="embeddings",
            additional_data={"force": force, "partial": document_ids is not None},
        )
        self._task.add_done_callback(self._settle_progress)
        logger.info(
            "Embedding regeneration started",
            force=force,
            document_count=len(document_ids) if document_ids is not None else None,
        )
        return await self.get_progress()

    async def run_regeneration(
        self,
        document_ids: Optional[Sequence[str]] = None,
        force: bool = False,
    ) -> RegenerationProgress:
        """Run regeneration in the current task and return the final progress."""
        await self._claim_run()
        await self._run(document_ids, force)
        return await self.get_progress()

    async def migrate_if_needed(self) -> Optional[RegenerationProgress]:
        """Start a regeneration when stored embeddings come from another model."""
        report = await self.check_model_consistency()
        if not report.regeneration_required or self.is_running:
            return None
        return await self.start_regeneration()

    async def cancel_regeneration(self) -> bool:
        """Cancel the running background regeneration, keeping the counts reached so far."""
        if self._task is None or self._task.done() or self._task_id is None:
            return False
        result = await self.task_manager.cancel_task(self._task_id, reason="Regeneration cancelled")
        return bool(result.get("cancelled"))

    def _settle_progress(self, task: asyncio.Task) -> None:
        """Close out progress for a task cancelled before its first step ran."""
        if task is not self._task or not self._progress.is_running:
            return
        self._progress.is_running = False
        self._progress.cancelled = task.cancelled()
        self._progress.finished_at = utc_now()
        logger.info("Embedding regeneration cancelled before start", cancelled=self._progress.cancelled)

    async def _run(self, document_ids: Optional[Sequence[str]], force: bool) -> None:
        cancelled = False
        try:
            targets = await self._select_targets(document_ids, force)
            async with self._lock:
                self._progress.total = len(targets)

            for start in range(0, len(targets), self.batch_size):
                if start and self.batch_delay_seconds:
                    await asyncio.sleep(self.batch_delay_seconds)

                batch = targets[start:start + self.batch_size]
                outcomes = await asyncio.gather(
                    *(self._regenerate_one(document_id) for document_id in batch),
                    return_exceptions=True,
                )
                failed = 0
                for document_id, outcome in zip(batch, outcomes):
                    if isinstance(outcome, asyncio.CancelledError):
                        raise outcome
                    if isinstance(outcome, BaseException):
                        failed += 1
                        logger.warning(
                            "Embedding regeneration failed for document",
                            document_id=document_id,
                            error=str(outcome),
                        )
                async with self._lock:
                    self._progress.processed += len(batch) - failed
                    self._progress.failed += failed

        except asyncio.CancelledError:
            cancelled = True
            raise
        finally:
            # No await here: the update must complete even while cancelling
            self._progress.is_running = False
            self._progress.cancelled = cancelled
            self._progress.finished_at = utc_now()
            logger.info(
                "Embedding regeneration finished",
                total=self._progress.total,
                processed=self._progress.processed,
                failed=self._progress.failed,
                cancelled=cancelled,
            )

    async def _select_targets(self, document_ids: Optional[Sequence[str]], force: bool) -> List[str]:
        if document_ids is None:
            candidate_ids = await self.document_store.list_document_ids()
        else:
            candidate_ids = list(dict.fromkeys(document_ids))

        if force:
            return candidate_ids

        records = await self.embedding_repository.get_many(candidate_ids)
        return [
            document_id
            for document_id in candidate_ids
            if document_id not in records or records[document_id].is_stale(self.active_model)
        ]

    async def _regenerate_one(self, document_id: str) -> None:
        document = await self.document_store.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        await self.embedding_service.embed_document(document)


__all__ = ["EmbeddingMigrationService"]
