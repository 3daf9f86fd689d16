"""Periodic maintenance sweep for similarity jobs and records."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import structlog

from docsearch.application.similarity.similarity_service import SimilarityDetectionService

logger = structlog.get_logger(__name__)


class SimilaritySweepScheduler:
    """Runs the pending-job sweep and retention cleanup on a fixed interval."""

    def __init__(self, detection_service: SimilarityDetectionService, interval_seconds: float = 3600.0):
        self.detection_service = detection_service
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._runs = 0

    async def run_once(self) -> Dict[str, Any]:
        """Run one sweep; errors are logged so the loop keeps going."""
        result: Dict[str, Any] = {"pending_jobs": 0, "records_removed": 0, "jobs_removed": 0}
        try:
            result["pending_jobs"] = await self.detection_service.process_pending_jobs()
        except Exception as e:
            logger.error("Pending job sweep failed", error=str(e))
        try:
            result.update(await self.detection_service.cleanup_stale_records())
        except Exception as e:
            logger.error("Similarity cleanup failed", error=str(e))
        self._runs += 1
        return result

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())
            logger.info("Similarity sweep started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Similarity sweep stopped", runs=self._runs)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()


__all__ = ["SimilaritySweepScheduler"]
