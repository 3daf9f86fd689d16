"""Background task tracking with cancellation support."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Any, Awaitable, Dict, List, Optional, Set

import structlog

from docsearch.domain.entities.document import utc_now
from docsearch.domain.interfaces import ITaskManager
from docsearch.domain.task_types import TaskInfo, TaskStatus, TaskType

logger = structlog.get_logger(__name__)

FINISHED_TASK_RETENTION = timedelta(hours=1)


class TaskManager(ITaskManager):
    """Runs fire-and-forget coroutines as tracked asyncio tasks.

    Finished task records are pruned lazily whenever a new task is created, so
    the manager needs no timer of its own and can be constructed outside a
    running event loop.
    """

    def __init__(self, retention: timedelta = FINISHED_TASK_RETENTION):
        self._retention = retention
        self._tasks: Dict[str, asyncio.Task] = {}
        self._task_info: Dict[str, TaskInfo] = {}
        self._subject_to_tasks: Dict[str, Set[str]] = {}
        self._shutdown = False

    def _prune_finished(self) -> None:
        cutoff = utc_now() - self._retention
        stale = [
            task_id
            for task_id, info in self._task_info.items()
            if info.status.is_finished and info.completed_at and info.completed_at < cutoff
        ]
        for task_id in stale:
            self._forget(task_id)
        if stale:
            logger.debug("Pruned finished tasks", count=len(stale))

    def _forget(self, task_id: str) -> None:
        info = self._task_info.pop(task_id, None)
        if info:
            siblings = self._subject_to_tasks.get(info.subject_id)
            if siblings:
                siblings.discard(task_id)
                if not siblings:
                    del self._subject_to_tasks[info.subject_id]
        self._tasks.pop(task_id, None)

    def create_task(
        self,
        coro: Awaitable[Any],
        *,
        task_id: str,
        task_type: TaskType,
        subject_id: str,
        additional_data: Optional[Dict[str, Any]] = None,
    ) -> asyncio.Task:
        """Create and track a background task."""
        if self._shutdown:
            raise RuntimeError("Task manager is shut down")

        self._prune_finished()

        task_info = TaskInfo(
            task_id=task_id,
            subject_id=subject_id,
            task_type=task_type,
            additional_data=additional_data or {},
        )

        log = logger.bind(task_id=task_id, subject_id=subject_id, task_type=task_type.value)

        async def run_tracked():
            task_info.mark_started()
            log.info("Background task started")
            try:
                result = await coro
            except asyncio.CancelledError:
                task_info.mark_cancelled("Task was cancelled")
                log.info("Background task cancelled")
                raise
            except Exception as e:
                # Failures stay on the TaskInfo; the caller never awaits the task
                task_info.mark_failed(str(e))
                log.error("Background task failed", error=str(e))
                return None
            task_info.mark_completed()
            log.info("Background task completed")
            return result

        def close_unstarted(finished: asyncio.Task) -> None:
            # A task cancelled before its first step never awaited the coroutine
            if finished.cancelled() and task_info.status == TaskStatus.PENDING:
                task_info.mark_cancelled("Task was cancelled before start")
                close = getattr(coro, "close", None)
                if close is not None:
                    close()

        task = asyncio.create_task(run_tracked(), name=f"{task_type.value}:{task_id}")
        task.add_done_callback(close_unstarted)
        self._tasks[task_id] = task
        self._task_info[task_id] = task_info
        self._subject_to_tasks.setdefault(subject_id, set()).add(task_id)
        log.debug("Background task scheduled")
        return task

    async def cancel_task(self, task_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        """Cancel a specific task and wait briefly for it to unwind."""
        task_info = self._task_info.get(task_id)
        if not task_info:
            return {"cancelled": False, "reason": "Task not found"}

        if task_info.status.is_finished:
            return {"cancelled": False, "reason": f"Task already {task_info.status.value}"}

        task = self._tasks.get(task_id)
        if task and not task.done():
            task.cancel()
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout=1.0)
            except (asyncio.TimeoutError, asyncio.CancelledError):
                pass

        task_info.mark_cancelled(reason)
        logger.info(
            "Task cancelled",
            task_id=task_id,
            subject_id=task_info.subject_id,
            task_type=task_info.task_type.value,
            reason=reason,
        )
        return {"cancelled": True, "reason": reason}

    def get_task_info(self, task_id: str) -> Optional[TaskInfo]:
        return self._task_info.get(task_id)

    def get_tasks_for_subject(self, subject_id: str) -> List[TaskInfo]:
        task_ids = self._subject_to_tasks.get(subject_id, set())
        return [self._task_info[task_id] for task_id in task_ids if task_id in self._task_info]

    def get_active_task_count(self) -> int:
        return sum(
            1 for info in self._task_info.values()
            if info.status in (TaskStatus.PENDING, TaskStatus.RUNNING)
        )

    def get_task_stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = {
            "total_tasks": len(self._task_info),
            "active_tasks": self.get_active_task_count(),
            "by_status": {},
            "by_type": {},
        }
        for info in self._task_info.values():
            stats["by_status"][info.status.value] = stats["by_status"].get(info.status.value, 0) + 1
            stats["by_type"][info.task_type.value] = stats["by_type"].get(info.task_type.value, 0) + 1
        return stats

    async def wait_for_subject(self, subject_id: str) -> None:
        """Wait until every task of a subject has finished."""
        tasks = [
            self._tasks[task_id]
            for task_id in self._subject_to_tasks.get(subject_id, set())
            if task_id in self._tasks
        ]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def check_health(self) -> Dict[str, Any]:
        return {
            "status": "healthy" if not self._shutdown else "shutting_down",
            "active_tasks": self.get_active_task_count(),
            "total_tasks": len(self._task_info),
        }

    async def shutdown(self) -> None:
        """Cancel all running tasks and refuse new ones."""
        self._shutdown = True

        active_tasks = [task for task in self._tasks.values() if not task.done()]
        for task in active_tasks:
            task.cancel()
        if active_tasks:
            await asyncio.gather(*active_tasks, return_exceptions=True)

        logger.info("Task manager shutdown completed", cancelled_tasks=len(active_tasks))


__all__ = ["TaskManager", "TaskInfo", "TaskType", "TaskStatus"]
