# src/tasks/registry.py — v1
"""Task registry — authoritative in-memory store of Task records.

The registry is the only component allowed to change a task's status.
State machine:

    PENDING --start_task--> IN_PROGRESS
    IN_PROGRESS --executor returns--> COMPLETED
    IN_PROGRESS --executor raises--> FAILED
    IN_PROGRESS --cancel_task--> CANCELLED

COMPLETED, FAILED and CANCELLED are terminal. Cancellation is cooperative:
it flips the status and notifies listeners, but does not interrupt the
executor; executors poll ``is_cancelled`` between steps.

Every method except ``start_task`` is synchronous and ``start_task`` only
suspends inside the executor, so concurrent pipelines on one event loop can
share a registry without locking.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from feedforge.tasks.models import (
    Task,
    TaskEvent,
    TaskEventKind,
    TaskStats,
    TaskStatus,
    TaskStep,
)
from feedforge.tasks.progress import ProgressSink, RegistryProgressSink

logger = logging.getLogger(__name__)

Executor = Callable[[ProgressSink], Awaitable[Any]]
TaskListener = Callable[[TaskEvent], None]

DEFAULT_MAX_AGE_S = 3600


class TaskRegistryError(Exception):
    """Base class for registry errors."""


class NotFoundError(TaskRegistryError, LookupError):
    """Raised when a task id was never registered (or has been evicted)."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class InvalidStateError(TaskRegistryError):
    """Raised when an operation is not allowed from the task's current status."""

    def __init__(self, task_id: str, status: TaskStatus, action: str = "start") -> None:
        self.task_id = task_id
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action} task {task_id}: status is {status.value}"
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskRegistry:
    """In-memory registry of pipeline tasks.

    Args:
        clock: Optional callable returning the current aware datetime
            (injected by tests that need deterministic timestamps).
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._tasks: dict[str, Task] = {}
        self._ids = itertools.count(1)
        self._listeners: list[TaskListener] = []
        self._clock = clock or _utcnow

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_task(self, task_type: str, options: dict[str, Any] | None = None) -> str:
        """Register a new PENDING task and return its id."""
        task_id = f"task_{next(self._ids)}"
        task = Task(
            id=task_id,
            type=task_type,
            options=dict(options or {}),
            created_at=self._clock(),
        )
        self._tasks[task_id] = task
        logger.debug("Created %s (%s)", task_id, task_type)
        self._emit("created", task)
        return task_id

    async def start_task(self, task_id: str, executor: Executor) -> Any:
        """Run ``executor`` as the body of a PENDING task.

        The executor receives a ProgressSink bound to this task. Its return
        value becomes the task result; an exception marks the task FAILED
        and is re-raised to the caller.

        Raises:
            NotFoundError: Unknown task id.
            InvalidStateError: Task is not PENDING.
        """
        task = self._require(task_id)
        if task.status is not TaskStatus.PENDING:
            raise InvalidStateError(task_id, task.status)

        task.status = TaskStatus.IN_PROGRESS
        task.start_time = self._clock()
        self._emit("started", task)

        try:
            result = await executor(RegistryProgressSink(self, task_id))
        except asyncio.CancelledError:
            if task.status is TaskStatus.IN_PROGRESS:
                task.status = TaskStatus.CANCELLED
                self._stamp_end(task)
                self._emit("cancelled", task)
            raise
        except Exception as exc:
            if task.status is TaskStatus.IN_PROGRESS:
                task.status = TaskStatus.FAILED
                task.error = str(exc) or type(exc).__name__
                task.error_type = type(exc).__name__
                self._stamp_end(task)
                logger.error("Task %s failed: %s", task_id, task.error)
                self._emit("failed", task)
            else:
                logger.warning(
                    "Task %s raised after reaching %s: %s",
                    task_id, task.status.value, exc,
                )
            raise

        if task.status is not TaskStatus.IN_PROGRESS:
            logger.info(
                "Task %s finished while %s; result discarded",
                task_id, task.status.value,
            )
            return result

        task.status = TaskStatus.COMPLETED
        task.result = result
        task.progress = 100
        self._stamp_end(task)
        logger.info("Task %s completed in %dms", task_id, task.duration_ms or 0)
        self._emit("completed", task)
        return result

    def update_progress(
        self,
        task_id: str,
        percent: int | float,
        step: str | None = None,
        message: str = "",
    ) -> bool:
        """Record progress for an IN_PROGRESS task.

        Stale callbacks (unknown, pending or terminal task) are ignored.

        Returns:
            True if the update was applied.
        """
        task = self._tasks.get(task_id)
        if task is None or task.status is not TaskStatus.IN_PROGRESS:
            return False

        task.progress = int(max(0, min(100, percent)))
        if step:
            now = self._clock()
            for entry in task.steps:
                if entry.step == step:
                    entry.message = message
                    entry.timestamp = now
                    break
            else:
                task.steps.append(TaskStep(step=step, message=message, timestamp=now))

        self._emit("progress", task)
        return True

    def cancel_task(self, task_id: str) -> bool:
        """Flip an IN_PROGRESS task to CANCELLED.

        PENDING and terminal tasks are left untouched. In-flight work is not
        interrupted; the executor notices on its next ``is_cancelled`` poll.

        Returns:
            True if the task was cancelled by this call.

        Raises:
            NotFoundError: Unknown task id.
        """
        task = self._require(task_id)
        if task.status is not TaskStatus.IN_PROGRESS:
            logger.debug("Ignoring cancel for %s in status %s", task_id, task.status.value)
            return False

        task.status = TaskStatus.CANCELLED
        self._stamp_end(task)
        logger.info("Task %s cancelled", task_id)
        self._emit("cancelled", task)
        return True

    def is_cancelled(self, task_id: str) -> bool:
        task = self._tasks.get(task_id)
        return task is not None and task.status is TaskStatus.CANCELLED

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_task(self, task_id: str) -> Task | None:
        """Return a snapshot of the task, or None if unknown."""
        task = self._tasks.get(task_id)
        return task.model_copy(deep=True) if task is not None else None

    def get_tasks(self) -> list[Task]:
        """Snapshots of all tasks in creation order."""
        return [t.model_copy(deep=True) for t in self._tasks.values()]

    def get_task_status(self, task_id: str) -> TaskStatus | None:
        task = self._tasks.get(task_id)
        return task.status if task is not None else None

    def get_stats(self) -> TaskStats:
        """Count tasks per status."""
        stats = TaskStats(total=len(self._tasks))
        for task in self._tasks.values():
            field = task.status.value
            setattr(stats, field, getattr(stats, field) + 1)
        return stats

    def cleanup_tasks(self, max_age_s: float = DEFAULT_MAX_AGE_S) -> int:
        """Evict terminal tasks that ended more than ``max_age_s`` ago.

        Returns:
            Number of evicted tasks.
        """
        now = self._clock()
        expired = [
            task_id
            for task_id, task in self._tasks.items()
            if task.status.is_terminal
            and (now - (task.end_time or task.start_time or task.created_at)).total_seconds()
            > max_age_s
        ]
        for task_id in expired:
            del self._tasks[task_id]
        if expired:
            logger.debug("Evicted %d finished tasks", len(expired))
        return len(expired)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(self, listener: TaskListener) -> None:
        """Register a lifecycle listener (called synchronously)."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: TaskListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, kind: TaskEventKind, task: Task) -> None:
        if not self._listeners:
            return
        event = TaskEvent(kind=kind, task=task.model_copy(deep=True))
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Task listener failed on '%s' for %s", kind, task.id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    def _stamp_end(self, task: Task) -> None:
        task.end_time = self._clock()
        if task.start_time is not None:
            task.duration_ms = int(
                (task.end_time - task.start_time).total_seconds() * 1000
            )
