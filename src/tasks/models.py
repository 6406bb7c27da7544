# src/tasks/models.py — v1
"""Task registry models: TaskStatus, Task, TaskStep, TaskEvent, TaskStats."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED})


class TaskStep(BaseModel):
    """Latest announcement for a named step; re-announcing updates in place."""

    step: str
    message: str = ""
    timestamp: datetime


class Task(BaseModel):
    """One tracked pipeline invocation."""

    id: str
    type: str
    status: TaskStatus = TaskStatus.PENDING
    progress: int = 0
    steps: list[TaskStep] = Field(default_factory=list)
    options: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration_ms: int | None = None
    result: Any = None
    error: str | None = None
    error_type: str | None = None

    @property
    def current_step(self) -> TaskStep | None:
        """Most recently announced step, if any."""
        if not self.steps:
            return None
        return max(self.steps, key=lambda s: s.timestamp)


TaskEventKind = Literal["created", "started", "progress", "completed", "failed", "cancelled"]


class TaskEvent(BaseModel):
    """Lifecycle notification carrying a snapshot of the task."""

    kind: TaskEventKind
    task: Task


class TaskStats(BaseModel):
    """Task counts per status."""

    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0
