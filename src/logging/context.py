# src/logging/context.py — v1
"""Contextual logging support — attach task_id, pipeline, step, iteration to log records.

Context lives in contextvars, so each asyncio task running a pipeline
carries its own values and concurrent pipelines never mix them.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_task_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "task_id", default=None
)
_pipeline: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "pipeline", default=None
)
_step: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step", default=None
)
_iteration: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "iteration", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    task_id: str | None = None
    pipeline: str | None = None
    step: str | None = None
    iteration: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        task_id=_task_id.get(),
        pipeline=_pipeline.get(),
        step=_step.get(),
        iteration=_iteration.get(),
    )


def set_task_context(task_id: str, pipeline: str) -> None:
    """Set task-level context (called once per pipeline execution)."""
    _task_id.set(task_id)
    _pipeline.set(pipeline)


def set_step_context(step: str | None, iteration: int | None = None) -> None:
    """Set step-level context (called per pipeline step / batch iteration)."""
    _step.set(step)
    _iteration.set(iteration)


def clear_context() -> None:
    """Reset all context variables."""
    _task_id.set(None)
    _pipeline.set(None)
    _step.set(None)
    _iteration.set(None)
