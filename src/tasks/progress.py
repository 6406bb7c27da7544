# src/tasks/progress.py — v1
"""Progress sinks — the single interface pipelines report progress through.

A sink receives ``(percent, step, message)`` triples. The registry hands a
task-bound sink to each executor; callers may add their own sinks and fan
out with CompositeProgressSink.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from feedforge.tasks.registry import TaskRegistry


@runtime_checkable
class ProgressSink(Protocol):
    """Anything that accepts progress reports."""

    def report(self, percent: int, step: str, message: str = "") -> None:
        ...


class NullProgressSink:
    """Discards all progress reports."""

    def report(self, percent: int, step: str, message: str = "") -> None:
        return None


class RegistryProgressSink:
    """Forwards progress to TaskRegistry.update_progress for one task."""

    def __init__(self, registry: TaskRegistry, task_id: str) -> None:
        self._registry = registry
        self._task_id = task_id

    @property
    def task_id(self) -> str:
        return self._task_id

    def report(self, percent: int, step: str, message: str = "") -> None:
        self._registry.update_progress(self._task_id, percent, step, message)


class CompositeProgressSink:
    """Fans each report out to several sinks, in order."""

    def __init__(self, *sinks: ProgressSink | None) -> None:
        self._sinks = [s for s in sinks if s is not None]

    def report(self, percent: int, step: str, message: str = "") -> None:
        for sink in self._sinks:
            sink.report(percent, step, message)


@dataclass
class RecordingProgressSink:
    """Keeps every report in memory; handy for CLIs and tests."""

    reports: list[tuple[int, str, str]] = field(default_factory=list)

    def report(self, percent: int, step: str, message: str = "") -> None:
        self.reports.append((percent, step, message))

    @property
    def steps(self) -> list[str]:
        return [step for _, step, _ in self.reports]
