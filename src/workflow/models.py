# src/workflow/models.py — v1
"""Pipeline types, step tables, per-run options and the workflow result."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from feedforge.core.models import OutputStyle
from feedforge.reporting.models import Report


class PipelineType(str, Enum):
    """Pipeline tags; the value is also the task type."""

    FULL = "full"
    FETCH = "fetch"
    FETCH_SELECTIVE = "fetch-selective"
    ANALYZE = "analyze"
    INCREMENTAL = "incremental"
    CLEANUP = "cleanup"


@dataclass(frozen=True)
class StepSpec:
    """One pre-declared pipeline step: progress is reported before its work."""

    name: str
    percent: int
    message: str


LOAD_CONFIG = "load_config"
FETCH = "fetch"
STORE = "store"
CHECK_PENDING = "check_pending"
GENERATE = "generate"
BUILD_REPORT = "build_report"
PERSIST_REPORT = "persist_report"
DONE = "done"

FULL_STEPS: tuple[StepSpec, ...] = (
    StepSpec(LOAD_CONFIG, 10, "Loading configuration"),
    StepSpec(FETCH, 25, "Fetching RSS feeds"),
    StepSpec(STORE, 50, "Storing fetched articles"),
    StepSpec(GENERATE, 70, "Analyzing and generating articles"),
    StepSpec(BUILD_REPORT, 90, "Building run report"),
    StepSpec(PERSIST_REPORT, 95, "Saving run report"),
    StepSpec(DONE, 100, "Workflow finished"),
)

FETCH_STEPS: tuple[StepSpec, ...] = (
    StepSpec(LOAD_CONFIG, 15, "Loading configuration"),
    StepSpec(FETCH, 45, "Fetching RSS feeds"),
    StepSpec(STORE, 75, "Storing fetched articles"),
    StepSpec(BUILD_REPORT, 90, "Building run report"),
    StepSpec(PERSIST_REPORT, 95, "Saving run report"),
    StepSpec(DONE, 100, "Fetch finished"),
)

ANALYZE_STEPS: tuple[StepSpec, ...] = (
    StepSpec(LOAD_CONFIG, 10, "Loading configuration"),
    StepSpec(GENERATE, 50, "Analyzing stored articles and generating"),
    StepSpec(BUILD_REPORT, 90, "Building and saving run report"),
    StepSpec(DONE, 100, "Analysis finished"),
)

INCREMENTAL_STEPS: tuple[StepSpec, ...] = (
    StepSpec(LOAD_CONFIG, 10, "Loading configuration"),
    StepSpec(CHECK_PENDING, 25, "Checking for unprocessed articles"),
    StepSpec(GENERATE, 70, "Analyzing and generating articles"),
    StepSpec(BUILD_REPORT, 90, "Building run report"),
    StepSpec(PERSIST_REPORT, 95, "Saving run report"),
    StepSpec(DONE, 100, "Incremental run finished"),
)

PIPELINE_STEPS: dict[PipelineType, tuple[StepSpec, ...]] = {
    PipelineType.FULL: FULL_STEPS,
    PipelineType.FETCH: FETCH_STEPS,
    PipelineType.FETCH_SELECTIVE: FETCH_STEPS,
    PipelineType.ANALYZE: ANALYZE_STEPS,
    PipelineType.INCREMENTAL: INCREMENTAL_STEPS,
}


def get_step(pipeline: PipelineType, name: str) -> StepSpec:
    """Look up a step of a tracked pipeline.

    Raises:
        KeyError: Pipeline has no such step.
    """
    for spec in PIPELINE_STEPS[pipeline]:
        if spec.name == name:
            return spec
    raise KeyError(f"{pipeline.value} has no step {name!r}")


class PipelineOptions(BaseModel):
    """Caller options for one pipeline run."""

    count: int = Field(default=1, ge=1)
    selected_items: list[str] = Field(default_factory=list)
    selected_feeds: list[str] = Field(default_factory=list)
    ai_model: str | None = None
    output_style: OutputStyle | None = None
    output_dir: Path | None = None


class WorkflowResult(BaseModel):
    """Result value of a pipeline task."""

    success: bool
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    report: Report | None = None
    data: dict[str, Any] = Field(default_factory=dict)
