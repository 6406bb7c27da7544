# src/workflow/orchestrator.py — v1
"""Workflow orchestrator — named multi-step pipelines on top of the task registry.

Every tracked pipeline runs as the executor of one registry task. Steps come
from the pre-declared tables in workflow/models.py; before each step the
orchestrator polls the registry for cancellation, then reports the step's
fixed progress triple, then does the step's work.

Pipelines:
  full         load_config → fetch → store → generate → build_report → persist_report → done
  fetch        load_config → fetch → store → build_report → persist_report → done
  analyze      load_config → generate → build_report (+persist) → done
  incremental  load_config → check_pending → generate → build_report → persist_report → done
  cleanup      not tracked, see run_cleanup()
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from feedforge.config.loader import PipelineConfig
from feedforge.core.models import CandidateItem
from feedforge.logging.context import clear_context, set_step_context, set_task_context
from feedforge.reporting.builder import ReportBuilder
from feedforge.reporting.models import Report
from feedforge.tasks.models import Task, TaskStats
from feedforge.tasks.progress import CompositeProgressSink, ProgressSink
from feedforge.tasks.registry import DEFAULT_MAX_AGE_S, TaskRegistry
from feedforge.workflow.batch import ArticleBatchRunner, BatchResult
from feedforge.workflow.collaborators import Collaborators
from feedforge.workflow.models import (
    BUILD_REPORT,
    CHECK_PENDING,
    DONE,
    FETCH,
    GENERATE,
    LOAD_CONFIG,
    PERSIST_REPORT,
    STORE,
    PipelineOptions,
    PipelineType,
    WorkflowResult,
    get_step,
)

logger = logging.getLogger(__name__)

NO_ARTICLES_FETCHED = "No articles fetched"
NO_UNPROCESSED_ARTICLES = "No unprocessed articles"
NO_NEW_ARTICLES = "No new articles to process"


class PipelineCancelled(Exception):
    """Raised inside a pipeline when its task was cancelled before a step."""

    def __init__(self, task_id: str, step: str) -> None:
        self.task_id = task_id
        self.step = step
        super().__init__(f"Task {task_id} cancelled before step '{step}'")


@dataclass
class _Run:
    """Per-run state threaded through one pipeline body."""

    task_id: str
    pipeline: PipelineType
    options: PipelineOptions
    progress: ProgressSink
    started_at: datetime


def coerce_options(options: PipelineOptions | dict[str, Any] | None) -> PipelineOptions:
    if options is None:
        return PipelineOptions()
    if isinstance(options, PipelineOptions):
        return options
    return PipelineOptions.model_validate(options)


def resolve_pipeline_type(
    pipeline_type: PipelineType | str, options: PipelineOptions,
) -> PipelineType:
    """Validate a tracked pipeline type.

    Raises:
        ValueError: Unknown type, or ``cleanup`` (not task-tracked).
    """
    pipeline = PipelineType(pipeline_type)
    if pipeline is PipelineType.CLEANUP:
        raise ValueError("cleanup is not task-tracked; call run_cleanup()")
    if pipeline is PipelineType.FETCH and options.selected_feeds:
        return PipelineType.FETCH_SELECTIVE
    return pipeline


class WorkflowOrchestrator:
    """Compose registry, ranking, report builder and collaborators into pipelines.

    Args:
        collaborators: External capabilities (config, fetch, store, AI, publish, report sink).
        registry: Task registry; a private one is created when omitted.
        report_builder: Report builder; a default one is created when omitted.
        task_retention_s: Age after which run_cleanup() evicts finished tasks.
        clock: Returns the current aware datetime.
    """

    def __init__(
        self,
        collaborators: Collaborators,
        registry: TaskRegistry | None = None,
        report_builder: ReportBuilder | None = None,
        task_retention_s: float = DEFAULT_MAX_AGE_S,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._c = collaborators
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._registry = registry or TaskRegistry()
        self._builder = report_builder or ReportBuilder(clock=self._clock)
        self._task_retention_s = task_retention_s
        self._background: set[asyncio.Task[WorkflowResult]] = set()
        self._pipelines: dict[PipelineType, Callable[[_Run], Awaitable[WorkflowResult]]] = {
            PipelineType.FULL: self._run_full,
            PipelineType.FETCH: self._run_fetch,
            PipelineType.FETCH_SELECTIVE: self._run_fetch,
            PipelineType.ANALYZE: self._run_analyze,
            PipelineType.INCREMENTAL: self._run_incremental,
        }

    @property
    def registry(self) -> TaskRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def create_and_run_pipeline(
        self,
        pipeline_type: PipelineType | str,
        options: PipelineOptions | dict[str, Any] | None = None,
        progress: ProgressSink | None = None,
    ) -> str:
        """Register a task and run it in the background on the running loop.

        Returns:
            The task id; poll get_task() for status and result.

        Raises:
            ValueError: Unknown pipeline type or ``cleanup``.
            RuntimeError: No running event loop.
        """
        opts = coerce_options(options)
        pipeline = resolve_pipeline_type(pipeline_type, opts)
        task_id = self._registry.create_task(pipeline.value, opts.model_dump(mode="json"))
        background = asyncio.get_running_loop().create_task(
            self._execute(task_id, pipeline, opts, progress),
            name=f"feedforge-{task_id}",
        )
        self._background.add(background)
        background.add_done_callback(self._on_background_done)
        return task_id

    async def run_pipeline(
        self,
        pipeline_type: PipelineType | str,
        options: PipelineOptions | dict[str, Any] | None = None,
        progress: ProgressSink | None = None,
    ) -> WorkflowResult:
        """Register a task, run it and wait for its result.

        Fatal errors (configuration, report persistence) propagate after the
        task has been marked FAILED.
        """
        opts = coerce_options(options)
        pipeline = resolve_pipeline_type(pipeline_type, opts)
        task_id = self._registry.create_task(pipeline.value, opts.model_dump(mode="json"))
        return await self._execute(task_id, pipeline, opts, progress)

    def get_task(self, task_id: str) -> Task | None:
        return self._registry.get_task(task_id)

    def list_tasks(self) -> list[Task]:
        return self._registry.get_tasks()

    def cancel_task(self, task_id: str) -> bool:
        """Cooperative cancel; the pipeline stops before its next step."""
        return self._registry.cancel_task(task_id)

    def get_stats(self) -> TaskStats:
        return self._registry.get_stats()

    async def run_cleanup(self) -> WorkflowResult:
        """Remove invalid stored files, recompute stats and evict old tasks (untracked)."""
        removed = await self._c.store.cleanup_invalid_files()
        stats = await self._c.store.get_stats()
        evicted = self._registry.cleanup_tasks(self._task_retention_s)
        logger.info(
            "Cleanup: %d invalid files removed, %d tasks evicted, %d stored items (%.0f%% processed)",
            removed, evicted, stats.total_articles, stats.processed_ratio * 100,
        )
        return WorkflowResult(
            success=True,
            message="Cleanup finished",
            timestamp=self._clock(),
            data={
                "removed_files": removed,
                "evicted_tasks": evicted,
                "stats": stats.model_dump(),
            },
        )

    async def wait_all(self) -> None:
        """Wait for every background pipeline started by this orchestrator."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _execute(
        self,
        task_id: str,
        pipeline: PipelineType,
        options: PipelineOptions,
        progress: ProgressSink | None,
    ) -> WorkflowResult:
        body = self._pipelines[pipeline]

        async def executor(sink: ProgressSink) -> WorkflowResult:
            set_task_context(task_id, pipeline.value)
            run = _Run(
                task_id=task_id,
                pipeline=pipeline,
                options=options,
                progress=CompositeProgressSink(sink, progress),
                started_at=self._clock(),
            )
            logger.info("Starting %s pipeline", pipeline.value)
            try:
                return await body(run)
            except PipelineCancelled as e:
                logger.info("Pipeline stopped: %s", e)
                return self._result(run, False, f"Cancelled before step '{e.step}'")
            finally:
                clear_context()

        return await self._registry.start_task(task_id, executor)

    def _on_background_done(self, task: asyncio.Task[WorkflowResult]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background pipeline %s failed: %s", task.get_name(), exc)

    def _enter(self, run: _Run, step: str) -> None:
        """Poll for cancellation, then announce ``step``."""
        if self._registry.is_cancelled(run.task_id):
            raise PipelineCancelled(run.task_id, step)
        spec = get_step(run.pipeline, step)
        set_step_context(step)
        run.progress.report(spec.percent, spec.name, spec.message)
        logger.info("[%d%%] %s", spec.percent, spec.message)

    def _result(
        self,
        run: _Run,
        success: bool,
        message: str,
        report: Report | None = None,
        **data: Any,
    ) -> WorkflowResult:
        return WorkflowResult(
            success=success,
            message=message,
            timestamp=self._clock(),
            report=report,
            data={"task_id": run.task_id, "pipeline": run.pipeline.value, **data},
        )

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    async def _load_config(self, run: _Run) -> PipelineConfig:
        self._enter(run, LOAD_CONFIG)
        return await self._c.config_loader.load()

    async def _fetch(self, run: _Run, config: PipelineConfig) -> list[CandidateItem]:
        self._enter(run, FETCH)
        feeds = config.enabled_feeds(run.options.selected_feeds or None)
        if run.options.selected_feeds:
            logger.info("Fetching %d selected feeds", len(feeds))
        return await self._c.fetcher.fetch_candidates(feeds, config.fetch.limit_per_source)

    async def _store(self, run: _Run, items: list[CandidateItem]) -> int:
        self._enter(run, STORE)
        stored = 0
        for item in items:
            if await self._c.store.store_item(item):
                stored += 1
        logger.info("Stored %d new of %d fetched items", stored, len(items))
        return stored

    async def _generate(self, run: _Run, config: PipelineConfig) -> BatchResult:
        self._enter(run, GENERATE)
        runner = ArticleBatchRunner(
            self._c, is_cancelled=lambda: self._registry.is_cancelled(run.task_id),
        )
        return await runner.run(config, run.options)

    async def _build_report(
        self,
        run: _Run,
        config: PipelineConfig,
        batch: BatchResult | None,
        articles_fetched: int | None = None,
    ) -> Report:
        self._enter(run, BUILD_REPORT)
        stats = await self._c.store.get_stats()
        return self._builder.build(
            run.pipeline.value,
            batch.outcomes if batch is not None else [],
            config,
            run.started_at,
            stats,
            articles_fetched=articles_fetched,
            success=batch is None or bool(batch.successes),
        )

    async def _persist_report(self, report: Report) -> None:
        await self._c.report_sink.persist_report(report, self._builder.render_html(report))

    def _finish(self, run: _Run, report: Report, **data: Any) -> WorkflowResult:
        self._enter(run, DONE)
        failed = len(report.failures)
        message = f"Generated {report.generated_count} articles"
        if failed:
            message += f" ({failed} failed)"
        return self._result(
            run, report.success, message, report,
            generated_count=report.generated_count,
            failed_iterations=failed,
            **data,
        )

    # ------------------------------------------------------------------
    # Pipelines
    # ------------------------------------------------------------------

    async def _run_full(self, run: _Run) -> WorkflowResult:
        config = await self._load_config(run)
        items = await self._fetch(run, config)
        if not items:
            self._enter(run, DONE)
            return self._result(run, False, NO_ARTICLES_FETCHED, articles_fetched=0)

        stored = await self._store(run, items)
        batch = await self._generate(run, config)
        if batch.nothing_to_process:
            self._enter(run, DONE)
            return self._result(
                run, False, NO_UNPROCESSED_ARTICLES,
                articles_fetched=len(items), stored_new=stored,
            )

        report = await self._build_report(run, config, batch, articles_fetched=len(items))
        self._enter(run, PERSIST_REPORT)
        await self._persist_report(report)
        return self._finish(run, report, articles_fetched=len(items), stored_new=stored)

    async def _run_fetch(self, run: _Run) -> WorkflowResult:
        config = await self._load_config(run)
        items = await self._fetch(run, config)
        if not items:
            self._enter(run, DONE)
            return self._result(run, False, NO_ARTICLES_FETCHED, articles_fetched=0)

        stored = await self._store(run, items)
        report = await self._build_report(run, config, None, articles_fetched=len(items))
        self._enter(run, PERSIST_REPORT)
        await self._persist_report(report)
        self._enter(run, DONE)
        return self._result(
            run, True, f"Fetched {len(items)} articles ({stored} new)", report,
            articles_fetched=len(items), stored_new=stored, generated_count=0,
        )

    async def _run_analyze(self, run: _Run) -> WorkflowResult:
        config = await self._load_config(run)
        batch = await self._generate(run, config)
        if batch.nothing_to_process:
            self._enter(run, DONE)
            return self._result(run, False, NO_UNPROCESSED_ARTICLES)

        report = await self._build_report(run, config, batch)
        await self._persist_report(report)
        return self._finish(run, report)

    async def _run_incremental(self, run: _Run) -> WorkflowResult:
        config = await self._load_config(run)

        self._enter(run, CHECK_PENDING)
        if not run.options.selected_items:
            pending = await self._c.store.get_unprocessed_items(limit=1)
            if not pending:
                self._enter(run, DONE)
                return self._result(run, False, NO_NEW_ARTICLES)

        batch = await self._generate(run, config)
        if batch.nothing_to_process:
            self._enter(run, DONE)
            return self._result(run, False, NO_UNPROCESSED_ARTICLES)

        report = await self._build_report(run, config, batch)
        self._enter(run, PERSIST_REPORT)
        await self._persist_report(report)
        return self._finish(run, report)
