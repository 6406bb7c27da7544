# src/workflow/batch.py — v1
"""Per-article batch loop with failure isolation.

Each iteration selects candidates, analyzes them, ranks the topics, writes
the article, adds an optional cover image, publishes it and marks the
candidates processed. A failing iteration is recorded as an
IterationFailure and the loop moves on; an iteration finding no candidates
ends the loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from feedforge.config.loader import PipelineConfig
from feedforge.content.parsing import ParseError
from feedforge.core.models import CandidateItem
from feedforge.logging.context import set_step_context
from feedforge.reporting.models import (
    AnalysisDigest,
    ArticleOutcome,
    IterationFailure,
    IterationStage,
)
from feedforge.strategy.ranking import (
    rank_topics,
    select_candidates,
    select_high_value_articles,
)
from feedforge.workflow.collaborators import Collaborators
from feedforge.workflow.models import GENERATE, PipelineOptions

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of one batch, in iteration order."""

    outcomes: list[ArticleOutcome | IterationFailure] = field(default_factory=list)
    nothing_to_process: bool = False
    cancelled: bool = False

    @property
    def successes(self) -> list[ArticleOutcome]:
        return [o for o in self.outcomes if isinstance(o, ArticleOutcome)]

    @property
    def failures(self) -> list[IterationFailure]:
        return [o for o in self.outcomes if isinstance(o, IterationFailure)]


class ArticleBatchRunner:
    """Run ``options.count`` independent article iterations.

    Args:
        collaborators: Store, analyzer, writer, image generator and publisher.
        is_cancelled: Polled before every iteration.
    """

    def __init__(
        self,
        collaborators: Collaborators,
        is_cancelled: Callable[[], bool] | None = None,
    ) -> None:
        self._c = collaborators
        self._is_cancelled = is_cancelled or (lambda: False)

    async def run(self, config: PipelineConfig, options: PipelineOptions) -> BatchResult:
        result = BatchResult()
        for iteration in range(1, options.count + 1):
            if self._is_cancelled():
                logger.info("Batch cancelled before iteration %d", iteration)
                result.cancelled = True
                break

            set_step_context(GENERATE, iteration)
            outcome = await self._run_iteration(iteration, config, options)
            if outcome is None:
                if iteration == 1:
                    result.nothing_to_process = True
                logger.info("No unprocessed candidates left at iteration %d", iteration)
                break
            result.outcomes.append(outcome)

        set_step_context(GENERATE)
        logger.info(
            "Batch finished: %d generated, %d failed",
            len(result.successes), len(result.failures),
        )
        return result

    async def _select_items(
        self, config: PipelineConfig, options: PipelineOptions,
    ) -> list[CandidateItem]:
        if options.selected_items:
            items: list[CandidateItem] = []
            for item_id in options.selected_items:
                item = await self._c.store.get_item(item_id)
                if item is None:
                    logger.warning("Selected item not found: %s", item_id)
                    continue
                items.append(item)
            return items

        pending = await self._c.store.get_unprocessed_items()
        if not pending:
            return []
        return select_candidates(pending, config.strategy.articles_per_blog)

    async def _run_iteration(
        self,
        iteration: int,
        config: PipelineConfig,
        options: PipelineOptions,
    ) -> ArticleOutcome | IterationFailure | None:
        """One article. Returns None when there is nothing to select."""
        stage: IterationStage = "select"
        try:
            items = await self._select_items(config, options)
            if not items:
                return None
            logger.info("Iteration %d: %d candidate items", iteration, len(items))

            stage = "analyze"
            analysis = await self._c.analyzer.analyze(items, config.ranking, options.ai_model)
            if isinstance(analysis, ParseError):
                return _failure(iteration, stage, analysis.reason, "ParseError")

            topics = rank_topics(analysis.topics, config.ranking)
            high_value = select_high_value_articles(
                analysis.articles, config.ranking.min_value_score,
            )
            logger.debug(
                "Iteration %d: %d topics selected, %d high-value articles",
                iteration, len(topics), len(high_value),
            )

            stage = "generate"
            article = await self._c.writer.generate_article_text(
                analysis, topics, high_value, items,
                config.strategy.word_count, options.ai_model,
            )
            if isinstance(article, ParseError):
                return _failure(iteration, stage, article.reason, "ParseError")

            image_filename = await self._cover_image(article.image_prompt, config)

            stage = "publish"
            style = options.output_style or config.output.style
            path = await self._c.publisher.format_and_save(
                article, image_filename, style, options.output_dir,
            )

            stage = "mark_processed"
            await self._c.store.mark_processed(items, [t.title for t in analysis.topics])
        except Exception as e:
            logger.error(
                "Iteration %d failed at %s: %s: %s",
                iteration, stage, type(e).__name__, e,
            )
            return _failure(iteration, stage, str(e) or type(e).__name__, type(e).__name__)

        return ArticleOutcome(
            iteration=iteration,
            title=article.title,
            description=article.description,
            path=str(path),
            word_count=len(article.content),
            source_item_ids=[i.id for i in items],
            topics=[t.title for t in topics],
            image_filename=image_filename,
            analysis=AnalysisDigest.from_analysis(article.title, analysis),
        )

    async def _cover_image(self, prompt: str, config: PipelineConfig) -> str | None:
        if not prompt:
            return None
        try:
            return await self._c.image_generator.generate_image(prompt, config.output.images_dir)
        except Exception as e:
            logger.warning("Cover image skipped: %s", e)
            return None


def _failure(iteration: int, stage: IterationStage, error: str, error_type: str) -> IterationFailure:
    if error_type == "ParseError":
        logger.warning("Iteration %d failed at %s: %s", iteration, stage, error)
    return IterationFailure(iteration=iteration, stage=stage, error=error, error_type=error_type)
