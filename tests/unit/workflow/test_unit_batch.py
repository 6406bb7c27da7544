# tests/unit/workflow/test_unit_batch.py — v1
"""Tests for workflow/batch.py — per-article loop with failure isolation."""

from __future__ import annotations

import pytest

from feedforge.reporting.models import ArticleOutcome, IterationFailure
from feedforge.workflow.batch import ArticleBatchRunner, BatchResult
from feedforge.workflow.models import PipelineOptions


class TestArticleBatchRunner:
    @pytest.mark.asyncio
    async def test_outcome_details(self, collaborators, pipeline_config, sample_items):
        result = await ArticleBatchRunner(collaborators).run(pipeline_config, PipelineOptions())

        assert not result.nothing_to_process
        [outcome] = result.successes
        assert outcome.iteration == 1
        assert outcome.title == "Weekly Systems Digest"
        assert outcome.source_item_ids == ["a", "b"]
        assert outcome.processed_items == 2
        assert outcome.topics == ["Memory safety", "Deploy safety"]
        assert outcome.image_filename == "cover-1.png"
        assert outcome.analysis.summary == "Systems work is getting safer."

        items, topics = collaborators.store.mark_processed.await_args.args
        assert items == sample_items[:2]
        assert topics == ["Memory safety", "Async IO", "Deploy safety"]

    @pytest.mark.asyncio
    async def test_writer_gets_ranked_topics_and_high_value_articles(
        self, collaborators, pipeline_config,
    ):
        await ArticleBatchRunner(collaborators).run(pipeline_config, PipelineOptions())
        analysis, topics, high_value, items, word_count, model = (
            collaborators.writer.generate_article_text.await_args.args
        )
        assert [t.title for t in topics] == ["Memory safety", "Deploy safety"]
        assert [a.title for a in high_value] == ["Rust in the kernel"]
        assert word_count == 1200
        assert model is None

    @pytest.mark.asyncio
    async def test_no_candidates_on_first_iteration(self, collaborators, pipeline_config):
        collaborators.store.get_unprocessed_items.return_value = []
        result = await ArticleBatchRunner(collaborators).run(
            pipeline_config, PipelineOptions(count=3),
        )
        assert result.nothing_to_process is True
        assert result.outcomes == []
        collaborators.analyzer.analyze.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_candidates_run_out_later(self, collaborators, pipeline_config, sample_items):
        collaborators.store.get_unprocessed_items.side_effect = [sample_items, []]
        result = await ArticleBatchRunner(collaborators).run(
            pipeline_config, PipelineOptions(count=3),
        )
        assert result.nothing_to_process is False
        assert len(result.successes) == 1
        assert collaborators.store.get_unprocessed_items.await_count == 2

    @pytest.mark.asyncio
    async def test_select_failure_is_recorded(self, collaborators, pipeline_config, sample_items):
        collaborators.store.get_unprocessed_items.side_effect = [OSError("io"), sample_items]
        result = await ArticleBatchRunner(collaborators).run(
            pipeline_config, PipelineOptions(count=2),
        )
        assert isinstance(result.outcomes[0], IterationFailure)
        assert result.outcomes[0].stage == "select"
        assert isinstance(result.outcomes[1], ArticleOutcome)

    @pytest.mark.asyncio
    async def test_mark_processed_failure_is_recorded(self, collaborators, pipeline_config):
        collaborators.store.mark_processed.side_effect = PermissionError("locked")
        result = await ArticleBatchRunner(collaborators).run(pipeline_config, PipelineOptions())
        assert [(f.stage, f.error_type) for f in result.failures] == [
            ("mark_processed", "PermissionError"),
        ]

    @pytest.mark.asyncio
    async def test_no_image_prompt_skips_generator(
        self, collaborators, pipeline_config, sample_article,
    ):
        collaborators.writer.generate_article_text.return_value = sample_article.model_copy(
            update={"image_prompt": ""},
        )
        result = await ArticleBatchRunner(collaborators).run(pipeline_config, PipelineOptions())
        collaborators.image_generator.generate_image.assert_not_awaited()
        assert result.successes[0].image_filename is None

    @pytest.mark.asyncio
    async def test_cancelled_before_first_iteration(self, collaborators, pipeline_config):
        runner = ArticleBatchRunner(collaborators, is_cancelled=lambda: True)
        result = await runner.run(pipeline_config, PipelineOptions(count=2))
        assert result.cancelled is True
        assert result.outcomes == []
        assert result.nothing_to_process is False


class TestBatchResult:
    def test_partitions(self):
        ok = ArticleOutcome(iteration=1, title="t", path="p")
        bad = IterationFailure(iteration=2, stage="analyze", error="e", error_type="E")
        result = BatchResult(outcomes=[ok, bad])
        assert result.successes == [ok]
        assert result.failures == [bad]
