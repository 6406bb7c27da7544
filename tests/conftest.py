# tests/conftest.py — v2
"""Shared test fixtures for all unit tests.

Provides sample candidate items, an analysis payload, a generated article,
a pipeline config rooted in tmp_path and stubbed orchestrator collaborators.
No network access; every collaborator is an AsyncMock.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from feedforge.config.loader import FetchConfig, OutputConfig, PipelineConfig
from feedforge.core.models import (
    AnalysisResult,
    ArticleAssessment,
    CandidateItem,
    FeedSource,
    GeneratedArticle,
    StorageStats,
    Topic,
)
from feedforge.strategy.models import RankingConfig, StrategyConfig
from feedforge.workflow.collaborators import Collaborators

FIXED_NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


# === FIXTURES: Clock ===


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock frozen at 2026-03-02 09:30 UTC."""
    return lambda: FIXED_NOW


# === FIXTURES: Sample data ===


@pytest.fixture
def make_item() -> Callable[..., CandidateItem]:
    """Factory for candidate items; ``hours_ago=None`` gives an undated item."""

    def _make(
        item_id: str,
        title: str | None = None,
        hours_ago: float | None = 1,
        source: str = "Alpha",
        content: str = "<p>Body text</p>",
    ) -> CandidateItem:
        published = None if hours_ago is None else FIXED_NOW - timedelta(hours=hours_ago)
        return CandidateItem(
            id=item_id,
            title=title or f"Article {item_id}",
            source=source,
            link=f"https://example.com/{item_id}",
            published_at=published,
            content=content,
        )

    return _make


@pytest.fixture
def sample_items(make_item) -> list[CandidateItem]:
    """Three items, newest first."""
    return [
        make_item("a", "Rust in the kernel", hours_ago=1),
        make_item("b", "Postgres 18 async IO", hours_ago=5, source="Beta"),
        make_item("c", "Zero-downtime deploys", hours_ago=10),
    ]


@pytest.fixture
def sample_topics() -> list[Topic]:
    """Scores 15, 14 (novelty below 6) and 13."""
    return [
        Topic(title="Memory safety", novelty_score=8, impact_score=7),
        Topic(title="Async IO", novelty_score=5, impact_score=9),
        Topic(title="Deploy safety", novelty_score=7, impact_score=6),
    ]


@pytest.fixture
def sample_analysis(sample_topics) -> AnalysisResult:
    return AnalysisResult(
        topics=sample_topics,
        articles=[
            ArticleAssessment(title="Rust in the kernel", link="https://example.com/a", value_score=9),
            ArticleAssessment(title="Postgres 18 async IO", link="https://example.com/b", value_score=6),
        ],
        trends=["Memory-safe systems code"],
        best_practices=["Measure before tuning"],
        summary="Systems work is getting safer.",
    )


@pytest.fixture
def sample_article() -> GeneratedArticle:
    return GeneratedArticle(
        title="Weekly Systems Digest",
        description="Safer kernels and faster databases",
        content="## Intro\n\nThis week in systems engineering.",
        tags=["rust", "postgres"],
        image_prompt="An abstract server room",
    )


@pytest.fixture
def pipeline_config(tmp_path: Path) -> PipelineConfig:
    return PipelineConfig(
        feeds=[
            FeedSource(name="Alpha", url="https://alpha.example.com/rss"),
            FeedSource(name="Beta", url="https://beta.example.com/rss"),
            FeedSource(name="Gamma", url="https://gamma.example.com/rss", enabled=False),
        ],
        ranking=RankingConfig(min_novelty_score=6, min_impact_score=6, min_value_score=8, max_topics=2),
        strategy=StrategyConfig(articles_per_blog=2, word_count=1200),
        output=OutputConfig(
            style="jekyll",
            posts_dir=tmp_path / "posts",
            images_dir=tmp_path / "images",
        ),
        fetch=FetchConfig(limit_per_source=3),
    )


# === FIXTURES: Collaborators ===


@pytest.fixture
def collaborators(
    pipeline_config: PipelineConfig,
    sample_items: list[CandidateItem],
    sample_analysis: AnalysisResult,
    sample_article: GeneratedArticle,
    tmp_path: Path,
) -> Collaborators:
    """Stubbed collaborators where every call succeeds."""
    config_loader = MagicMock()
    config_loader.load = AsyncMock(return_value=pipeline_config)

    fetcher = MagicMock()
    fetcher.fetch_candidates = AsyncMock(return_value=list(sample_items))

    by_id = {item.id: item for item in sample_items}
    store = MagicMock()
    store.store_item = AsyncMock(return_value=True)
    store.get_item = AsyncMock(side_effect=lambda item_id: by_id.get(item_id))
    store.get_unprocessed_items = AsyncMock(return_value=list(sample_items))
    store.mark_processed = AsyncMock()
    store.get_stats = AsyncMock(
        return_value=StorageStats(total_articles=3, processed_articles=1, unprocessed_articles=2)
    )
    store.cleanup_invalid_files = AsyncMock(return_value=0)

    analyzer = MagicMock()
    analyzer.analyze = AsyncMock(return_value=sample_analysis)

    writer = MagicMock()
    writer.generate_article_text = AsyncMock(return_value=sample_article)

    image_generator = MagicMock()
    image_generator.generate_image = AsyncMock(return_value="cover-1.png")

    saved: list[Path] = []

    async def _save(article, image_filename, style, output_dir=None):
        path = tmp_path / "posts" / f"post-{len(saved) + 1}.md"
        saved.append(path)
        return path

    publisher = MagicMock()
    publisher.format_and_save = AsyncMock(side_effect=_save)

    report_sink = MagicMock()
    report_sink.persist_report = AsyncMock()

    return Collaborators(
        config_loader=config_loader,
        fetcher=fetcher,
        store=store,
        analyzer=analyzer,
        writer=writer,
        image_generator=image_generator,
        publisher=publisher,
        report_sink=report_sink,
    )
