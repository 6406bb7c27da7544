# src/reporting/models.py — v1
"""Run report types: per-iteration outcomes and the immutable Report."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from feedforge.core.models import AnalysisResult, StorageStats
from feedforge.strategy.models import RankingConfig

IterationStage = Literal["select", "analyze", "generate", "publish", "mark_processed"]


class AnalysisDigest(BaseModel):
    """Report-facing slice of an AnalysisResult."""

    model_config = ConfigDict(frozen=True)

    title: str
    summary: str = ""
    trends: list[str] = Field(default_factory=list)
    best_practices: list[str] = Field(default_factory=list)
    anti_patterns: list[str] = Field(default_factory=list)
    open_questions: list[str] = Field(default_factory=list)
    tooling: list[str] = Field(default_factory=list)

    @classmethod
    def from_analysis(cls, title: str, analysis: AnalysisResult) -> AnalysisDigest:
        return cls(
            title=title,
            summary=analysis.summary,
            trends=analysis.trends,
            best_practices=analysis.best_practices,
            anti_patterns=analysis.anti_patterns,
            open_questions=analysis.open_questions,
            tooling=analysis.tooling,
        )


class ArticleOutcome(BaseModel):
    """One successfully generated and published article."""

    model_config = ConfigDict(frozen=True)

    iteration: int
    title: str
    description: str = ""
    path: str
    word_count: int = 0
    source_item_ids: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    image_filename: str | None = None
    analysis: AnalysisDigest | None = None

    @property
    def processed_items(self) -> int:
        return len(self.source_item_ids)


class IterationFailure(BaseModel):
    """One iteration that did not produce an article."""

    model_config = ConfigDict(frozen=True)

    iteration: int
    stage: IterationStage
    error: str
    error_type: str


class ConfigSummary(BaseModel):
    """Snapshot of the configuration a run used."""

    model_config = ConfigDict(frozen=True)

    feed_count: int = 0
    articles_per_blog: int = 5
    word_count: int = 5000
    output_style: str = "jekyll"
    ranking: RankingConfig = Field(default_factory=RankingConfig)


class SystemInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    python_version: str
    platform: str
    pid: int
    feedforge_version: str


class Report(BaseModel):
    """Structured summary of one pipeline run; immutable after creation."""

    model_config = ConfigDict(frozen=True)

    report_id: str
    pipeline: str
    success: bool = True
    start_time: datetime
    duration_ms: int
    duration: str
    generated_count: int
    articles_fetched: int | None = None
    articles: list[ArticleOutcome] = Field(default_factory=list)
    failures: list[IterationFailure] = Field(default_factory=list)
    analysis_results: list[AnalysisDigest] = Field(default_factory=list)
    stats: StorageStats = Field(default_factory=StorageStats)
    config_summary: ConfigSummary = Field(default_factory=ConfigSummary)
    system_info: SystemInfo | None = None
