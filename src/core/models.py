# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
Models parsed from LLM output accept camelCase keys (``noveltyScore``)
as well as snake_case field names.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def coerce_score(value: Any) -> float:
    """Convert an LLM-provided score to a finite float, 0.0 when unusable."""
    if isinstance(value, bool):
        return 0.0
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    return score if math.isfinite(score) else 0.0


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return []


class _LLMPayload(BaseModel):
    """Base for models decoded from LLM JSON: lenient keys, ignore extras.

    A JSON null falls back to the field default, so required fields
    still fail when null.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


# === SOURCES ===


class FeedSource(BaseModel):
    """One configured RSS feed."""

    name: str
    url: str
    category: str = ""
    enabled: bool = True


class CandidateItem(BaseModel):
    """A fetched source article, read-only for the orchestration core."""

    model_config = ConfigDict(frozen=True)

    id: str  # feed guid, falls back to link
    title: str
    source: str
    link: str
    published_at: datetime | None = None
    content: str = ""
    category: str = ""


# === ANALYSIS ===


class RelatedArticle(_LLMPayload):
    """Source article cited by a topic."""

    title: str = ""
    link: str = ""
    source: str = ""
    reason: str = ""


class Topic(_LLMPayload):
    """AI-derived thematic cluster, the unit the ranking strategy selects over."""

    title: str = ""
    description: str = ""
    key_points: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    difficulty: str = ""
    novelty_score: float = 0.0
    impact_score: float = 0.0
    related_articles: list[RelatedArticle] = Field(default_factory=list)

    @field_validator("novelty_score", "impact_score", mode="before")
    @classmethod
    def _coerce_scores(cls, v: Any) -> float:
        return coerce_score(v)

    @field_validator("key_points", "actions", "risks", "keywords", mode="before")
    @classmethod
    def _coerce_lists(cls, v: Any) -> list[str]:
        return _as_str_list(v)

    @field_validator("related_articles", mode="before")
    @classmethod
    def _drop_malformed_related(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        return [r for r in v if isinstance(r, (dict, BaseModel))]


class ArticleAssessment(_LLMPayload):
    """Per-source-article judgement returned by the analysis call."""

    title: str = ""
    link: str = ""
    source: str = ""
    value_score: float = 0.0
    summary: str = ""
    tags: list[str] = Field(default_factory=list)
    topic: str = ""
    actionable: bool = False

    @field_validator("value_score", mode="before")
    @classmethod
    def _coerce_value(cls, v: Any) -> float:
        return coerce_score(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, v: Any) -> list[str]:
        return _as_str_list(v)


class AnalysisResult(_LLMPayload):
    """Structured analysis of a batch of candidate items."""

    topics: list[Topic] = Field(default_factory=list)
    articles: list[ArticleAssessment] = Field(default_factory=list)
    trends: list[str] = Field(default_factory=list)
    best_practices: list[str] = Field(default_factory=list)
    anti_patterns: list[str] = Field(default_factory=list)
    tooling: list[str] = Field(default_factory=list)
    open_questions: list[str] = Field(default_factory=list)
    summary: str = ""

    @field_validator(
        "trends", "best_practices", "anti_patterns", "tooling", "open_questions",
        mode="before",
    )
    @classmethod
    def _coerce_lists(cls, v: Any) -> list[str]:
        return _as_str_list(v)

    @field_validator("topics", "articles", mode="before")
    @classmethod
    def _drop_malformed_entries(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        return [entry for entry in v if isinstance(entry, (dict, BaseModel))]


# === GENERATION ===


class GeneratedArticle(_LLMPayload):
    """Article text returned by the writer call."""

    title: str
    description: str = ""
    content: str
    tags: list[str] = Field(default_factory=list)
    image_prompt: str = ""

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, v: Any) -> list[str]:
        return _as_str_list(v)

    @field_validator("image_prompt", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> str:
        return "" if v is None else str(v)


OutputStyle = Literal["jekyll", "wechat", "simple"]


# === STORAGE ===


class StorageStats(BaseModel):
    """Counts reported by the article store."""

    total_articles: int = 0
    processed_articles: int = 0
    unprocessed_articles: int = 0
    storage_size_bytes: int = 0

    @property
    def processed_ratio(self) -> float:
        if self.total_articles == 0:
            return 0.0
        return self.processed_articles / self.total_articles
