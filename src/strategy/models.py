# src/strategy/models.py — v1
"""Strategy configuration: ranking thresholds and per-article batch sizing."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RankingConfig(BaseModel):
    """Thresholds deciding which topics and source articles are worth writing about."""

    model_config = ConfigDict(frozen=True)

    min_novelty_score: float = 6.0
    min_impact_score: float = 6.0
    min_value_score: float = 8.0
    max_topics: int = 5


class StrategyConfig(BaseModel):
    """How much source material goes into one generated article."""

    model_config = ConfigDict(frozen=True)

    articles_per_blog: int = Field(default=5, ge=1)
    word_count: int = Field(default=5000, gt=0)
