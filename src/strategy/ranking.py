# src/strategy/ranking.py — v1
"""Ranking strategy — pure selection of topics, high-value articles and candidates.

Topic selection:
  1. score = novelty + impact (unusable numbers count as 0)
  2. keep topics meeting both the novelty and impact thresholds
  3. if none qualify, fall back to every scored topic
  4. stable sort by score, descending (ties keep input order)
  5. take the first max(1, max_topics)

Nothing here performs I/O or mutates its inputs, so repeated calls on the
same input return the same ordered output.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Sequence

from feedforge.core.models import ArticleAssessment, CandidateItem, Topic, coerce_score
from feedforge.strategy.models import RankingConfig


@dataclass(frozen=True)
class ScoredTopic:
    """A topic paired with its ranking score and original position."""

    topic: Topic
    novelty: float
    impact: float
    position: int

    @property
    def score(self) -> float:
        return self.novelty + self.impact

    def meets(self, config: RankingConfig) -> bool:
        return (
            self.novelty >= config.min_novelty_score
            and self.impact >= config.min_impact_score
        )


def score_topic(topic: Topic) -> float:
    """Return novelty + impact for a topic; never raises."""
    return coerce_score(topic.novelty_score) + coerce_score(topic.impact_score)


def score_topics(topics: Iterable[Topic]) -> list[ScoredTopic]:
    """Attach scores to topics, preserving input order."""
    return [
        ScoredTopic(
            topic=topic,
            novelty=coerce_score(topic.novelty_score),
            impact=coerce_score(topic.impact_score),
            position=idx,
        )
        for idx, topic in enumerate(topics)
    ]


def rank_topics(topics: Sequence[Topic], config: RankingConfig) -> list[Topic]:
    """Select the topics to write about, best first.

    Args:
        topics: Topics from the analysis call, in the order returned.
        config: Ranking thresholds.

    Returns:
        At most ``max(1, config.max_topics)`` topics. Non-empty whenever
        ``topics`` is non-empty.
    """
    scored = score_topics(topics)
    qualified = [s for s in scored if s.meets(config)]
    pool = qualified or scored
    ranked = sorted(pool, key=lambda s: s.score, reverse=True)
    return [s.topic for s in ranked[: max(1, config.max_topics)]]


def select_high_value_articles(
    articles: Sequence[ArticleAssessment], min_value_score: float
) -> list[ArticleAssessment]:
    """Source articles worth citing (``value_score >= min_value_score``), input order kept."""
    return [a for a in articles if coerce_score(a.value_score) >= min_value_score]


_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _published_key(item: CandidateItem) -> datetime:
    published = item.published_at
    if published is None:
        return _OLDEST
    if published.tzinfo is None:
        return published.replace(tzinfo=timezone.utc)
    return published


def order_newest_first(items: Iterable[CandidateItem]) -> list[CandidateItem]:
    """Newest ``published_at`` first, undated items last, ties keep input order."""
    return sorted(items, key=_published_key, reverse=True)


def select_candidates(items: Sequence[CandidateItem], limit: int) -> list[CandidateItem]:
    """Automatic candidate selection: newest first, undated last, stable.

    Args:
        items: Unprocessed candidate items.
        limit: Max items for one article (at least 1 is taken).
    """
    return order_newest_first(items)[: max(1, limit)]
