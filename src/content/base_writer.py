# src/content/base_writer.py — v1
"""Abstract article writer interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from feedforge.content.parsing import ParseError
from feedforge.core.models import (
    AnalysisResult,
    ArticleAssessment,
    CandidateItem,
    GeneratedArticle,
    Topic,
)


class BaseArticleWriter(ABC):
    """Write one long-form article from an analysis."""

    @abstractmethod
    async def generate_article_text(
        self,
        analysis: AnalysisResult,
        selected_topics: list[Topic],
        high_value_articles: list[ArticleAssessment],
        items: list[CandidateItem],
        target_word_count: int,
        model: str | None = None,
    ) -> GeneratedArticle | ParseError:
        """Generate article text.

        Returns:
            GeneratedArticle, or ParseError when the answer could not be decoded.
        """
