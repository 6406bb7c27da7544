# src/content/base_analyzer.py — v1
"""Abstract content analyzer interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from feedforge.content.parsing import ParseError
from feedforge.core.models import AnalysisResult, CandidateItem
from feedforge.strategy.models import RankingConfig


class BaseContentAnalyzer(ABC):
    """Turn a batch of candidate items into a structured analysis."""

    @abstractmethod
    async def analyze(
        self,
        items: list[CandidateItem],
        ranking: RankingConfig,
        model: str | None = None,
    ) -> AnalysisResult | ParseError:
        """Analyze candidate items.

        Args:
            items: Candidates selected for this article.
            ranking: Thresholds, passed so the prompt can ask for ``max_topics``.
            model: Optional per-run "provider:model" override.

        Returns:
            AnalysisResult, or ParseError when the answer could not be decoded.
            Transport errors propagate.
        """
