# src/feeds/base_fetcher.py — v1
"""Abstract feed fetcher interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from feedforge.core.models import CandidateItem, FeedSource


class BaseFeedFetcher(ABC):
    """Fetch candidate items from configured sources."""

    @abstractmethod
    async def fetch_candidates(
        self, sources: list[FeedSource], limit_per_source: int,
    ) -> list[CandidateItem]:
        """Fetch up to ``limit_per_source`` items from every source.

        A failing source contributes no items; it never fails the call.
        """
