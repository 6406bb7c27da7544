# src/storage/base_article_store.py — v1
"""Abstract article store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from feedforge.core.models import CandidateItem, StorageStats, Topic


class BaseArticleStore(ABC):
    """Persistence for fetched candidate items and their processed state."""

    @abstractmethod
    async def store_item(self, item: CandidateItem) -> bool:
        """Persist an item. Returns False if it was already stored."""

    @abstractmethod
    async def get_item(self, item_id: str) -> CandidateItem | None:
        """Look up an item by id."""

    @abstractmethod
    async def get_unprocessed_items(self, limit: int | None = None) -> list[CandidateItem]:
        """Items not yet consumed by a generated article, newest first."""

    @abstractmethod
    async def mark_processed(self, items: list[CandidateItem], topics: list[str]) -> None:
        """Record that ``items`` were used, tagged with the analysed topic titles."""

    @abstractmethod
    async def get_stats(self) -> StorageStats:
        """Counts and on-disk size."""

    @abstractmethod
    async def cleanup_invalid_files(self) -> int:
        """Delete unreadable item files. Returns the number removed."""
