# src/storage/json_article_store.py — v1
"""JSON file-based article store (default backend).

Stores every fetched item as its own JSON file and keeps the processed state
in a single index file. See storage/layout.py for the directory structure.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterator

from pydantic import ValidationError

from feedforge.core.models import CandidateItem, StorageStats
from feedforge.storage.base_article_store import BaseArticleStore
from feedforge.storage.layout import (
    article_path,
    ensure_data_directories,
    processed_index_path,
    raw_articles_dir,
)
from feedforge.strategy.ranking import order_newest_first

logger = logging.getLogger(__name__)


class JsonArticleStore(BaseArticleStore):
    """File-based article store using JSON files under ``data_dir``."""

    def __init__(
        self,
        data_dir: Path,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._root = Path(data_dir).expanduser()
        ensure_data_directories(self._root)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def store_item(self, item: CandidateItem) -> bool:
        path = article_path(self._root, item.id)
        if path.exists():
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(item.model_dump_json(indent=2), encoding="utf-8")
        return True

    async def get_item(self, item_id: str) -> CandidateItem | None:
        path = article_path(self._root, item_id)
        if not path.exists():
            return None
        return self._read_item(path)

    async def get_unprocessed_items(self, limit: int | None = None) -> list[CandidateItem]:
        processed = self._load_processed()
        pending = [item for item in self._iter_items() if item.id not in processed]
        ordered = order_newest_first(pending)
        return ordered if limit is None else ordered[: max(0, limit)]

    async def mark_processed(self, items: list[CandidateItem], topics: list[str]) -> None:
        if not items:
            return
        index = self._load_processed()
        stamp = self._clock().isoformat()
        for item in items:
            index[item.id] = {"processed_at": stamp, "topics": list(topics)}
        path = processed_index_path(self._root)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(index, ensure_ascii=False, indent=2), encoding="utf-8")
        logger.debug("Marked %d items processed", len(items))

    async def get_stats(self) -> StorageStats:
        processed = self._load_processed()
        total = 0
        done = 0
        size = 0
        for path in self._item_files():
            size += path.stat().st_size
            item = self._read_item(path)
            if item is None:
                continue
            total += 1
            if item.id in processed:
                done += 1
        index_path = processed_index_path(self._root)
        if index_path.exists():
            size += index_path.stat().st_size
        return StorageStats(
            total_articles=total,
            processed_articles=done,
            unprocessed_articles=total - done,
            storage_size_bytes=size,
        )

    async def cleanup_invalid_files(self) -> int:
        removed = 0
        for path in self._item_files():
            if self._read_item(path) is None:
                path.unlink()
                removed += 1
        if removed:
            logger.info("Removed %d invalid article files", removed)
        return removed

    # --- internals ---

    def _item_files(self) -> list[Path]:
        raw = raw_articles_dir(self._root)
        if not raw.is_dir():
            return []
        return sorted(raw.glob("*.json"))

    def _iter_items(self) -> Iterator[CandidateItem]:
        for path in self._item_files():
            item = self._read_item(path)
            if item is not None:
                yield item

    def _read_item(self, path: Path) -> CandidateItem | None:
        try:
            return CandidateItem.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.debug("Unreadable article file %s: %s", path.name, e)
            return None

    def _load_processed(self) -> dict[str, Any]:
        path = processed_index_path(self._root)
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Processed index unreadable, treating as empty: %s", e)
            return {}
        return data if isinstance(data, dict) else {}
