# src/feeds/rss_fetcher.py — v1
"""RSS/Atom fetcher: httpx for transport, feedparser for parsing.

Sources are fetched in batches of ``concurrency``. Each request is retried
``max_retries`` times with a fixed delay; a source that still fails is logged
and contributes no items.
"""

from __future__ import annotations

import asyncio
import calendar
import logging
from datetime import datetime, timezone
from typing import Any

import feedparser
import httpx

from feedforge.config.loader import FetchConfig
from feedforge.core.models import CandidateItem, FeedSource
from feedforge.feeds.base_fetcher import BaseFeedFetcher

logger = logging.getLogger(__name__)

_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml;q=0.9, */*;q=0.8"


def _entry_datetime(entry: Any) -> datetime | None:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
    return None


def _entry_content(entry: Any) -> str:
    content = entry.get("content")
    if content:
        value = content[0].get("value", "")
        if value:
            return value
    return entry.get("summary", "") or entry.get("description", "") or ""


def parse_feed(raw: bytes | str, source: FeedSource, limit: int) -> list[CandidateItem]:
    """Turn a feed document into at most ``limit`` candidate items.

    Entries without a link are skipped; the id is the feed guid, falling back
    to the link.
    """
    feed = feedparser.parse(raw)
    if feed.bozo and not feed.entries:
        raise ValueError(f"unparseable feed: {feed.get('bozo_exception')}")

    items: list[CandidateItem] = []
    for entry in feed.entries:
        if len(items) >= limit:
            break
        link = entry.get("link", "")
        if not link:
            continue
        items.append(
            CandidateItem(
                id=entry.get("id") or link,
                title=(entry.get("title") or "Untitled").strip(),
                source=source.name,
                link=link,
                published_at=_entry_datetime(entry),
                content=_entry_content(entry),
                category=source.category,
            )
        )
    return items


class RSSFeedFetcher(BaseFeedFetcher):
    """Concurrent RSS fetcher.

    Args:
        config: Fetch tuning (timeouts, retries, concurrency, user agent).
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or FetchConfig()
        self._transport = transport

    async def fetch_candidates(
        self, sources: list[FeedSource], limit_per_source: int,
    ) -> list[CandidateItem]:
        if not sources:
            return []
        cfg = self._config
        batch_size = max(1, cfg.concurrency)
        logger.info("Fetching %d feeds (concurrency %d)", len(sources), batch_size)

        items: list[CandidateItem] = []
        async with httpx.AsyncClient(
            timeout=cfg.timeout_s,
            follow_redirects=True,
            headers={"User-Agent": cfg.user_agent, "Accept": _ACCEPT},
            transport=self._transport,
        ) as client:
            for start in range(0, len(sources), batch_size):
                batch = sources[start:start + batch_size]
                results = await asyncio.gather(
                    *(self._fetch_source(client, s, limit_per_source) for s in batch)
                )
                for source_items in results:
                    items.extend(source_items)

        logger.info("Fetched %d items from %d feeds", len(items), len(sources))
        return items

    async def _fetch_source(
        self, client: httpx.AsyncClient, source: FeedSource, limit: int,
    ) -> list[CandidateItem]:
        try:
            raw = await self._get_with_retry(client, source.url)
            items = parse_feed(raw, source, limit)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Feed '%s' failed: %s", source.name, _describe(e))
            return []
        logger.debug("Feed '%s': %d items", source.name, len(items))
        return items

    async def _get_with_retry(self, client: httpx.AsyncClient, url: str) -> bytes:
        cfg = self._config
        attempt = 0
        while True:
            try:
                resp = await client.get(url)
                resp.raise_for_status()
                return resp.content
            except httpx.HTTPError as e:
                if attempt >= cfg.max_retries:
                    raise
                attempt += 1
                logger.debug(
                    "GET %s failed (%s), retry %d/%d in %.1fs",
                    url, type(e).__name__, attempt, cfg.max_retries, cfg.retry_delay_s,
                )
                await asyncio.sleep(cfg.retry_delay_s)


def _describe(error: Exception) -> str:
    if isinstance(error, httpx.HTTPStatusError):
        return f"HTTP {error.response.status_code}"
    if isinstance(error, httpx.TimeoutException):
        return "timeout"
    if isinstance(error, httpx.TransportError):
        return f"network error ({type(error).__name__})"
    return str(error)
