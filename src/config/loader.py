# src/config/loader.py — v1
"""Per-run pipeline configuration.

Combines the process-wide Settings with the feeds file into one immutable
PipelineConfig. Loading also creates the runtime directories.

Feeds file format (JSON), either a bare list or wrapped in ``{"feeds": [...]}``::

    [
      {"name": "Engineering Blog", "url": "https://example.com/rss", "category": "backend"}
    ]
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from feedforge.config.settings import ConfigurationError, Settings
from feedforge.core.models import FeedSource, OutputStyle
from feedforge.storage.layout import ensure_data_directories
from feedforge.strategy.models import RankingConfig, StrategyConfig

logger = logging.getLogger(__name__)


class OutputConfig(BaseModel):
    """Where and how generated articles are written."""

    model_config = ConfigDict(frozen=True)

    style: OutputStyle = "jekyll"
    posts_dir: Path = Path("./output/_posts")
    images_dir: Path = Path("./output/assets/images")


class FetchConfig(BaseModel):
    """RSS fetch tuning."""

    model_config = ConfigDict(frozen=True)

    limit_per_source: int = 3
    concurrency: int = 10
    timeout_s: float = 30.0
    max_retries: int = 3
    retry_delay_s: float = 1.0
    user_agent: str = "feedforge"


class PipelineConfig(BaseModel):
    """Configuration snapshot for a single pipeline run."""

    model_config = ConfigDict(frozen=True)

    feeds: list[FeedSource] = Field(default_factory=list)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)

    def enabled_feeds(self, names: list[str] | None = None) -> list[FeedSource]:
        """Enabled feeds, optionally restricted to ``names`` (case-insensitive)."""
        feeds = [f for f in self.feeds if f.enabled]
        if not names:
            return feeds
        wanted = {n.strip().lower() for n in names if n.strip()}
        return [f for f in feeds if f.name.lower() in wanted]


def read_feeds_file(path: Path) -> list[FeedSource]:
    """Parse the feeds JSON file.

    Raises:
        ConfigurationError: File missing, not JSON, or entries invalid.
    """
    if not path.exists():
        raise ConfigurationError(f"Feeds file not found: {path}")
    try:
        raw: Any = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Feeds file {path} is not valid JSON: {e}") from e

    if isinstance(raw, dict):
        raw = raw.get("feeds", [])
    if not isinstance(raw, list):
        raise ConfigurationError(f"Feeds file {path} must contain a list of feeds")

    try:
        return [FeedSource.model_validate(entry) for entry in raw]
    except ValidationError as e:
        raise ConfigurationError(f"Invalid feed entry in {path}: {e}") from e


class ConfigLoader:
    """Builds a PipelineConfig from Settings and the feeds file."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def load(self) -> PipelineConfig:
        """Load the per-run configuration.

        Raises:
            ConfigurationError: Feeds file missing or invalid.
        """
        s = self._settings
        feeds = read_feeds_file(Path(s.feeds_file).expanduser())

        ensure_data_directories(Path(s.data_dir).expanduser())
        for directory in (s.posts_dir, s.images_dir):
            Path(directory).expanduser().mkdir(parents=True, exist_ok=True)

        if s.image_generation_enabled and not s.openai_api_key:
            logger.info("Image generation enabled but OPENAI_API_KEY is empty; covers will be skipped")

        config = PipelineConfig(
            feeds=feeds,
            ranking=RankingConfig(
                min_novelty_score=s.min_novelty_score,
                min_impact_score=s.min_impact_score,
                min_value_score=s.min_value_score,
                max_topics=s.max_topics,
            ),
            strategy=StrategyConfig(
                articles_per_blog=s.articles_per_blog,
                word_count=s.word_count,
            ),
            output=OutputConfig(
                style=s.output_style,
                posts_dir=Path(s.posts_dir).expanduser(),
                images_dir=Path(s.images_dir).expanduser(),
            ),
            fetch=FetchConfig(
                limit_per_source=s.fetch_limit_per_source,
                concurrency=s.fetch_concurrency,
                timeout_s=s.fetch_timeout_s,
                max_retries=s.fetch_max_retries,
                retry_delay_s=s.fetch_retry_delay_s,
                user_agent=s.fetch_user_agent,
            ),
        )
        logger.debug(
            "Loaded config: %d feeds (%d enabled)",
            len(config.feeds), len(config.enabled_feeds()),
        )
        return config
