# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings: LLM routing,
data/output locations, article defaults, ranking thresholds, fetch tuning
and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is missing or internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === LLM PROVIDERS ===
    llm_default_provider: str = "anthropic"
    llm_default_model: str = "claude-sonnet-4-20250514"
    llm_default_temperature: float = 0.7
    llm_analysis_max_tokens: int = 4096
    llm_writer_max_tokens: int = 8000

    # Provider API keys
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    openai_base_url: str = ""
    ollama_base_url: str = "http://localhost:11434"

    # Per-component LLM assignment ("provider:model", highest priority)
    llm_analyzer: str = ""
    llm_writer: str = ""

    # === Data layout ===
    data_dir: Path = Path("./data")
    feeds_file: Path = Path("./feeds.json")

    # === Output ===
    posts_dir: Path = Path("./output/_posts")
    images_dir: Path = Path("./output/assets/images")
    output_style: Literal["jekyll", "wechat", "simple"] = "jekyll"
    article_categories: str = "tech,weekly"
    article_default_tags: str = "tech,weekly"

    # === Ranking thresholds (0-10 scale) ===
    min_novelty_score: float = 6.0
    min_impact_score: float = 6.0
    min_value_score: float = 8.0
    max_topics: int = 5

    # === Strategy ===
    articles_per_blog: int = 5
    word_count: int = 5000

    # === Fetch ===
    fetch_limit_per_source: int = 3
    fetch_concurrency: int = 10
    fetch_timeout_s: float = 30.0
    fetch_max_retries: int = 3
    fetch_retry_delay_s: float = 1.0
    fetch_user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # === Image generation ===
    image_generation_enabled: bool = True
    image_model: str = "dall-e-3"
    image_size: str = "1792x1024"

    # === Tasks ===
    task_retention_s: int = 3600

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("min_novelty_score", "min_impact_score", "min_value_score")
    @classmethod
    def validate_score_range(cls, v: float) -> float:  # noqa: N805
        """Scores are on a 0-10 scale."""
        if not 0 <= v <= 10:
            raise ValueError("score thresholds must be within [0, 10]")
        return v

    @field_validator("articles_per_blog", "fetch_limit_per_source", "fetch_concurrency")
    @classmethod
    def validate_positive(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.word_count <= 0:
            errors.append("WORD_COUNT must be positive")

        if self.fetch_max_retries < 0:
            errors.append("FETCH_MAX_RETRIES must be >= 0")

        if self.llm_default_provider == "ollama" and not self.ollama_base_url:
            errors.append("LLM_DEFAULT_PROVIDER=ollama requires OLLAMA_BASE_URL")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def article_categories_list(self) -> list[str]:
        """Parse comma-separated article categories."""
        return [c.strip() for c in self.article_categories.split(",") if c.strip()]

    @property
    def article_default_tags_list(self) -> list[str]:
        """Parse comma-separated default tags."""
        return [t.strip() for t in self.article_default_tags.split(",") if t.strip()]


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-run config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
