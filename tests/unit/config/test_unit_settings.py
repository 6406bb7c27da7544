# tests/unit/config/test_unit_settings.py — v1
"""Tests for config/settings.py and config/loader.py."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from feedforge.config.loader import ConfigLoader, PipelineConfig, read_feeds_file
from feedforge.config.settings import ConfigurationError, Settings, load_settings
from feedforge.core.models import FeedSource


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestSettings:
    def test_defaults(self):
        s = _settings()
        assert s.llm_default_provider == "anthropic"
        assert s.output_style == "jekyll"
        assert s.min_value_score == 8.0
        assert s.articles_per_blog == 5
        assert s.article_categories_list == ["tech", "weekly"]

    def test_comma_lists_are_trimmed(self):
        s = _settings(article_default_tags=" ai , ,ml ")
        assert s.article_default_tags_list == ["ai", "ml"]

    def test_score_out_of_range(self):
        with pytest.raises(ValidationError):
            _settings(min_novelty_score=11)

    def test_non_positive_batch_size(self):
        with pytest.raises(ValidationError):
            _settings(articles_per_blog=0)

    def test_unknown_output_style(self):
        with pytest.raises(ValidationError):
            _settings(output_style="medium")

    def test_inconsistent_config(self):
        with pytest.raises(ConfigurationError, match="WORD_COUNT"):
            _settings(word_count=0)

    def test_env_vars(self, monkeypatch):
        monkeypatch.setenv("LLM_WRITER", "openai:gpt-4o")
        monkeypatch.setenv("WORD_COUNT", "3000")
        s = load_settings(_env_file=None)
        assert s.llm_writer == "openai:gpt-4o"
        assert s.word_count == 3000


class TestFeedsFile:
    def test_list_form(self, tmp_path: Path):
        path = tmp_path / "feeds.json"
        path.write_text(json.dumps([{"name": "A", "url": "https://a/rss"}]), encoding="utf-8")
        assert read_feeds_file(path) == [FeedSource(name="A", url="https://a/rss")]

    def test_object_form(self, tmp_path: Path):
        path = tmp_path / "feeds.json"
        path.write_text(
            json.dumps({"feeds": [{"name": "A", "url": "u", "enabled": False, "category": "x"}]}),
            encoding="utf-8",
        )
        feeds = read_feeds_file(path)
        assert feeds[0].enabled is False
        assert feeds[0].category == "x"

    @pytest.mark.parametrize("content", ["{nope", '"just a string"', '[{"name": "no url"}]'])
    def test_invalid_files(self, tmp_path: Path, content):
        path = tmp_path / "feeds.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ConfigurationError):
            read_feeds_file(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            read_feeds_file(tmp_path / "absent.json")


class TestPipelineConfig:
    def test_enabled_feeds(self, pipeline_config: PipelineConfig):
        assert [f.name for f in pipeline_config.enabled_feeds()] == ["Alpha", "Beta"]

    def test_enabled_feeds_by_name(self, pipeline_config: PipelineConfig):
        assert [f.name for f in pipeline_config.enabled_feeds(["beta", "gamma"])] == ["Beta"]


class TestConfigLoader:
    @pytest.mark.asyncio
    async def test_load_maps_settings(self, tmp_path: Path):
        feeds = tmp_path / "feeds.json"
        feeds.write_text(json.dumps([{"name": "A", "url": "https://a/rss"}]), encoding="utf-8")
        s = _settings(
            feeds_file=feeds,
            data_dir=tmp_path / "data",
            posts_dir=tmp_path / "out" / "_posts",
            images_dir=tmp_path / "out" / "images",
            min_impact_score=4,
            max_topics=2,
            word_count=2500,
            output_style="wechat",
            fetch_limit_per_source=7,
        )

        config = await ConfigLoader(s).load()

        assert [f.name for f in config.feeds] == ["A"]
        assert config.ranking.min_impact_score == 4
        assert config.ranking.max_topics == 2
        assert config.strategy.word_count == 2500
        assert config.output.style == "wechat"
        assert config.fetch.limit_per_source == 7
        assert (tmp_path / "out" / "_posts").is_dir()
        assert (tmp_path / "data" / "reports").is_dir()

    @pytest.mark.asyncio
    async def test_missing_feeds_file_is_fatal(self, tmp_path: Path):
        s = _settings(feeds_file=tmp_path / "nope.json", data_dir=tmp_path / "data")
        with pytest.raises(ConfigurationError):
            await ConfigLoader(s).load()
