# tests/unit/content/test_unit_analyzer_writer.py — v1
"""Tests for content/analyzer.py and content/writer.py with a mocked LLM."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from feedforge.config.components import ANALYZER, WRITER
from feedforge.content.analyzer import (
    PREVIEW_CHARS,
    LLMContentAnalyzer,
    clean_preview,
    format_item_summaries,
)
from feedforge.content.parsing import ParseError
from feedforge.content.writer import LLMArticleWriter
from feedforge.core.models import AnalysisResult, GeneratedArticle
from feedforge.llm.models import LLMResponse
from feedforge.strategy.models import RankingConfig


def _factory(content: str) -> tuple[MagicMock, MagicMock]:
    client = MagicMock()
    client.model_name = "mock-model"
    client.complete = AsyncMock(
        return_value=LLMResponse(
            content=content, model="mock-model", provider="mock",
            input_tokens=100, output_tokens=50,
        )
    )
    factory = MagicMock()
    factory.get_client = MagicMock(return_value=client)
    return factory, client


class TestCleanPreview:
    def test_strips_markup_scripts_and_entities(self):
        html = "<p>Hello&nbsp;<b>world</b> &amp; friends</p><script>alert(1)</script><style>p{}</style>"
        assert clean_preview(html) == "Hello world & friends"

    def test_truncates(self):
        assert len(clean_preview("<p>" + "x" * 2000 + "</p>")) == PREVIEW_CHARS

    def test_empty(self):
        assert clean_preview("") == ""


class TestLLMContentAnalyzer:
    def test_summaries_list_every_item(self, sample_items):
        text = format_item_summaries(sample_items)
        assert "[Article 1]" in text and "[Article 3]" in text
        assert "Source: Beta" in text
        assert "<p>" not in text

    def test_prompt_fills_placeholders(self, sample_items):
        analyzer = LLMContentAnalyzer(MagicMock())
        prompt = analyzer.build_prompt(sample_items, RankingConfig(max_topics=4))
        assert "Rust in the kernel" in prompt
        assert "at most 4 core technical topics" in prompt
        assert "{article_summaries}" not in prompt
        assert '"noveltyScore": 0' in prompt

    @pytest.mark.asyncio
    async def test_analyze_returns_typed_result(self, sample_items):
        payload = {"topics": [{"title": "T", "noveltyScore": 7, "impactScore": 8}], "summary": "S"}
        factory, client = _factory(f"```json\n{json.dumps(payload)}\n```")
        analyzer = LLMContentAnalyzer(factory, max_tokens=1234, temperature=0.2)

        result = await analyzer.analyze(sample_items, RankingConfig(), "openai:gpt-4o")

        assert isinstance(result, AnalysisResult)
        assert result.topics[0].impact_score == 8
        factory.get_client.assert_called_once_with(ANALYZER, "openai:gpt-4o")
        kwargs = client.complete.call_args.kwargs
        assert kwargs["json_mode"] is True
        assert kwargs["max_tokens"] == 1234
        assert kwargs["temperature"] == 0.2

    @pytest.mark.asyncio
    async def test_analyze_garbage_is_parse_error(self, sample_items):
        factory, _ = _factory("Sorry, I cannot help with that.")
        result = await LLMContentAnalyzer(factory).analyze(sample_items, RankingConfig())
        assert isinstance(result, ParseError)


class TestLLMArticleWriter:
    def test_prompt_includes_scores_and_references(self, sample_analysis, sample_items):
        writer = LLMArticleWriter(MagicMock(), min_value_score=8)
        topics = sample_analysis.topics[:1]
        prompt = writer.build_prompt(
            sample_analysis, topics, sample_analysis.articles[:1], sample_items, 3000,
        )
        assert "3000" in prompt
        assert '"score": 15.0' in prompt
        assert '"noveltyScore": 8.0' in prompt
        assert "[Reference 2] Postgres 18 async IO (Beta) https://example.com/b" in prompt

    def test_prompt_without_items(self, sample_analysis):
        prompt = LLMArticleWriter(MagicMock()).build_prompt(sample_analysis, [], [], [], 500)
        assert "(none)" in prompt

    @pytest.mark.asyncio
    async def test_generate_article(self, sample_analysis, sample_items):
        body = json.dumps({"title": "Deep dive", "content": "Text", "tags": ["x"], "imagePrompt": "p"})
        factory, client = _factory(body)
        writer = LLMArticleWriter(factory, max_tokens=9000)

        article = await writer.generate_article_text(
            sample_analysis, sample_analysis.topics, [], sample_items, 2000,
        )

        assert isinstance(article, GeneratedArticle)
        assert article.title == "Deep dive"
        factory.get_client.assert_called_once_with(WRITER, None)
        assert client.complete.call_args.kwargs["max_tokens"] == 9000

    @pytest.mark.asyncio
    async def test_generate_article_without_content_is_parse_error(self, sample_analysis):
        factory, _ = _factory('{"title": "Only a title"}')
        result = await LLMArticleWriter(factory).generate_article_text(
            sample_analysis, [], [], [], 1000,
        )
        assert isinstance(result, ParseError)

    @pytest.mark.asyncio
    async def test_llm_error_propagates(self, sample_analysis):
        factory, client = _factory("")
        client.complete.side_effect = ValueError("bad request")
        with pytest.raises(Exception, match="bad request"):
            await LLMArticleWriter(factory).generate_article_text(
                sample_analysis, [], [], [], 1000,
            )
