# src/content/writer.py — v1
"""LLM article writer.

Feeds the full analysis, the ranked topics and the high-value assessments to
the ``writer`` component's LLM and decodes the JSON article it returns.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

from feedforge.config.components import WRITER
from feedforge.content.base_writer import BaseArticleWriter
from feedforge.content.parsing import ParseError, parse_generated_article
from feedforge.core.models import (
    AnalysisResult,
    ArticleAssessment,
    CandidateItem,
    GeneratedArticle,
    Topic,
)
from feedforge.llm.models import Message
from feedforge.llm.retry import with_retry
from feedforge.strategy.ranking import score_topic

if TYPE_CHECKING:
    from feedforge.llm.llm_factory import LLMFactory

logger = logging.getLogger(__name__)

_PROMPT_PATH = Path(__file__).parent / "prompts" / "writer.txt"

_SYSTEM = "You are a technical blog author. Respond only with valid JSON."


def _dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, indent=2)


class LLMArticleWriter(BaseArticleWriter):
    """Writer backed by the routed ``writer`` LLM client."""

    def __init__(
        self,
        llm_factory: LLMFactory,
        max_tokens: int = 8000,
        temperature: float = 0.7,
        min_value_score: float = 8.0,
    ) -> None:
        self._llm_factory = llm_factory
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._min_value_score = min_value_score
        self._prompt_template: str | None = None

    def _load_prompt(self) -> str:
        if self._prompt_template is None:
            self._prompt_template = _PROMPT_PATH.read_text(encoding="utf-8")
        return self._prompt_template

    def build_prompt(
        self,
        analysis: AnalysisResult,
        selected_topics: list[Topic],
        high_value_articles: list[ArticleAssessment],
        items: list[CandidateItem],
        target_word_count: int,
    ) -> str:
        topics_payload = [
            {**topic.model_dump(by_alias=True), "score": score_topic(topic)}
            for topic in selected_topics
        ]
        reference_list = "\n".join(
            f"[Reference {i}] {item.title} ({item.source}) {item.link}"
            for i, item in enumerate(items, start=1)
        )
        return self._load_prompt().format(
            target_word_count=target_word_count,
            analysis_json=_dump(analysis.model_dump(by_alias=True)),
            selected_topics_json=_dump(topics_payload),
            high_value_json=_dump([a.model_dump(by_alias=True) for a in high_value_articles]),
            min_value_score=f"{self._min_value_score:g}",
            reference_list=reference_list or "(none)",
        )

    async def generate_article_text(
        self,
        analysis: AnalysisResult,
        selected_topics: list[Topic],
        high_value_articles: list[ArticleAssessment],
        items: list[CandidateItem],
        target_word_count: int,
        model: str | None = None,
    ) -> GeneratedArticle | ParseError:
        llm = self._llm_factory.get_client(WRITER, model)
        prompt = self.build_prompt(
            analysis, selected_topics, high_value_articles, items, target_word_count,
        )

        start = time.monotonic()
        response = await with_retry(
            llm.complete,
            messages=[Message(role="user", content=prompt)],
            system=_SYSTEM,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            json_mode=True,
            component=WRITER,
        )
        elapsed_ms = int((time.monotonic() - start) * 1000)

        article = parse_generated_article(response.content)
        if isinstance(article, ParseError):
            logger.warning("Article response not decodable: %s", article.reason)
            return article

        logger.info(
            "Generated '%s' (%d chars, tags: %s) in %dms",
            article.title, len(article.content), ", ".join(article.tags), elapsed_ms,
        )
        return article
