# src/content/analyzer.py — v1
"""LLM content analyzer.

Builds one prompt from cleaned previews of the candidate items, asks the
``analyzer`` component's LLM for a JSON analysis and decodes it.
"""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import TYPE_CHECKING

from feedforge.config.components import ANALYZER
from feedforge.content.base_analyzer import BaseContentAnalyzer
from feedforge.content.parsing import ParseError, parse_analysis
from feedforge.core.models import AnalysisResult, CandidateItem
from feedforge.llm.models import Message
from feedforge.llm.retry import with_retry
from feedforge.strategy.models import RankingConfig

if TYPE_CHECKING:
    from feedforge.llm.llm_factory import LLMFactory

logger = logging.getLogger(__name__)

_PROMPT_PATH = Path(__file__).parent / "prompts" / "analysis.txt"

PREVIEW_CHARS = 500

_SYSTEM = "You are a technical content analyst. Respond only with valid JSON."
_WHITESPACE = re.compile(r"\s+")


def clean_preview(html: str, limit: int = PREVIEW_CHARS) -> str:
    """Strip markup (scripts and styles included) and truncate to ``limit`` chars."""
    if not html:
        return ""
    from bs4 import BeautifulSoup

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    text = _WHITESPACE.sub(" ", soup.get_text(separator=" ", strip=True)).strip()
    return text[:limit]


def format_item_summaries(items: list[CandidateItem]) -> str:
    blocks = []
    for index, item in enumerate(items, start=1):
        published = item.published_at.isoformat() if item.published_at else "unknown"
        blocks.append(
            f"[Article {index}]\n"
            f"Title: {item.title}\n"
            f"Source: {item.source}\n"
            f"Link: {item.link}\n"
            f"Published: {published}\n"
            f"Preview: {clean_preview(item.content)}...\n"
            "---"
        )
    return "\n\n".join(blocks)


class LLMContentAnalyzer(BaseContentAnalyzer):
    """Analyzer backed by the routed ``analyzer`` LLM client."""

    def __init__(
        self,
        llm_factory: LLMFactory,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> None:
        self._llm_factory = llm_factory
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._prompt_template: str | None = None

    def _load_prompt(self) -> str:
        """Load and cache prompt template."""
        if self._prompt_template is None:
            self._prompt_template = _PROMPT_PATH.read_text(encoding="utf-8")
        return self._prompt_template

    def build_prompt(self, items: list[CandidateItem], ranking: RankingConfig) -> str:
        return self._load_prompt().format(
            article_summaries=format_item_summaries(items),
            max_topics=max(1, ranking.max_topics),
        )

    async def analyze(
        self,
        items: list[CandidateItem],
        ranking: RankingConfig,
        model: str | None = None,
    ) -> AnalysisResult | ParseError:
        llm = self._llm_factory.get_client(ANALYZER, model)
        prompt = self.build_prompt(items, ranking)

        start = time.monotonic()
        response = await with_retry(
            llm.complete,
            messages=[Message(role="user", content=prompt)],
            system=_SYSTEM,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            json_mode=True,
            component=ANALYZER,
        )
        elapsed_ms = int((time.monotonic() - start) * 1000)

        result = parse_analysis(response.content)
        if isinstance(result, ParseError):
            logger.warning("Analysis response not decodable: %s", result.reason)
        else:
            logger.info(
                "Analyzed %d items into %d topics (%s, %d tokens, %dms)",
                len(items), len(result.topics), llm.model_name,
                response.total_tokens, elapsed_ms,
            )
        return result
