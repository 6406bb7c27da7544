# src/content/parsing.py — v1
"""Decode free-form LLM text into typed results.

LLM answers are free text that should contain one JSON object. Parsing never
raises: it returns either the model or a ``ParseError`` value, and callers
pattern-match on the result.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from feedforge.core.models import AnalysisResult, GeneratedArticle

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```json(.*?)```", re.IGNORECASE | re.DOTALL)

_EXCERPT_CHARS = 200


@dataclass(frozen=True)
class ParseError:
    """Explicit failure to decode an LLM answer.

    Attributes:
        reason: Human-readable cause.
        raw_excerpt: Leading slice of the offending text, for logs.
    """

    reason: str
    raw_excerpt: str = ""

    def __str__(self) -> str:
        return self.reason


def _excerpt(text: str) -> str:
    return text.strip()[:_EXCERPT_CHARS]


def extract_json(text: str | None) -> dict[str, Any] | None:
    """Pull the first JSON object out of LLM text.

    Tries a fenced ```json block first, then the span from the first ``{``
    to the last ``}``. Returns None when neither decodes to an object.
    """
    if not text:
        return None

    fenced = _FENCED_JSON.search(text)
    if fenced:
        try:
            value = json.loads(fenced.group(1).strip())
        except json.JSONDecodeError:
            value = None
        if isinstance(value, dict):
            return value

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        value = json.loads(text[start:end + 1])
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def parse_analysis(text: str | None) -> AnalysisResult | ParseError:
    """Decode an analysis answer."""
    data = extract_json(text)
    if data is None:
        return ParseError("no JSON object found in analysis response", _excerpt(text or ""))
    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as exc:
        logger.debug("Analysis payload rejected: %s", exc)
        return ParseError(f"invalid analysis payload: {exc.error_count()} errors", _excerpt(text or ""))


def parse_generated_article(text: str | None) -> GeneratedArticle | ParseError:
    """Decode a writer answer; ``title`` and ``content`` must be non-empty."""
    data = extract_json(text)
    if data is None:
        return ParseError("no JSON object found in article response", _excerpt(text or ""))
    try:
        article = GeneratedArticle.model_validate(data)
    except ValidationError as exc:
        logger.debug("Article payload rejected: %s", exc)
        return ParseError(f"invalid article payload: {exc.error_count()} errors", _excerpt(text or ""))
    if not article.title.strip() or not article.content.strip():
        return ParseError("article response has an empty title or content", _excerpt(text or ""))
    return article
