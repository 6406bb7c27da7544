# src/content/formatter.py — v1
"""Markdown publisher with Jekyll, WeChat and simple output styles.

Jekyll posts are named ``YYYY-MM-DD-<slug>.md``; the other styles use the
same naming so all posts sort by date.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from feedforge.content.base_publisher import BaseArticlePublisher
from feedforge.core.models import GeneratedArticle, OutputStyle
from feedforge.storage.base_output_writer import BaseOutputWriter
from feedforge.storage.local_writer import LocalWriter

logger = logging.getLogger(__name__)

STYLE_TAGS: dict[str, str] = {
    "jekyll": "jekyll",
    "wechat": "wechat",
    "simple": "markdown",
}

SUPPORTED_STYLES: list[dict[str, str]] = [
    {"name": "jekyll", "label": "Jekyll", "description": "Front matter post for GitHub Pages"},
    {"name": "wechat", "label": "WeChat", "description": "Article body for a WeChat official account"},
    {"name": "simple", "label": "Simple", "description": "Plain Markdown"},
]

_NON_SLUG = re.compile(r"[^\w\s-]")
_SPACES = re.compile(r"[\s_]+")


def slugify(title: str) -> str:
    """Lowercase, drop punctuation, join words with dashes."""
    slug = _SPACES.sub("-", _NON_SLUG.sub("", title).strip()).lower()
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    return slug or "untitled"


def merge_tags(*groups: list[str]) -> list[str]:
    """Concatenate tag lists, dropping blanks and case-insensitive duplicates."""
    seen: set[str] = set()
    merged: list[str] = []
    for group in groups:
        for tag in group:
            tag = tag.strip()
            if tag and tag.lower() not in seen:
                seen.add(tag.lower())
                merged.append(tag)
    return merged


def _quote(value: str) -> str:
    """YAML-safe double-quoted scalar."""
    return json.dumps(value, ensure_ascii=False)


class MarkdownPublisher(BaseArticlePublisher):
    """Render generated articles to Markdown files.

    Args:
        posts_dir: Default output directory.
        categories: Jekyll categories.
        default_tags: Tags merged into every article's own tags.
        articles_per_blog: Shown in the WeChat footer.
        image_url_prefix: URL prefix for cover images.
        writer: Output backend (local filesystem by default).
        clock: Returns the current aware datetime (post date).
    """

    def __init__(
        self,
        posts_dir: Path,
        categories: list[str] | None = None,
        default_tags: list[str] | None = None,
        articles_per_blog: int = 5,
        image_url_prefix: str = "/assets/images",
        writer: BaseOutputWriter | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._posts_dir = Path(posts_dir)
        self._categories = list(categories or [])
        self._default_tags = list(default_tags or [])
        self._articles_per_blog = articles_per_blog
        self._image_url_prefix = image_url_prefix.rstrip("/")
        self._writer = writer or LocalWriter()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def tags_for(self, article: GeneratedArticle, style: OutputStyle) -> list[str]:
        return merge_tags(article.tags, self._default_tags, [STYLE_TAGS.get(style, style)])

    def file_name(self, article: GeneratedArticle) -> str:
        return f"{self._clock():%Y-%m-%d}-{slugify(article.title)}.md"

    def render(
        self,
        article: GeneratedArticle,
        image_filename: str | None,
        style: OutputStyle,
    ) -> str:
        tags = self.tags_for(article, style)
        image_url = f"{self._image_url_prefix}/{image_filename}" if image_filename else None
        if style == "wechat":
            return self._render_wechat(article, image_url, tags)
        if style == "simple":
            return self._render_simple(article, image_url, tags)
        return self._render_jekyll(article, image_url, tags)

    async def format_and_save(
        self,
        article: GeneratedArticle,
        image_filename: str | None,
        style: OutputStyle,
        output_dir: Path | None = None,
    ) -> Path:
        target = Path(output_dir) if output_dir else self._posts_dir
        path = target / self.file_name(article)
        await self._writer.write(str(path), self.render(article, image_filename, style))
        logger.info("Saved %s article: %s", style, path)
        return path

    # --- styles ---

    def _render_jekyll(
        self, article: GeneratedArticle, image_url: str | None, tags: list[str],
    ) -> str:
        lines = [
            "---",
            "layout: post",
            f"title: {_quote(article.title)}",
            f"date: {self._clock():%Y-%m-%d}",
            f"categories: {json.dumps(self._categories, ensure_ascii=False)}",
            f"tags: {json.dumps(tags, ensure_ascii=False)}",
            f"description: {_quote(article.description)}",
        ]
        if image_url:
            lines.append(f"image: {_quote(image_url)}")
        lines += ["---", ""]
        if image_url:
            lines += [f"![{article.title}]({image_url})", ""]
        lines.append(article.content.rstrip())
        return "\n".join(lines) + "\n"

    def _render_simple(
        self, article: GeneratedArticle, image_url: str | None, tags: list[str],
    ) -> str:
        lines = [f"# {article.title}", ""]
        if image_url:
            lines += [f"![{article.title}]({image_url})", ""]
        if article.description:
            lines += [f"**{article.description}**", ""]
        if tags:
            lines += [f"> Tags: {', '.join(tags)}", ""]
        lines.append(article.content.rstrip())
        return "\n".join(lines) + "\n"

    def _render_wechat(
        self, article: GeneratedArticle, image_url: str | None, tags: list[str],
    ) -> str:
        body = self._render_simple(article, image_url, tags)
        footer = [
            "",
            "---",
            "",
            f"This article draws on {self._articles_per_blog} technical articles.",
            "",
            "If you found it useful, share it with your team.",
            "",
            "New issues every week. Follow to get the next one.",
        ]
        return body + "\n".join(footer) + "\n"
