# src/content/base_publisher.py — v1
"""Abstract article publisher interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from feedforge.core.models import GeneratedArticle, OutputStyle


class BaseArticlePublisher(ABC):
    """Format a generated article and persist it."""

    @abstractmethod
    async def format_and_save(
        self,
        article: GeneratedArticle,
        image_filename: str | None,
        style: OutputStyle,
        output_dir: Path | None = None,
    ) -> Path:
        """Render ``article`` in ``style`` and write it.

        Args:
            article: Generated article.
            image_filename: Cover image file name, if any.
            style: Output style (jekyll, wechat, simple).
            output_dir: Target directory; implementation default when None.

        Returns:
            Path of the written file.
        """
