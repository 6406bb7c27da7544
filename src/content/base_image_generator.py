# src/content/base_image_generator.py — v1
"""Abstract cover image generator interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class BaseImageGenerator(ABC):
    """Produce a cover image for an article."""

    @abstractmethod
    async def generate_image(self, prompt: str, output_dir: Path) -> str | None:
        """Generate an image and save it under ``output_dir``.

        Returns:
            The saved file name, or None when no image was produced.
            Implementations do not raise for provider failures.
        """
