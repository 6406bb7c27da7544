# src/content/image_generator.py — v1
"""Cover image generation via the OpenAI Images API.

Image failures never fail an article: every error is logged and turned into
None, and the article is published without a cover.
"""

from __future__ import annotations

import base64
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from feedforge.content.base_image_generator import BaseImageGenerator
from feedforge.storage.base_output_writer import BaseOutputWriter
from feedforge.storage.local_writer import LocalWriter

logger = logging.getLogger(__name__)


class NullImageGenerator(BaseImageGenerator):
    """Generator used when image generation is disabled."""

    async def generate_image(self, prompt: str, output_dir: Path) -> str | None:
        return None


class OpenAIImageGenerator(BaseImageGenerator):
    """DALL-E style generator (official openai SDK)."""

    def __init__(
        self,
        api_key: str = "",
        model: str = "dall-e-3",
        size: str = "1792x1024",
        base_url: str | None = None,
        writer: BaseOutputWriter | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._size = size
        self._base_url = base_url or None
        self._writer = writer or LocalWriter()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def generate_image(self, prompt: str, output_dir: Path) -> str | None:
        if not self._api_key:
            logger.info("No image API key configured, skipping cover image")
            return None
        if not prompt.strip():
            logger.info("Empty image prompt, skipping cover image")
            return None

        try:
            image_bytes = await self._request_image(prompt)
        except Exception as e:
            logger.warning("Image generation failed (%s): %s", type(e).__name__, e)
            return None
        if image_bytes is None:
            logger.warning("Image generation returned no data")
            return None

        filename = f"cover-{int(self._clock().timestamp() * 1000)}.png"
        try:
            await self._writer.write(str(Path(output_dir) / filename), image_bytes)
        except OSError as e:
            logger.warning("Could not save cover image %s: %s", filename, e)
            return None
        logger.info("Saved cover image: %s", filename)
        return filename

    async def _request_image(self, prompt: str) -> bytes | None:
        import openai

        client = openai.AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)
        resp = await client.images.generate(
            model=self._model,
            prompt=prompt,
            n=1,
            size=self._size,
            response_format="b64_json",
        )
        if not resp.data or not resp.data[0].b64_json:
            return None
        return base64.b64decode(resp.data[0].b64_json)
