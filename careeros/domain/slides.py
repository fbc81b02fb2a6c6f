"""Image rendering for slide decks produced by generateProjectsPPT."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .models import PPTContent, Slide

logger = logging.getLogger(__name__)

SLIDE_ASPECT_RATIO = "16:9"

ImageGenerator = Callable[[str], Awaitable[Optional[str]]]


def needs_image(slide: Slide) -> bool:
    return slide.image_type == "AI" and bool(slide.image_prompt) and not slide.image_url


async def render_slide_images(deck: PPTContent, generate_image: ImageGenerator) -> PPTContent:
    """Return a copy of the deck with AI images filled in where requested.

    Images are generated concurrently; a failed image leaves its slide
    without one instead of failing the whole deck.
    """

    async def render(slide: Slide) -> Slide:
        if not needs_image(slide):
            return slide
        try:
            url = await generate_image(slide.image_prompt)
        except Exception as e:
            logger.warning("Slide image failed for %r: %s", slide.header, e)
            url = None
        return slide.model_copy(update={"image_url": url})

    slides = await asyncio.gather(*[render(slide) for slide in deck.slides])
    return deck.model_copy(update={"slides": list(slides)})
