"""Public API for Canvas Forge."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional, Sequence, Union

from canvas_forge.core.contracts import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_STYLE,
    GenerationRequest,
    GenerationResult,
    ImageInput,
    ReferenceImage,
)
from canvas_forge.core.intake import validate_prompt
from canvas_forge.providers import GenerationAdapter, build_adapter
from canvas_forge.watermark import WatermarkCompositor


logger = logging.getLogger(__name__)

DOWNLOAD_STEM_CHARS = 30
DEFAULT_DOWNLOAD_STEM = "generated_image"

_WHITESPACE_RE = re.compile(r"\s+")


def download_filename(prompt: str) -> str:
    stem = _WHITESPACE_RE.sub("_", (prompt or "")[:DOWNLOAD_STEM_CHARS]) or DEFAULT_DOWNLOAD_STEM
    return f"{stem}_watermarked.png"


async def generate_from_text(
    prompt: str,
    aspect_ratio: str = DEFAULT_ASPECT_RATIO,
    style: Optional[str] = DEFAULT_STYLE,
    *,
    provider: Optional[str] = None,
    adapter: Optional[GenerationAdapter] = None,
    **provider_options: Any,
) -> str:
    validate_prompt(prompt)
    adapter = adapter or build_adapter(provider, **provider_options)
    return await adapter.generate_from_text(prompt, aspect_ratio, style)


async def generate_from_prompt_and_images(
    prompt: str,
    reference_images: Sequence[Union[ReferenceImage, ImageInput]],
    aspect_ratio: str = DEFAULT_ASPECT_RATIO,
    style: Optional[str] = DEFAULT_STYLE,
    *,
    provider: Optional[str] = None,
    adapter: Optional[GenerationAdapter] = None,
    **provider_options: Any,
) -> str:
    validate_prompt(prompt)
    images = [ReferenceImage.coerce(image, idx) for idx, image in enumerate(reference_images)]
    adapter = adapter or build_adapter(provider, **provider_options)
    return await adapter.generate_from_prompt_and_images(prompt, images, aspect_ratio, style)


async def generate_image(
    request: GenerationRequest,
    *,
    adapter: Optional[GenerationAdapter] = None,
    compositor: Optional[WatermarkCompositor] = None,
    provider: Optional[str] = None,
) -> GenerationResult:
    """Run one generate-then-watermark cycle for ``request``.

    The request is validated before the adapter is touched, so rejected input
    never reaches the network. Each call owns its decoded images; callers must
    not overlap submissions that share output state.
    """
    request.validate()
    adapter = adapter or build_adapter(provider)
    if request.reference_images:
        logger.info("Generating with %s from prompt and %d image(s).", adapter.name, len(request.reference_images))
        image_b64 = await adapter.generate_from_prompt_and_images(
            request.prompt,
            request.reference_images,
            request.aspect_ratio,
            request.style,
        )
    else:
        logger.info("Generating with %s from prompt.", adapter.name)
        image_b64 = await adapter.generate_from_text(request.prompt, request.aspect_ratio, request.style)
    watermarked = await (compositor or WatermarkCompositor()).apply_watermark(image_b64)
    return GenerationResult(image_b64=watermarked)
