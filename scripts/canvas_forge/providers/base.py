"""Generation adapter interface."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence, runtime_checkable

from canvas_forge.core.contracts import ReferenceImage


logger = logging.getLogger(__name__)


@runtime_checkable
class GenerationAdapter(Protocol):
    name: str

    async def generate_from_text(self, prompt: str, aspect_ratio: str, style: Optional[str]) -> str:
        ...

    async def generate_from_prompt_and_images(
        self,
        prompt: str,
        reference_images: Sequence[ReferenceImage],
        aspect_ratio: str,
        style: Optional[str],
    ) -> str:
        ...


async def text_only_fallback(
    adapter: GenerationAdapter,
    prompt: str,
    reference_images: Sequence[ReferenceImage],
    aspect_ratio: str,
    style: Optional[str],
) -> str:
    """Image-conditioned call for a backend that cannot use the images."""
    if reference_images:
        logger.warning(
            "%s does not support reference images; ignoring %d image(s) and using the text prompt only.",
            adapter.name,
            len(reference_images),
        )
    return await adapter.generate_from_text(prompt, aspect_ratio, style)
