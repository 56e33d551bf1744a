"""Gemini + Imagen adapter.

Text prompts go straight to Imagen. When reference images are supplied, a
Gemini vision model first writes a single descriptive prompt from the images
and the user's instruction, and that synthesized prompt is what Imagen sees.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, List, Mapping, Optional, Sequence

import httpx

try:
    from google import genai  # type: ignore
    from google.genai import errors as genai_errors  # type: ignore
    from google.genai import types  # type: ignore
except Exception:  # pragma: no cover
    genai = None  # type: ignore
    genai_errors = None  # type: ignore
    types = None  # type: ignore

from canvas_forge.core.contracts import PNG_MIME, ReferenceImage, normalize_style
from canvas_forge.core.errors import (
    ConfigurationError,
    EmptyResultError,
    SynthesisTooShortError,
    TransportError,
)
from canvas_forge.core.prompting import (
    DEFAULT_STYLE_DESCRIPTION,
    MIN_SYNTHESIS_LENGTH,
    STYLE_DESCRIPTIONS,
    Translator,
    compose_styled_prompt,
    strip_code_fences,
    translate_prompt,
)
from canvas_forge.core.translation import MyMemoryTranslator
from canvas_forge.core.utils import encode_b64


logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MODEL = "imagen-3.0-generate-002"
DEFAULT_VISION_MODEL = "gemini-2.5-flash"

SYNTHESIS_INSTRUCTION = """You are a world-class multimodal prompt engineer for an AI image generator.
You are given one or more reference images and a user instruction. Study every
image carefully: subjects, faces, clothing, objects, setting, lighting, colors
and composition. Then write ONE detailed, self-contained prompt, in English,
that an image model with no access to the images can use to create the picture
the user is asking for.

Rules:
- Follow the user's instruction exactly, combining elements from the images
  when asked (for example "the character from image 1 in the scene of image 2").
- Describe the visual details of anything taken from the images so it can be
  reproduced faithfully.
- If the user asks for text, a name or a word in the image, quote it exactly.
- Render everything in this visual style: {style_description}.
- Answer with the prompt only: no preamble, no explanations, no markdown.

User instruction: {instruction}
"""


def _resolve_api_key(api_key: Optional[str]) -> str:
    api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY")
    if not api_key:
        raise ConfigurationError("GEMINI_API_KEY (or GOOGLE_API_KEY / API_KEY) must be set for Gemini.")
    return api_key


def style_description(style: Optional[str], table: Mapping[str, str] = STYLE_DESCRIPTIONS) -> str:
    return table.get(normalize_style(style) or "", DEFAULT_STYLE_DESCRIPTION)


def synthesis_instruction(prompt: str, style: Optional[str]) -> str:
    return SYNTHESIS_INSTRUCTION.format(style_description=style_description(style), instruction=prompt)


def _is_transport_failure(exc: Exception) -> bool:
    if isinstance(exc, httpx.HTTPError):
        return True
    return genai_errors is not None and isinstance(exc, genai_errors.APIError)


def _transport_error(label: str, exc: Exception) -> TransportError:
    status = getattr(exc, "code", None)
    detail = getattr(exc, "message", None) or str(exc)
    return TransportError(
        f"Gemini {label} failed: {detail}",
        status_code=status if isinstance(status, int) else None,
        detail=str(detail),
    )


def _image_parts(reference_images: Sequence[ReferenceImage]) -> List[Any]:
    return [
        types.Part.from_bytes(data=image.data, mime_type=image.mime_type or PNG_MIME)
        for image in reference_images
    ]


class GeminiAdapter:
    name = "gemini"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: str = DEFAULT_IMAGE_MODEL,
        vision_model: str = DEFAULT_VISION_MODEL,
        translate_prompts: bool = False,
        translator: Optional[Translator] = None,
        client: Any = None,
    ) -> None:
        self.api_key = _resolve_api_key(api_key)
        if genai is None or types is None:
            raise ConfigurationError("google-genai package not installed. Run: pip install google-genai")
        if client is None:
            client = genai.Client(api_key=self.api_key)
        self.client = client
        self.model = model
        self.vision_model = vision_model
        self.translator = (translator or MyMemoryTranslator()) if translate_prompts else None

    async def _generate_image(self, prompt: str, aspect_ratio: str) -> str:
        config = types.GenerateImagesConfig(
            number_of_images=1,
            output_mime_type=PNG_MIME,
            aspect_ratio=aspect_ratio,
        )
        try:
            response = await self.client.aio.models.generate_images(
                model=self.model,
                prompt=prompt,
                config=config,
            )
        except Exception as exc:
            if _is_transport_failure(exc):
                raise _transport_error("image generation", exc) from exc
            raise
        generated = getattr(response, "generated_images", None) or []
        for item in generated:
            image = getattr(item, "image", None)
            image_bytes = getattr(image, "image_bytes", None)
            if image_bytes:
                return encode_b64(image_bytes)
        raise EmptyResultError("Could not generate an image from the prompt.")

    async def synthesize_prompt(
        self,
        prompt: str,
        reference_images: Sequence[ReferenceImage],
        style: Optional[str],
    ) -> str:
        contents = [*_image_parts(reference_images), synthesis_instruction(prompt, style)]
        try:
            response = await self.client.aio.models.generate_content(
                model=self.vision_model,
                contents=contents,
            )
        except Exception as exc:
            if _is_transport_failure(exc):
                raise _transport_error("prompt synthesis", exc) from exc
            raise
        synthesized = strip_code_fences(getattr(response, "text", None))
        if len(synthesized) < MIN_SYNTHESIS_LENGTH:
            logger.error("Synthesized prompt is too short or empty: %r", synthesized)
            raise SynthesisTooShortError(
                "Could not create a good prompt from your request. Try being more descriptive."
            )
        logger.info("Synthesized prompt: %s", synthesized)
        return synthesized

    async def generate_from_text(self, prompt: str, aspect_ratio: str, style: Optional[str]) -> str:
        if self.translator is not None:
            prompt = await asyncio.to_thread(translate_prompt, prompt, self.translator)
        final_prompt = compose_styled_prompt(style_description(style), prompt)
        return await self._generate_image(final_prompt, aspect_ratio)

    async def generate_from_prompt_and_images(
        self,
        prompt: str,
        reference_images: Sequence[ReferenceImage],
        aspect_ratio: str,
        style: Optional[str],
    ) -> str:
        if not reference_images:
            return await self.generate_from_text(prompt, aspect_ratio, style)
        synthesized = await self.synthesize_prompt(prompt, reference_images, style)
        return await self._generate_image(synthesized, aspect_ratio)
