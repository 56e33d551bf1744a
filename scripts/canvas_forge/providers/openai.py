"""OpenAI image adapter."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

try:
    import openai as openai_sdk  # type: ignore
    from openai import AsyncOpenAI  # type: ignore
except Exception:  # pragma: no cover
    openai_sdk = None  # type: ignore
    AsyncOpenAI = None  # type: ignore

from canvas_forge.core.contracts import PNG_MIME, ReferenceImage, normalize_style
from canvas_forge.core.errors import ConfigurationError, EmptyResultError, TransportError
from canvas_forge.core.prompting import (
    DEFAULT_STYLE_DESCRIPTION,
    STYLE_DESCRIPTIONS,
    Translator,
    compose_styled_prompt,
    translate_prompt,
)
from canvas_forge.core.sizing import openai_size_for
from canvas_forge.core.translation import MyMemoryTranslator


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-image-1"
DEFAULT_QUALITY = "high"


def _resolve_api_key(api_key: Optional[str]) -> str:
    api_key = api_key or os.getenv("OPENAI_API_KEY") or os.getenv("OPENAI_API_KEY_BACKUP")
    if not api_key:
        raise ConfigurationError("OPENAI_API_KEY must be set for OpenAI.")
    return api_key


def _error_detail(exc: Exception) -> str:
    body = getattr(exc, "body", None)
    if isinstance(body, Mapping):
        error = body.get("error", body)
        if isinstance(error, Mapping) and error.get("message"):
            return str(error["message"])
        return json.dumps(body, ensure_ascii=True)
    return getattr(exc, "message", None) or str(exc)


def _upload_files(reference_images: Sequence[ReferenceImage]) -> List[Tuple[str, bytes, str]]:
    return [(image.name, image.data, image.mime_type or PNG_MIME) for image in reference_images]


def _first_b64(response: Any) -> str:
    data = getattr(response, "data", None) or []
    for item in data:
        b64 = getattr(item, "b64_json", None)
        if b64:
            return b64
    raise EmptyResultError("OpenAI returned no images.")


class OpenAIAdapter:
    name = "openai"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        quality: str = DEFAULT_QUALITY,
        translate_prompts: bool = False,
        translator: Optional[Translator] = None,
        client: Any = None,
    ) -> None:
        self.api_key = _resolve_api_key(api_key)
        if client is None:
            if AsyncOpenAI is None:
                raise ConfigurationError("openai package not installed. Run: pip install openai")
            client = AsyncOpenAI(api_key=self.api_key)
        self.client = client
        self.model = model
        self.quality = quality
        self.translator = (translator or MyMemoryTranslator()) if translate_prompts else None

    async def _prompt(self, prompt: str, style: Optional[str]) -> str:
        prompt = await asyncio.to_thread(translate_prompt, prompt, self.translator)
        description = STYLE_DESCRIPTIONS.get(normalize_style(style) or "", DEFAULT_STYLE_DESCRIPTION)
        return compose_styled_prompt(description, prompt)

    async def _call(self, func, kwargs: Dict[str, Any]) -> str:
        try:
            response = await func(**kwargs)
        except Exception as exc:
            if openai_sdk is not None and isinstance(exc, openai_sdk.APIError):
                detail = _error_detail(exc)
                raise TransportError(
                    f"OpenAI API error: {detail}",
                    status_code=getattr(exc, "status_code", None),
                    detail=detail,
                ) from exc
            raise
        return _first_b64(response)

    async def generate_from_text(self, prompt: str, aspect_ratio: str, style: Optional[str]) -> str:
        kwargs = {
            "model": self.model,
            "prompt": await self._prompt(prompt, style),
            "n": 1,
            "size": openai_size_for(aspect_ratio),
            "quality": self.quality,
        }
        return await self._call(self.client.images.generate, kwargs)

    async def generate_from_prompt_and_images(
        self,
        prompt: str,
        reference_images: Sequence[ReferenceImage],
        aspect_ratio: str,
        style: Optional[str],
    ) -> str:
        if not reference_images:
            return await self.generate_from_text(prompt, aspect_ratio, style)
        kwargs = {
            "model": self.model,
            "prompt": await self._prompt(prompt, style),
            "image": _upload_files(reference_images),
            "n": 1,
            "size": openai_size_for(aspect_ratio),
            "quality": self.quality,
        }
        logger.debug("OpenAI edit with %d reference image(s).", len(reference_images))
        return await self._call(self.client.images.edit, kwargs)
