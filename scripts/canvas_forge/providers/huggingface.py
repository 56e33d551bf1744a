"""Hugging Face Inference API adapter (SDXL)."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Mapping, Optional, Sequence

import requests

from canvas_forge.core.contracts import ReferenceImage, normalize_style
from canvas_forge.core.errors import ConfigurationError, EmptyResultError, TransportError
from canvas_forge.core.prompting import Translator, translate_prompt
from canvas_forge.core.translation import MyMemoryTranslator
from canvas_forge.core.utils import encode_b64, summarize_error
from .base import text_only_fallback


logger = logging.getLogger(__name__)

API_BASE_URL = "https://api-inference.huggingface.co/models"
DEFAULT_MODEL = "stabilityai/stable-diffusion-xl-base-1.0"
DEFAULT_REQUEST_TIMEOUT = 120.0
MODEL_LOADING_STATUS = 503


def _resolve_api_key(api_key: Optional[str]) -> str:
    api_key = api_key or os.getenv("HUGGINGFACE_API_KEY") or os.getenv("HF_TOKEN")
    if not api_key:
        raise ConfigurationError("HUGGINGFACE_API_KEY must be set for Hugging Face.")
    return api_key


def styled_prompt(prompt: str, style: Optional[str]) -> str:
    label = normalize_style(style)
    if not label:
        return prompt
    return f"{prompt}, {label} style"


class HuggingFaceAdapter:
    name = "huggingface"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        translate_prompts: bool = True,
        translator: Optional[Translator] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self.api_key = _resolve_api_key(api_key)
        self.model = model
        self.translator = (translator or MyMemoryTranslator()) if translate_prompts else None
        self.request_timeout = request_timeout

    @property
    def url(self) -> str:
        return f"{API_BASE_URL}/{self.model}"

    def _post(self, payload: Mapping[str, str]) -> bytes:
        try:
            response = requests.post(
                self.url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=dict(payload),
                timeout=self.request_timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"Hugging Face API request failed: {exc}", detail=str(exc)) from exc
        if response.status_code == MODEL_LOADING_STATUS:
            raise TransportError(
                "The AI model is loading, please wait a minute and try again.",
                status_code=response.status_code,
                detail=summarize_error(response),
            )
        if not 200 <= response.status_code < 300:
            detail = summarize_error(response)
            raise TransportError(
                f"Hugging Face API error: {detail}",
                status_code=response.status_code,
                detail=detail,
            )
        return response.content

    async def generate_from_text(self, prompt: str, aspect_ratio: str, style: Optional[str]) -> str:
        if aspect_ratio:
            logger.debug("Hugging Face ignores aspect ratio %s.", aspect_ratio)
        english_prompt = await asyncio.to_thread(translate_prompt, styled_prompt(prompt, style), self.translator)
        image_bytes = await asyncio.to_thread(self._post, {"inputs": english_prompt})
        if not image_bytes:
            raise EmptyResultError("No image was returned by the Hugging Face API.")
        return encode_b64(image_bytes)

    async def generate_from_prompt_and_images(
        self,
        prompt: str,
        reference_images: Sequence[ReferenceImage],
        aspect_ratio: str,
        style: Optional[str],
    ) -> str:
        return await text_only_fallback(self, prompt, reference_images, aspect_ratio, style)
