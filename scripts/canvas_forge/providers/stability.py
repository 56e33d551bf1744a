"""Stability AI (Stable Image) adapter."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Dict, Mapping, Optional, Sequence

import requests

from canvas_forge.core.contracts import ReferenceImage
from canvas_forge.core.errors import ConfigurationError, EmptyResultError, TransportError
from canvas_forge.core.prompting import DEFAULT_PRESET, Translator, resolve_style_preset, translate_prompt
from canvas_forge.core.translation import MyMemoryTranslator
from canvas_forge.core.utils import json_body
from .base import text_only_fallback


logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.stability.ai/v2beta/stable-image/generate"
DEFAULT_ENDPOINT = "core"
ENDPOINTS = {"core", "ultra", "sd3"}
DEFAULT_REQUEST_TIMEOUT = 120.0

STYLE_PRESETS: Dict[str, str] = {
    "Realistic": "photographic",
    "Cartoon": "comic-book",
    "Painting": "digital-art",
    "Anime": "anime",
    "Digital Art": "fantasy-art",
    "3D": "3d-model",
    "Pixel": "pixel-art",
}


def _resolve_api_key(api_key: Optional[str]) -> str:
    api_key = api_key or os.getenv("STABILITY_API_KEY")
    if not api_key:
        raise ConfigurationError("STABILITY_API_KEY must be set for Stability.")
    return api_key


def _error_message(response: Any) -> str:
    text = response.text or ""
    try:
        payload = json.loads(text)
    except ValueError:
        return text
    if isinstance(payload, Mapping):
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            return str(errors[0])
        for key in ("message", "name"):
            if payload.get(key):
                return str(payload[key])
    return text


class StabilityAdapter:
    name = "stability"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        endpoint: str = DEFAULT_ENDPOINT,
        model: Optional[str] = None,
        translate_prompts: bool = True,
        translator: Optional[Translator] = None,
        style_presets: Optional[Mapping[str, str]] = None,
        default_preset: str = DEFAULT_PRESET,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self.api_key = _resolve_api_key(api_key)
        endpoint = endpoint.strip().lower()
        if model and endpoint == DEFAULT_ENDPOINT:
            endpoint = "sd3"
        if endpoint not in ENDPOINTS:
            raise ConfigurationError(f"Unknown Stability endpoint '{endpoint}'.")
        self.endpoint = endpoint
        self.model = model
        self.translator = (translator or MyMemoryTranslator()) if translate_prompts else None
        self.style_presets = dict(style_presets or STYLE_PRESETS)
        self.default_preset = default_preset
        self.request_timeout = request_timeout

    @property
    def url(self) -> str:
        return f"{API_BASE_URL}/{self.endpoint}"

    def build_form(self, prompt: str, aspect_ratio: str, style: Optional[str]) -> Dict[str, str]:
        form = {
            "prompt": prompt,
            "aspect_ratio": aspect_ratio,
            "output_format": "png",
        }
        # sd3 models take no style preset.
        if self.endpoint == "sd3":
            if self.model:
                form["model"] = self.model
        else:
            form["style_preset"] = resolve_style_preset(style, self.style_presets, self.default_preset)
        return form

    def _post(self, form: Mapping[str, str]) -> str:
        try:
            response = requests.post(
                self.url,
                headers={
                    "Accept": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
                files={"none": ""},
                data=dict(form),
                timeout=self.request_timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"Stability API request failed: {exc}", detail=str(exc)) from exc
        if not 200 <= response.status_code < 300:
            detail = _error_message(response)
            raise TransportError(
                f"Stability API error: {detail}",
                status_code=response.status_code,
                detail=detail,
            )
        payload = json_body(response, "Stability API")
        image = payload.get("image") if isinstance(payload, Mapping) else None
        if not image:
            raise EmptyResultError("No image was returned by the Stability API.")
        return image

    async def generate_from_text(self, prompt: str, aspect_ratio: str, style: Optional[str]) -> str:
        english_prompt = await asyncio.to_thread(translate_prompt, prompt, self.translator)
        form = self.build_form(english_prompt, aspect_ratio, style)
        logger.debug("Stability request: endpoint=%s fields=%s", self.endpoint, sorted(form))
        return await asyncio.to_thread(self._post, form)

    async def generate_from_prompt_and_images(
        self,
        prompt: str,
        reference_images: Sequence[ReferenceImage],
        aspect_ratio: str,
        style: Optional[str],
    ) -> str:
        return await text_only_fallback(self, prompt, reference_images, aspect_ratio, style)
