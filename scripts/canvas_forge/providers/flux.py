"""Flux (BFL) adapter."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import Any, Dict, Mapping, Optional, Sequence

import requests

from canvas_forge.core.contracts import ReferenceImage, normalize_style
from canvas_forge.core.errors import ConfigurationError, EmptyResultError, TransportError
from canvas_forge.core.prompting import (
    DEFAULT_STYLE_DESCRIPTION,
    STYLE_DESCRIPTIONS,
    Translator,
    compose_styled_prompt,
    translate_prompt,
)
from canvas_forge.core.sizing import flux_dims_for
from canvas_forge.core.translation import MyMemoryTranslator
from canvas_forge.core.utils import encode_b64, json_body, raise_for_status
from .base import text_only_fallback


logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.bfl.ai/v1"
DEFAULT_ENDPOINT = "flux-2-flex"
DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_POLL_TIMEOUT = 120.0
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_DOWNLOAD_TIMEOUT = 60.0
READY_STATUSES = {"ready"}
FAILURE_STATUSES = {"error", "failed", "request moderated", "content moderated", "task not found"}


def _resolve_api_key(api_key: Optional[str]) -> str:
    api_key = api_key or os.getenv("BFL_API_KEY") or os.getenv("FLUX_API_KEY")
    if not api_key:
        raise ConfigurationError("BFL_API_KEY (or FLUX_API_KEY) must be set for Flux.")
    return api_key


def _resolve_endpoint(endpoint: str) -> str:
    suffix = endpoint.strip()
    if suffix.lower().startswith("http"):
        return suffix
    return f"{API_BASE_URL}/{suffix.lstrip('/')}"


class FluxAdapter:
    name = "flux"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        endpoint: str = DEFAULT_ENDPOINT,
        model: Optional[str] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT,
        translate_prompts: bool = False,
        translator: Optional[Translator] = None,
    ) -> None:
        self.api_key = _resolve_api_key(api_key)
        self.endpoint_url = _resolve_endpoint(model or endpoint)
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self.request_timeout = request_timeout
        self.download_timeout = download_timeout
        self.translator = (translator or MyMemoryTranslator()) if translate_prompts else None

    def build_payload(self, prompt: str, aspect_ratio: str, style: Optional[str]) -> Dict[str, Any]:
        description = STYLE_DESCRIPTIONS.get(normalize_style(style) or "", DEFAULT_STYLE_DESCRIPTION)
        width, height = flux_dims_for(aspect_ratio)
        return {
            "prompt": compose_styled_prompt(description, prompt),
            "width": width,
            "height": height,
            "output_format": "png",
        }

    def _generate_one(self, payload: Mapping[str, Any]) -> bytes:
        headers = {
            "accept": "application/json",
            "x-key": self.api_key,
            "Content-Type": "application/json",
        }
        session = requests.Session()
        try:
            request_response = session.post(
                self.endpoint_url,
                headers=headers,
                json=dict(payload),
                timeout=self.request_timeout,
            )
            raise_for_status(request_response, "Flux request")
            request_json = json_body(request_response, "Flux request")
            request_id = request_json.get("id")
            polling_url = request_json.get("polling_url")
            if not request_id or not polling_url:
                raise TransportError(f"Flux request missing id or polling_url: {request_json}")

            started = time.time()
            while time.time() - started < self.poll_timeout:
                poll_response = session.get(polling_url, headers=headers, timeout=self.request_timeout)
                raise_for_status(poll_response, "Flux poll")
                payload_json = json_body(poll_response, "Flux poll")
                status = str(payload_json.get("status") or "").lower()
                if status in READY_STATUSES:
                    result = payload_json.get("result") or {}
                    sample = result.get("sample") or payload_json.get("sample")
                    if not sample:
                        raise EmptyResultError("Flux result missing sample URL.")
                    image_response = session.get(sample, timeout=self.download_timeout)
                    raise_for_status(image_response, "Flux download")
                    if not image_response.content:
                        raise EmptyResultError("Flux returned an empty image.")
                    logger.debug("Flux request %s ready.", request_id)
                    return image_response.content
                if status in FAILURE_STATUSES:
                    raise TransportError(f"Flux generation failed: {payload_json}", detail=str(payload_json))
                time.sleep(self.poll_interval)
        except requests.RequestException as exc:
            raise TransportError(f"Flux request failed: {exc}", detail=str(exc)) from exc
        finally:
            session.close()

        raise TransportError(f"Flux polling timed out after {self.poll_timeout:.1f}s.")

    async def generate_from_text(self, prompt: str, aspect_ratio: str, style: Optional[str]) -> str:
        prompt = await asyncio.to_thread(translate_prompt, prompt, self.translator)
        payload = self.build_payload(prompt, aspect_ratio, style)
        image_bytes = await asyncio.to_thread(self._generate_one, payload)
        return encode_b64(image_bytes)

    async def generate_from_prompt_and_images(
        self,
        prompt: str,
        reference_images: Sequence[ReferenceImage],
        aspect_ratio: str,
        style: Optional[str],
    ) -> str:
        return await text_only_fallback(self, prompt, reference_images, aspect_ratio, style)
