"""Provider routing and alias normalization."""

from __future__ import annotations

import os
import re
from typing import Dict


DEFAULT_PROVIDER = "stability"
PROVIDER_ENV = "CANVAS_FORGE_PROVIDER"

PROVIDER_ALIASES: Dict[str, str] = {
    "stability": "stability",
    "stability-ai": "stability",
    "stabilityai": "stability",
    "stable-image": "stability",
    "sd3": "stability",
    "huggingface": "huggingface",
    "hugging-face": "huggingface",
    "hf": "huggingface",
    "sdxl": "huggingface",
    "gemini": "gemini",
    "google": "gemini",
    "imagen": "gemini",
    "imagen-3": "gemini",
    "openai": "openai",
    "gpt-image-1": "openai",
    "gpt-image": "openai",
    "flux": "flux",
    "flux-2": "flux",
    "flux-2-flex": "flux",
    "bfl": "flux",
}


def normalize_provider(provider: str | None) -> str:
    if not provider:
        return "auto"
    if provider.strip().lower() in {"auto", "default"}:
        return "auto"
    slug = re.sub(r"[^a-z0-9]+", "-", provider.strip().lower()).strip("-")
    return PROVIDER_ALIASES.get(slug, slug)


def resolve_provider(provider: str | None) -> str:
    normalized = normalize_provider(provider)
    if normalized != "auto":
        return normalized
    env_choice = os.getenv(PROVIDER_ENV)
    if env_choice and normalize_provider(env_choice) != "auto":
        return normalize_provider(env_choice)
    return DEFAULT_PROVIDER
