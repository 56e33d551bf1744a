"""Provider capability registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Literal, Tuple

from .router import normalize_provider


ResponseKind = Literal["json", "binary", "sdk"]


@dataclass(frozen=True)
class ProviderCapabilities:
    name: str
    label: str
    supports_reference_images: bool
    honors_aspect_ratio: bool
    honors_style_preset: bool
    translates_prompt: bool
    response_kind: ResponseKind
    credential_env: Tuple[str, ...]


_CAPABILITIES: Dict[str, ProviderCapabilities] = {
    "stability": ProviderCapabilities(
        name="stability",
        label="Stability AI (Stable Image)",
        supports_reference_images=False,
        honors_aspect_ratio=True,
        honors_style_preset=True,
        translates_prompt=True,
        response_kind="json",
        credential_env=("STABILITY_API_KEY",),
    ),
    "huggingface": ProviderCapabilities(
        name="huggingface",
        label="Hugging Face Inference (SDXL)",
        supports_reference_images=False,
        honors_aspect_ratio=False,
        honors_style_preset=True,
        translates_prompt=True,
        response_kind="binary",
        credential_env=("HUGGINGFACE_API_KEY", "HF_TOKEN"),
    ),
    "gemini": ProviderCapabilities(
        name="gemini",
        label="Google Gemini + Imagen",
        supports_reference_images=True,
        honors_aspect_ratio=True,
        honors_style_preset=True,
        translates_prompt=False,
        response_kind="sdk",
        credential_env=("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"),
    ),
    "openai": ProviderCapabilities(
        name="openai",
        label="OpenAI GPT Image",
        supports_reference_images=True,
        honors_aspect_ratio=True,
        honors_style_preset=True,
        translates_prompt=False,
        response_kind="sdk",
        credential_env=("OPENAI_API_KEY",),
    ),
    "flux": ProviderCapabilities(
        name="flux",
        label="Black Forest Labs FLUX",
        supports_reference_images=False,
        honors_aspect_ratio=True,
        honors_style_preset=True,
        translates_prompt=False,
        response_kind="json",
        credential_env=("BFL_API_KEY", "FLUX_API_KEY"),
    ),
}


def get_capabilities(provider: str) -> ProviderCapabilities:
    key = normalize_provider(provider)
    if key not in _CAPABILITIES:
        raise ValueError(f"Unknown provider '{provider}'")
    return _CAPABILITIES[key]


def list_capabilities() -> Tuple[ProviderCapabilities, ...]:
    return tuple(_CAPABILITIES.values())
