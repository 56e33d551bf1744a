"""Generation adapter registry."""

from __future__ import annotations

from typing import Any

from canvas_forge.core.errors import ConfigurationError
from canvas_forge.core.router import resolve_provider
from .base import GenerationAdapter


def build_adapter(provider: str | None = None, **options: Any) -> GenerationAdapter:
    """Construct the adapter for ``provider`` (or the configured default).

    Construction validates credentials, so a missing key surfaces here as a
    ConfigurationError rather than on the first request.
    """
    key = resolve_provider(provider)
    if key == "stability":
        from .stability import StabilityAdapter
        return StabilityAdapter(**options)
    if key == "huggingface":
        from .huggingface import HuggingFaceAdapter
        return HuggingFaceAdapter(**options)
    if key == "gemini":
        from .gemini import GeminiAdapter
        return GeminiAdapter(**options)
    if key == "openai":
        from .openai import OpenAIAdapter
        return OpenAIAdapter(**options)
    if key == "flux":
        from .flux import FluxAdapter
        return FluxAdapter(**options)
    raise ConfigurationError(f"No adapter registered for provider '{provider}'.")


__all__ = ["build_adapter", "GenerationAdapter"]
