"""Prompt pre-processing stages shared by the generation adapters."""

from __future__ import annotations

import logging
import re
from typing import Mapping, Optional, Protocol

from .contracts import normalize_style


logger = logging.getLogger(__name__)

DEFAULT_PRESET = "photographic"
MIN_SYNTHESIS_LENGTH = 10

_DIACRITICS_RE = re.compile(r"[áéíóúâêôãõç]", re.IGNORECASE)
_LEADING_FENCE_RE = re.compile(r"^```(text|json)?\s*")
_TRAILING_FENCE_RE = re.compile(r"```$")


class Translator(Protocol):
    def translate(self, text: str) -> Optional[str]:
        ...


def resolve_style_preset(style: Optional[str], table: Mapping[str, str], default: str = DEFAULT_PRESET) -> str:
    if not style:
        return default
    return table.get(normalize_style(style) or "", default)


def needs_translation(text: str) -> bool:
    return bool(_DIACRITICS_RE.search(text or ""))


def translate_prompt(text: str, translator: Optional[Translator]) -> str:
    """Translate ``text`` to English when it looks non-English.

    Translation is best effort: any failure, or an empty answer, leaves the
    original text in place.
    """
    if translator is None or not needs_translation(text):
        return text
    try:
        translated = translator.translate(text)
    except Exception as exc:
        logger.warning("Prompt translation failed, using the original prompt: %s", exc)
        return text
    if not translated:
        return text
    logger.info("Translated prompt: %r", translated)
    return translated


def strip_code_fences(text: Optional[str]) -> str:
    cleaned = (text or "").strip()
    cleaned = _LEADING_FENCE_RE.sub("", cleaned)
    cleaned = _TRAILING_FENCE_RE.sub("", cleaned)
    return cleaned.strip()


def compose_styled_prompt(style_description: str, prompt: str) -> str:
    return (
        f"{style_description}. The image is a depiction of: {prompt}. "
        "If the prompt asks to write text, like a name or a word, it is crucial "
        "that this text appears in the image exactly as written."
    )


DEFAULT_STYLE_DESCRIPTION = "high quality digital art"

STYLE_DESCRIPTIONS = {
    "Realistic": (
        "Masterpiece, photorealistic, 8K, UHD, sharp focus, high dynamic range, "
        "intricate details, professional photography"
    ),
    "Cartoon": (
        "Classic 2D cartoon style, cel-shaded, bold outlines, vibrant flat colors, "
        "expressive characters, animation cel"
    ),
    "Painting": (
        "Digital painting, epic and majestic, impressionistic, visible brush strokes, "
        "rich textures, artistic composition"
    ),
    "Anime": (
        "Japanese anime style, vibrant colors, expressive eyes, dynamic action lines, "
        "cel-shaded, cinematic, from a high-quality anime movie"
    ),
    "Digital Art": (
        "Concept art, digital illustration, smooth gradients, stylized realism, "
        "atmospheric lighting, trending on ArtStation"
    ),
    "3D": (
        "3D render, Pixar-style animation, cinematic lighting, detailed textures, "
        "high-poly models, octane render"
    ),
    "Pixel": (
        "Pixel art style, 8-bit, 16-bit, retro gaming aesthetic, low resolution, "
        "visible pixels, limited color palette, dithering, sprite sheet style"
    ),
}
