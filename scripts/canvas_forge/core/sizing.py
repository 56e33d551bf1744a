"""Map aspect-ratio labels onto provider-specific output sizes."""

from __future__ import annotations

import logging
import re
from typing import Optional, Tuple


logger = logging.getLogger(__name__)

_RATIO_RE = re.compile(r"^\s*(\d+)\s*[:/]\s*(\d+)\s*$")

_OPENAI_SIZES = {
    "1024x1024": (1024, 1024),
    "1536x1024": (1536, 1024),
    "1024x1536": (1024, 1536),
}


def parse_ratio(value: str) -> Optional[Tuple[int, int]]:
    if not value:
        return None
    match = _RATIO_RE.match(value)
    if not match:
        return None
    w = int(match.group(1))
    h = int(match.group(2))
    if w <= 0 or h <= 0:
        return None
    return w, h


def openai_size_for(aspect_ratio: str) -> str:
    ratio = parse_ratio(aspect_ratio)
    if ratio is None:
        return "1024x1024"
    target_ratio = ratio[0] / ratio[1]
    best_key = "1024x1024"
    best_delta = float("inf")
    for key, (w, h) in _OPENAI_SIZES.items():
        delta = abs((w / h) - target_ratio)
        if delta < best_delta:
            best_delta = delta
            best_key = key
    if _OPENAI_SIZES[best_key][0] / _OPENAI_SIZES[best_key][1] != target_ratio:
        logger.debug("OpenAI size snapped to %s for aspect ratio %s.", best_key, aspect_ratio)
    return best_key


def _snap_multiple(value: int, multiple: int) -> int:
    return int(round(value / multiple) * multiple)


def flux_dims_for(aspect_ratio: str, base: int = 1024) -> Tuple[int, int]:
    """Width and height for FLUX, long edge anchored at ``base`` and snapped to 16px."""
    ratio = parse_ratio(aspect_ratio)
    if ratio is None:
        return base, base
    if ratio[0] >= ratio[1]:
        w, h = base, int(base * ratio[1] / ratio[0])
    else:
        w, h = int(base * ratio[0] / ratio[1]), base
    return _snap_multiple(w, 16), _snap_multiple(h, 16)
