"""Core contracts and helpers."""

from .contracts import (
    ASPECT_RATIOS,
    STYLES,
    GenerationRequest,
    GenerationResult,
    ReferenceImage,
    WatermarkBox,
    WatermarkSpec,
)
from .errors import (
    AssetDecodeError,
    CanvasForgeError,
    ConfigurationError,
    EmptyResultError,
    SynthesisTooShortError,
    TransportError,
    ValidationError,
)

__all__ = [
    "ASPECT_RATIOS",
    "STYLES",
    "GenerationRequest",
    "GenerationResult",
    "ReferenceImage",
    "WatermarkBox",
    "WatermarkSpec",
    "AssetDecodeError",
    "CanvasForgeError",
    "ConfigurationError",
    "EmptyResultError",
    "SynthesisTooShortError",
    "TransportError",
    "ValidationError",
]
