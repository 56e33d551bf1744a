"""Error taxonomy for Canvas Forge."""

from __future__ import annotations

from typing import Optional


class CanvasForgeError(Exception):
    """Base class for every error surfaced to callers."""


class ConfigurationError(CanvasForgeError, RuntimeError):
    """A required credential or dependency is missing at construction time."""


class ValidationError(CanvasForgeError, ValueError):
    """User input was rejected before any network call."""


class TransportError(CanvasForgeError, RuntimeError):
    def __init__(self, message: str, *, status_code: Optional[int] = None, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class EmptyResultError(CanvasForgeError, RuntimeError):
    """The upstream call succeeded but returned no usable image."""


class SynthesisTooShortError(CanvasForgeError, RuntimeError):
    """Vision-to-prompt synthesis produced an empty or degenerate prompt."""


class AssetDecodeError(CanvasForgeError, RuntimeError):
    def __init__(self, asset: str, reason: object) -> None:
        super().__init__(f"Failed to load {asset}: {reason}")
        self.asset = asset
