"""Watermark compositing."""

from .compositor import LOGO_URL, WatermarkCompositor, apply_watermark
from .surface import PillowSurface, RasterSurface

__all__ = ["LOGO_URL", "WatermarkCompositor", "apply_watermark", "PillowSurface", "RasterSurface"]
