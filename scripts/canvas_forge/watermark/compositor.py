"""Watermark compositor.

Overlays the logo onto a generated image:

1. decode the source and allocate a canvas of exactly its size;
2. draw the source at (0, 0);
3. decode the logo fetched from ``LOGO_URL``;
4. scale the logo to ``max(24, 3% of the source height)``, keeping its
   aspect ratio;
5. anchor it 20px from the bottom and right edges;
6. composite it with a global alpha of 0.4;
7. encode the canvas back to a base64 PNG.

Either image failing to load is fatal for the call; there is no fallback to
the un-watermarked image.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

import requests

from canvas_forge.core.contracts import WatermarkSpec
from canvas_forge.core.errors import AssetDecodeError
from canvas_forge.core.utils import decode_b64, encode_b64
from .surface import PillowSurface, RasterSurface


logger = logging.getLogger(__name__)

LOGO_URL = "https://i.ibb.co/5X8G9Kn1/cineveo-logo-r.png"
DEFAULT_DOWNLOAD_TIMEOUT = 30.0

SOURCE_ASSET = "generated image"
LOGO_ASSET = "watermark logo"

LogoLoader = Callable[[str], bytes]


def fetch_logo(url: str) -> bytes:
    response = requests.get(url, timeout=DEFAULT_DOWNLOAD_TIMEOUT)
    response.raise_for_status()
    return response.content


class WatermarkCompositor:
    def __init__(
        self,
        spec: Optional[WatermarkSpec] = None,
        *,
        surface: Optional[RasterSurface] = None,
        logo_loader: Optional[LogoLoader] = None,
    ) -> None:
        self.spec = spec or WatermarkSpec(logo_url=LOGO_URL)
        self.surface = surface or PillowSurface()
        self.logo_loader = logo_loader or fetch_logo

    def _decode_source(self, base64_source: str):
        try:
            return self.surface.decode(decode_b64(base64_source))
        except Exception as exc:
            raise AssetDecodeError(SOURCE_ASSET, exc) from exc

    def _load_logo(self):
        try:
            logo = self.surface.decode(self.logo_loader(self.spec.logo_url))
        except Exception as exc:
            raise AssetDecodeError(LOGO_ASSET, exc) from exc
        logo_width, logo_height = self.surface.size(logo)
        if logo_width <= 0 or logo_height <= 0:
            raise AssetDecodeError(LOGO_ASSET, "image has no pixels")
        return logo

    def render(self, base64_source: str) -> bytes:
        source = self._decode_source(base64_source)
        width, height = self.surface.size(source)
        canvas = self.surface.new_canvas(width, height)
        self.surface.draw(canvas, source, (0, 0))

        logo = self._load_logo()
        logo_width, logo_height = self.surface.size(logo)
        box = self.spec.layout(width, height, logo_width, logo_height)
        logger.debug("Watermark box for %dx%d image: %s", width, height, box)
        self.surface.composite(canvas, logo, box, self.spec.opacity)
        return self.surface.encode(canvas)

    async def apply_watermark(self, base64_source: str) -> str:
        rendered = await asyncio.to_thread(self.render, base64_source)
        return encode_b64(rendered)


async def apply_watermark(base64_source: str, compositor: Optional[WatermarkCompositor] = None) -> str:
    return await (compositor or WatermarkCompositor()).apply_watermark(base64_source)
