"""Raster surface capability and its Pillow implementation."""

from __future__ import annotations

import io
from typing import Any, Protocol, Tuple

from PIL import Image

from canvas_forge.core.contracts import WatermarkBox


class RasterSurface(Protocol):
    def decode(self, data: bytes) -> Any:
        ...

    def size(self, raster: Any) -> Tuple[int, int]:
        ...

    def new_canvas(self, width: int, height: int) -> Any:
        ...

    def draw(self, canvas: Any, raster: Any, offset: Tuple[int, int]) -> None:
        ...

    def composite(self, canvas: Any, raster: Any, box: WatermarkBox, alpha: float) -> None:
        ...

    def encode(self, canvas: Any) -> bytes:
        ...


class PillowSurface:
    resample = Image.Resampling.LANCZOS

    def decode(self, data: bytes) -> Image.Image:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")

    def size(self, raster: Image.Image) -> Tuple[int, int]:
        return raster.size

    def new_canvas(self, width: int, height: int) -> Image.Image:
        return Image.new("RGBA", (width, height), (0, 0, 0, 0))

    def draw(self, canvas: Image.Image, raster: Image.Image, offset: Tuple[int, int]) -> None:
        canvas.paste(raster, offset)

    def composite(self, canvas: Image.Image, raster: Image.Image, box: WatermarkBox, alpha: float) -> None:
        overlay = raster.resize((box.width, box.height), self.resample)
        faded = overlay.getchannel("A").point(lambda value: int(round(value * alpha)))
        overlay.putalpha(faded)
        # alpha_composite rejects negative destinations; clip the overlay instead.
        left = max(0, -box.x)
        top = max(0, -box.y)
        if left >= box.width or top >= box.height:
            return
        if left or top:
            overlay = overlay.crop((left, top, box.width, box.height))
        canvas.alpha_composite(overlay, dest=(box.x + left, box.y + top))

    def encode(self, canvas: Image.Image) -> bytes:
        buffer = io.BytesIO()
        canvas.save(buffer, format="PNG")
        return buffer.getvalue()
