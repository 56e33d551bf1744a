"""Core data contracts for Canvas Forge."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Literal, Optional, Sequence, Tuple, Union

from .errors import ValidationError


AspectRatio = Literal["1:1", "16:9", "9:16", "4:3", "3:4"]
Style = Literal["Realistic", "Cartoon", "Painting", "Anime", "Digital Art", "3D", "Pixel"]
ImageInput = Union[str, Path, bytes]

ASPECT_RATIOS: Tuple[str, ...] = ("1:1", "16:9", "9:16", "4:3", "3:4")
STYLES: Tuple[str, ...] = ("Realistic", "Cartoon", "Painting", "Anime", "Digital Art", "3D", "Pixel")
DEFAULT_ASPECT_RATIO = "1:1"
DEFAULT_STYLE = "Realistic"

# Labels used by the original Portuguese form.
STYLE_ALIASES: Dict[str, str] = {
    "realistic": "Realistic",
    "realista": "Realistic",
    "cartoon": "Cartoon",
    "painting": "Painting",
    "pintura": "Painting",
    "anime": "Anime",
    "digital art": "Digital Art",
    "arte digital": "Digital Art",
    "3d": "3D",
    "pixel": "Pixel",
    "pixelada": "Pixel",
    "pixel art": "Pixel",
}

PNG_MIME = "image/png"
JPEG_MIME = "image/jpeg"
WEBP_MIME = "image/webp"
SUPPORTED_MIME_TYPES = frozenset({PNG_MIME, JPEG_MIME, WEBP_MIME})

_EXTENSION_MIME = {
    ".png": PNG_MIME,
    ".jpg": JPEG_MIME,
    ".jpeg": JPEG_MIME,
    ".webp": WEBP_MIME,
}


def normalize_style(style: Optional[str]) -> Optional[str]:
    """Map a user-facing style label onto the canonical enumeration.

    Unknown labels are returned stripped but otherwise untouched so that each
    backend can fall back to its own default preset.
    """
    if style is None:
        return None
    key = " ".join(style.strip().lower().split())
    return STYLE_ALIASES.get(key, style.strip())


def sniff_mime_type(data: bytes, name: Optional[str] = None) -> Optional[str]:
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return PNG_MIME
    if data.startswith(b"\xff\xd8\xff"):
        return JPEG_MIME
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return WEBP_MIME
    if name:
        return _EXTENSION_MIME.get(Path(name).suffix.lower())
    return None


@dataclass(frozen=True)
class ReferenceImage:
    name: str
    data: bytes
    mime_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_bytes(cls, data: bytes, name: str = "image") -> "ReferenceImage":
        return cls(name=name, data=data, mime_type=sniff_mime_type(data, name))

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ReferenceImage":
        resolved = Path(path).expanduser().resolve()
        return cls.from_bytes(resolved.read_bytes(), name=resolved.name)

    @classmethod
    def coerce(cls, value: Union["ReferenceImage", ImageInput], index: int = 0) -> "ReferenceImage":
        if isinstance(value, ReferenceImage):
            return value
        if isinstance(value, (bytes, bytearray)):
            return cls.from_bytes(bytes(value), name=f"image-{index + 1:02d}")
        if isinstance(value, (str, Path)):
            return cls.from_path(value)
        raise TypeError(f"Unsupported input type: {type(value)}")


@dataclass
class GenerationRequest:
    prompt: str
    reference_images: Sequence[ReferenceImage] = ()
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    style: Optional[str] = DEFAULT_STYLE

    def validate(self) -> None:
        # Local import: intake depends on this module.
        from .intake import validate_prompt, validate_reference_images

        validate_prompt(self.prompt)
        if self.aspect_ratio not in ASPECT_RATIOS:
            raise ValidationError(
                f"Unsupported aspect ratio '{self.aspect_ratio}'. Choose one of: {', '.join(ASPECT_RATIOS)}."
            )
        validate_reference_images(self.reference_images)


@dataclass(frozen=True)
class GenerationResult:
    image_b64: str

    def image_bytes(self) -> bytes:
        return base64.b64decode(self.image_b64)

    def data_url(self) -> str:
        return f"data:{PNG_MIME};base64,{self.image_b64}"


@dataclass(frozen=True)
class WatermarkBox:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


@dataclass(frozen=True)
class WatermarkSpec:
    logo_url: str
    margin: int = 20
    min_height: int = 24
    height_ratio: float = 0.03
    opacity: float = 0.4
    anchor: Literal["bottom-right"] = "bottom-right"

    def layout(self, width: int, height: int, logo_width: int, logo_height: int) -> WatermarkBox:
        target_height = max(float(self.min_height), height * self.height_ratio)
        target_width = logo_width * (target_height / logo_height)
        box_height = max(1, int(round(target_height)))
        box_width = max(1, int(round(target_width)))
        return WatermarkBox(
            x=width - box_width - self.margin,
            y=height - box_height - self.margin,
            width=box_width,
            height=box_height,
        )
