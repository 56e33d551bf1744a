"""Canvas Forge public surface."""

from .api import download_filename, generate_from_prompt_and_images, generate_from_text, generate_image
from .core import GenerationRequest, GenerationResult, ReferenceImage
from .providers import build_adapter
from .watermark import apply_watermark

__all__ = [
    "download_filename",
    "generate_from_prompt_and_images",
    "generate_from_text",
    "generate_image",
    "apply_watermark",
    "build_adapter",
    "GenerationRequest",
    "GenerationResult",
    "ReferenceImage",
]
