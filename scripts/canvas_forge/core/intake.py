"""Reference-image and prompt intake checks.

These run before any adapter is called so that a rejected submission never
reaches the network.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from .contracts import SUPPORTED_MIME_TYPES, ReferenceImage
from .errors import ValidationError


MAX_FILES = 10
MAX_FILE_SIZE_MB = 4
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024


@dataclass
class IntakeResult:
    accepted: List[ReferenceImage] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def too_many_files_message() -> str:
    return f"You can upload at most {MAX_FILES} images."


def file_error(image: ReferenceImage) -> str | None:
    if image.size > MAX_FILE_SIZE_BYTES:
        return f'The file "{image.name}" exceeds the {MAX_FILE_SIZE_MB}MB limit.'
    if image.mime_type not in SUPPORTED_MIME_TYPES:
        return f'The file "{image.name}" is not a PNG, JPEG or WEBP image.'
    return None


def accept_reference_images(
    current: Sequence[ReferenceImage],
    incoming: Sequence[ReferenceImage],
) -> IntakeResult:
    """Merge a new batch of files into the current selection.

    A batch that would push the selection past MAX_FILES is rejected whole.
    Otherwise each invalid file is dropped with a message naming it and the
    valid ones are appended in order.
    """
    result = IntakeResult(accepted=list(current))
    if len(current) + len(incoming) > MAX_FILES:
        result.errors.append(too_many_files_message())
        return result
    for image in incoming:
        error = file_error(image)
        if error:
            result.errors.append(error)
            continue
        result.accepted.append(image)
    return result


def validate_prompt(prompt: str | None) -> str:
    if not prompt or not prompt.strip():
        raise ValidationError("Please enter a prompt to generate the image.")
    return prompt


def validate_reference_images(images: Sequence[ReferenceImage]) -> None:
    if len(images) > MAX_FILES:
        raise ValidationError(too_many_files_message())
    for image in images:
        error = file_error(image)
        if error:
            raise ValidationError(error)
