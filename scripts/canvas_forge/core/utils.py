"""Utility helpers for Canvas Forge."""

from __future__ import annotations

import base64
import binascii
import json
import re
from typing import Any, Optional, Tuple

from .errors import TransportError

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(;[^,]*)?;base64,", re.IGNORECASE)
_MAX_DETAIL_CHARS = 500


def is_url(value: str) -> bool:
    return bool(_URL_RE.match(value or ""))


def encode_b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def split_data_url(value: str) -> Tuple[Optional[str], str]:
    """Return ``(mime_type, payload)`` for a data URL or a bare base64 string."""
    value = (value or "").strip()
    match = _DATA_URL_RE.match(value)
    if not match:
        return None, value
    return match.group("mime"), value[match.end():]


def decode_b64(value: str) -> bytes:
    _, payload = split_data_url(value)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid base64 payload ({exc})") from exc


def summarize_error(response: Any) -> str:
    detail = ""
    try:
        detail = json.dumps(response.json(), ensure_ascii=True)
    except Exception:
        try:
            detail = response.text or ""
        except Exception:
            detail = ""
    detail = detail.strip().replace("\n", " ")
    if len(detail) > _MAX_DETAIL_CHARS:
        detail = detail[:_MAX_DETAIL_CHARS].rstrip() + "..."
    return detail


def raise_for_status(response: Any, label: str) -> None:
    """Raise TransportError for a non-2xx response, keeping the body as detail."""
    if 200 <= response.status_code < 300:
        return
    detail = summarize_error(response)
    parts = [f"{label} failed ({response.status_code})"]
    if detail:
        parts.append(detail)
    raise TransportError(": ".join(parts), status_code=response.status_code, detail=detail)


def json_body(response: Any, label: str) -> Any:
    """Parse a successful response body, raising TransportError when it is not JSON."""
    try:
        return response.json()
    except ValueError as exc:
        raise TransportError(
            f"{label} returned a body that is not JSON.",
            status_code=getattr(response, "status_code", None),
            detail=summarize_error(response),
        ) from exc
