"""Scrubbing of stream envelopes and HTTP bodies before DEBUG logging.

Hub payloads can echo the ``Authorization`` header and carry personal data about
who badged in (PIN codes, NFC card ids). Everything the library dumps at debug
level goes through :func:`redact_for_log` first.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

REDACTED = "<redacted>"

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "api_token",
        "authorization",
        "cookie",
        "nfc_id",
        "password",
        "pin_code",
        "token",
    }
)

# "Bearer <token>" anywhere inside free text (log messages, echoed headers).
_BEARER_RE = re.compile(r"(?i)\b(bearer)\s+[A-Za-z0-9\-._~+/=]+")

_MAX_DEPTH = 12


def _is_sensitive(key: str) -> bool:
    normalized = key.strip().lower().replace("-", "_")
    return normalized in _SENSITIVE_KEYS or normalized.endswith("_token")


def scrub_text(text: str, *, max_string: int = 512) -> str:
    """Mask bearer credentials in *text* and clip it to *max_string* chars."""
    text = _BEARER_RE.sub(lambda m: f"{m.group(1)} {REDACTED}", text)
    if len(text) > max_string:
        return f"{text[:max_string]}...<{len(text) - max_string} more chars>"
    return text


def redact_for_log(value: Any, *, max_string: int = 512) -> Any:
    """Return a log-safe copy of *value*.

    Accepts decoded JSON as well as pydantic models. Stream envelopes are
    redacted from their original ``raw`` payload so fields the model ignores
    are covered too.

    Parameters
    ----------
    value : Any
        Payload, model or plain value.
    max_string : int
        Longest string kept verbatim.

    Returns
    -------
    Any
        JSON-compatible structure with sensitive values replaced by
        ``"<redacted>"``.
    """
    return _redact(value, max_string, 0)


def _redact(value: Any, max_string: int, depth: int) -> Any:
    if depth > _MAX_DEPTH:
        return "<nested>"
    if isinstance(value, BaseModel):
        raw = getattr(value, "raw", None)
        source = raw if isinstance(raw, Mapping) and raw else value.model_dump(mode="json", by_alias=True)
        return _redact(source, max_string, depth + 1)
    if isinstance(value, str):
        return scrub_text(value, max_string=max_string)
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    if isinstance(value, Mapping):
        return {
            str(key): REDACTED if _is_sensitive(str(key)) else _redact(item, max_string, depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_redact(item, max_string, depth + 1) for item in value]
    return scrub_text(repr(value), max_string=max_string)
