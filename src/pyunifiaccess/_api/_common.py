"""Shared helpers for developer API endpoint modules.

It is internal to pyunifiaccess and may change at any time.
"""

from __future__ import annotations

from typing import Any

from pyunifiaccess._constants import API_SUCCESS_CODE
from pyunifiaccess.exceptions import UnifiAccessApiError


def unwrap_envelope(endpoint: str, body: Any) -> Any:
    """Return ``data`` from a ``{"code", "msg", "data"}`` response envelope.

    Bodies without a ``code`` are accepted as-is; some firmware answers
    without the envelope fields.
    """
    if not isinstance(body, dict):
        raise UnifiAccessApiError(
            f"{endpoint} returned a non-object body",
            code="invalid_body",
            endpoint=endpoint,
        )
    code = body.get("code")
    if code is not None and str(code) != API_SUCCESS_CODE:
        raise UnifiAccessApiError(
            f"{endpoint} failed: code={code} message={body.get('msg', '')}",
            code=str(code),
            endpoint=endpoint,
        )
    return body.get("data")


def flatten(items: Any, depth: int = 2) -> list[Any]:
    """Flatten nested lists up to *depth* levels (hub groups devices per door)."""
    if not isinstance(items, list):
        return [items]
    flat: list[Any] = []
    for item in items:
        if isinstance(item, list) and depth > 0:
            flat.extend(flatten(item, depth - 1))
        else:
            flat.append(item)
    return flat
