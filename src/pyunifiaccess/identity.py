"""Stable identifiers derived from hub device ids.

Accessory hosts address devices by a UUID derived from the hub's device id rather
than by the id itself. The derivation must be bit-for-bit stable across restarts.
"""

from __future__ import annotations

import hashlib

_UUID_TEMPLATE = "xxxxxxxx-xxxx-4xxx-yxxx-xxxxxxxxxxxx"


def derive_uuid(device_id: str) -> str:
    """Derive the accessory UUID for a hub device id.

    The SHA-1 hex digest of the UTF-8 id is poured into
    ``xxxxxxxx-xxxx-4xxx-yxxx-xxxxxxxxxxxx``: every ``x`` takes the next digest
    digit, ``y`` takes the next digit ``d`` and renders ``(d & 0x3) | 0x8``. The
    literal ``4`` does not consume a digit.

    Parameters
    ----------
    device_id : str
        Hub device identifier.

    Returns
    -------
    str
        Lowercase, dash-separated UUID string.
    """
    digest = hashlib.sha1(device_id.encode("utf-8")).hexdigest()
    chars: list[str] = []
    index = -1
    for ch in _UUID_TEMPLATE:
        if ch == "x":
            index += 1
            chars.append(digest[index])
        elif ch == "y":
            index += 1
            chars.append(f"{(int(digest[index], 16) & 0x3) | 0x8:x}")
        else:
            chars.append(ch)
    return "".join(chars)
