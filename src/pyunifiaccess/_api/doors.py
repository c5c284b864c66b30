"""Door endpoints.

Endpoints:
  - GET /api/v1/developer/doors                 (door list, passed through)
  - PUT /api/v1/developer/doors/{id}/unlock     (remote unlock)
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from pyunifiaccess._api._common import unwrap_envelope
from pyunifiaccess._constants import DOORS_ENDPOINT
from pyunifiaccess._transport import Transport

_logger = logging.getLogger(__name__)


def unlock_endpoint(door_id: str) -> str:
    return f"{DOORS_ENDPOINT}/{quote(door_id, safe='')}/unlock"


async def fetch_doors(transport: Transport) -> Any:
    """Fetch the door list. The body is returned uninterpreted."""
    return await transport.get_json(DOORS_ENDPOINT)


async def unlock_door(transport: Transport, door_id: str) -> None:
    """Request a remote unlock of *door_id*.

    Success means the hub accepted the request; the resulting relay change
    arrives later as a stream update. Failures raise and leave state untouched.
    """
    if not door_id or not door_id.strip():
        raise ValueError("door_id is required")
    endpoint = unlock_endpoint(door_id.strip())
    body = await transport.put_json(endpoint, {})
    if isinstance(body, dict):
        unwrap_envelope(endpoint, body)
    _logger.info("Unlock accepted for door %s", door_id)
