"""Device discovery endpoint."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from pyunifiaccess._api._common import flatten, unwrap_envelope
from pyunifiaccess._constants import DEVICES_ENDPOINT
from pyunifiaccess._transport import Transport
from pyunifiaccess.exceptions import UnifiAccessApiError
from pyunifiaccess.models.device import Device

_logger = logging.getLogger(__name__)


async def fetch_devices(transport: Transport) -> list[Device]:
    """Fetch and parse the hub's device list.

    Raises
    ------
    UnifiAccessTransportError
        Network failure, non-200 status or undecodable body.
    UnifiAccessApiError
        Error envelope, or a missing/empty ``data`` array.
    """
    body = await transport.get_json(DEVICES_ENDPOINT)
    data = unwrap_envelope(DEVICES_ENDPOINT, body)
    if not isinstance(data, list) or not data:
        raise UnifiAccessApiError(
            "Invalid or empty data array received",
            code="empty_data",
            endpoint=DEVICES_ENDPOINT,
        )

    devices: list[Device] = []
    for item in flatten(data):
        if not isinstance(item, dict):
            _logger.warning("Skipping non-object device entry: %r", item)
            continue
        try:
            devices.append(Device.model_validate(item))
        except ValidationError as exc:
            _logger.warning("Skipping invalid device entry (%d validation errors)", exc.error_count())
    return devices
