"""Stream event routing.

Translates decoded notification envelopes into state-store mutations.
"""

from __future__ import annotations

import logging
from typing import Any

from pyunifiaccess._redact import redact_for_log
from pyunifiaccess.ingestion.config_keys import map_config_entry
from pyunifiaccess.models.device import DeviceKind
from pyunifiaccess.models.events import (
    DeviceUpdateEvent,
    DoorbellEvent,
    LogAddEvent,
    RemoteUnlockEvent,
    RemoteViewChangeEvent,
    RemoteViewEvent,
    StreamEvent,
    parse_envelope,
)
from pyunifiaccess.state.events import ChangeSource
from pyunifiaccess.state.store import DeviceStateStore

_logger = logging.getLogger(__name__)


class EventRouter:
    """Dispatch stream envelopes by event tag."""

    def __init__(self, store: DeviceStateStore) -> None:
        self._store = store

    def route(self, payload: Any) -> StreamEvent | None:
        """Validate and apply one decoded stream payload.

        Invalid envelopes are dropped silently. Failures while handling a valid
        envelope are logged and contained to that envelope.
        """
        event = parse_envelope(payload)
        if event is None:
            return None

        try:
            self._dispatch(event)
        except Exception:
            _logger.exception("Failed to handle %s event", event.event)

        if event.device_id is not None:
            self._store.refresh(event.device_id)
        return event

    def _dispatch(self, event: StreamEvent) -> None:
        if isinstance(event, DeviceUpdateEvent):
            self._handle_device_update(event)
        elif isinstance(event, LogAddEvent):
            self._handle_log_add(event)
        elif isinstance(event, RemoteUnlockEvent):
            # Intent only; the hub confirms the relay change with a device update.
            _logger.debug("Remote unlock requested: %s", redact_for_log(event))
        elif isinstance(event, (DoorbellEvent, RemoteViewEvent, RemoteViewChangeEvent)):
            pass
        else:
            _logger.debug("Unhandled event %s: %s", event.event, redact_for_log(event))

    def _handle_device_update(self, event: DeviceUpdateEvent) -> None:
        data = event.data
        device_id = data.unique_id
        state = self._store.get(device_id)
        if state is None:
            _logger.warning("No device found for unique_id %s; run discovery to register it", device_id)
            return

        if data.door is not None:
            self._store.set_door(device_id, data.door.unique_id, data.door.name)

        for entry in data.configs:
            mapping = map_config_entry(entry.key, entry.value)
            if mapping is None or mapping.value is None:
                continue
            if mapping.field not in state.fields:
                continue
            self._store.apply_field(device_id, mapping.field, mapping.value, source=ChangeSource.STREAM)

    def _handle_log_add(self, event: LogAddEvent) -> None:
        source = event.data.source if event.data is not None else None
        if source is None or not source.target:
            _logger.debug("Log event without target ignored")
            return

        target = next(
            (item for item in source.target if DeviceKind.from_type(item.type).is_reader and item.id),
            None,
        )
        if target is None or target.id is None:
            return

        if self._store.get(target.id) is None:
            _logger.warning("No device found for reader %s; run discovery to register it", target.id)
            return

        opened = bool(source.event)
        if opened and isinstance(source.event, dict):
            _logger.debug("Reader %s activity: %s", target.id, source.event.get("type"))
        self._store.apply_contact_event(target.id, opened)
