"""Notification stream envelope models.

Every stream message is an envelope ``{"event": str, "deviceId"?: str, "data"?: any}``.
:func:`parse_envelope` validates the outer shape and then picks the typed variant
for the ``event`` tag; tags without a variant (or whose payload does not match
the variant's schema) become :class:`UnrecognizedEvent`, keeping the raw payload.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError, field_validator

from pyunifiaccess._constants import (
    EVENT_DEVICE_UPDATE,
    EVENT_DOOR_BELL,
    EVENT_LOGS_ADD,
    EVENT_REMOTE_UNLOCK,
    EVENT_REMOTE_VIEW,
    EVENT_REMOTE_VIEW_CHANGE,
)

_logger = logging.getLogger(__name__)


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class EventEnvelope(_Payload):
    """Outer stream envelope shared by every variant."""

    EVENT_TAG: ClassVar[str | None] = None

    event: StrictStr
    device_id: str | None = Field(default=None, alias="deviceId")
    data: Any = None
    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @field_validator("device_id", mode="before")
    @classmethod
    def _blank_device_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if not isinstance(value, str) or not value.strip():
            return None
        return value


# ----------------------------------------------------------------------
# access.data.device.update
# ----------------------------------------------------------------------


class ConfigEntry(_Payload):
    """A ``{key, value}`` configuration entry of a device update."""

    key: str
    value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "on" if value else "off"
        if isinstance(value, (int, float)):
            return str(value)
        if not isinstance(value, str):
            return ""
        return value


class DoorRef(_Payload):
    unique_id: str | None = None
    name: str | None = None


class DeviceUpdateData(_Payload):
    unique_id: str
    door: DoorRef | None = None
    configs: list[ConfigEntry] = Field(default_factory=list)

    @field_validator("door", mode="before")
    @classmethod
    def _door_object(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @field_validator("configs", mode="before")
    @classmethod
    def _keyed_entries(cls, value: Any) -> Any:
        # Entries are looked up by key; anything without one cannot match.
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict) and isinstance(item.get("key"), str)]


class DeviceUpdateEvent(EventEnvelope):
    EVENT_TAG = EVENT_DEVICE_UPDATE

    data: DeviceUpdateData


# ----------------------------------------------------------------------
# access.logs.add
# ----------------------------------------------------------------------


class LogTarget(_Payload):
    id: str | None = None
    type: str | None = None
    display_name: str | None = None


class LogSource(_Payload):
    event: Any = None
    target: list[LogTarget] = Field(default_factory=list)

    @field_validator("target", mode="before")
    @classmethod
    def _drop_non_objects(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [item for item in value if isinstance(item, dict)]
        return value


class LogAddData(_Payload):
    source: LogSource | None = Field(default=None, alias="_source")


class LogAddEvent(EventEnvelope):
    EVENT_TAG = EVENT_LOGS_ADD

    data: LogAddData | None = None


# ----------------------------------------------------------------------
# Informational / reserved variants
# ----------------------------------------------------------------------


class RemoteUnlockEvent(EventEnvelope):
    EVENT_TAG = EVENT_REMOTE_UNLOCK


class DoorbellEvent(EventEnvelope):
    EVENT_TAG = EVENT_DOOR_BELL


class RemoteViewEvent(EventEnvelope):
    EVENT_TAG = EVENT_REMOTE_VIEW


class RemoteViewChangeEvent(EventEnvelope):
    EVENT_TAG = EVENT_REMOTE_VIEW_CHANGE


class UnrecognizedEvent(EventEnvelope):
    """Envelope with a tag this library does not interpret."""


_VARIANTS: dict[str, type[EventEnvelope]] = {
    cls.EVENT_TAG: cls
    for cls in (
        DeviceUpdateEvent,
        LogAddEvent,
        RemoteUnlockEvent,
        DoorbellEvent,
        RemoteViewEvent,
        RemoteViewChangeEvent,
    )
    if cls.EVENT_TAG is not None
}

StreamEvent = (
    DeviceUpdateEvent
    | LogAddEvent
    | RemoteUnlockEvent
    | DoorbellEvent
    | RemoteViewEvent
    | RemoteViewChangeEvent
    | UnrecognizedEvent
)


def is_valid_envelope(payload: Any) -> bool:
    """Return True when *payload* is an object whose ``event`` is a string."""
    return isinstance(payload, dict) and isinstance(payload.get("event"), str)


def parse_envelope(payload: Any) -> StreamEvent | None:
    """Decode a stream payload into a typed event.

    Returns ``None`` for payloads that are not valid envelopes; those must be
    dropped without touching any state.
    """
    if not is_valid_envelope(payload):
        return None

    variant = _VARIANTS.get(payload["event"])
    if variant is not None:
        try:
            return variant.model_validate({**payload, "raw": payload})  # type: ignore[return-value]
        except ValidationError as exc:
            _logger.warning(
                "Malformed %s payload (%d validation errors); treating as unrecognized",
                payload["event"],
                exc.error_count(),
            )

    try:
        return UnrecognizedEvent.model_validate({**payload, "raw": payload})
    except ValidationError:
        return None
