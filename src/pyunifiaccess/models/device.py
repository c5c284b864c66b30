"""Device models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from pyunifiaccess.models._base import UnifiBaseModel


class LockState(StrEnum):
    """Reported lock relay state of a hub."""

    LOCKED = "locked"
    UNLOCKED = "unlocked"


class DeviceKind(StrEnum):
    """Device families the hub reports, keyed by vendor ``type``."""

    DOOR_LOCK_HUB = "door_lock_hub"
    MINI_READER = "mini_reader"
    LITE_READER = "lite_reader"
    INTERCOM = "intercom"
    INTERCOM_VIEWER = "intercom_viewer"
    UNKNOWN = "unknown"

    @classmethod
    def from_type(cls, vendor_type: Any) -> DeviceKind:
        """Map a vendor ``type`` string to a kind (``UNKNOWN`` if unmapped)."""
        if not isinstance(vendor_type, str):
            return cls.UNKNOWN
        return _VENDOR_TYPES.get(vendor_type.strip(), cls.UNKNOWN)

    @property
    def is_hub(self) -> bool:
        """Door controller exposing lock and door-contact state."""
        return self is DeviceKind.DOOR_LOCK_HUB

    @property
    def is_reader(self) -> bool:
        """Badge/intercom reader exposing only contact-style state."""
        return self in _READER_KINDS


_VENDOR_TYPES: dict[str, DeviceKind] = {
    "UAH": DeviceKind.DOOR_LOCK_HUB,
    "UAH-DOOR": DeviceKind.DOOR_LOCK_HUB,
    "UA-G2-MINI": DeviceKind.MINI_READER,
    "UA-LITE": DeviceKind.LITE_READER,
    "UA-Intercom": DeviceKind.INTERCOM,
    "UA-Intercom-viewer": DeviceKind.INTERCOM_VIEWER,
    "UA-Int-Viewer": DeviceKind.INTERCOM_VIEWER,
}

_READER_KINDS: frozenset[DeviceKind] = frozenset(
    {
        DeviceKind.MINI_READER,
        DeviceKind.LITE_READER,
        DeviceKind.INTERCOM,
        DeviceKind.INTERCOM_VIEWER,
    }
)


class Device(UnifiBaseModel):
    """A device entry from ``GET /api/v1/developer/devices``."""

    id: str
    """Stable hub identifier."""

    name: str = ""
    """Display name configured on the hub."""

    type: str = ""
    """Vendor device type (``UAH``, ``UA-G2-MINI``, ...)."""

    unique_id: str | None = Field(default=None, validation_alias=AliasChoices("unique_id", "uniqueId"))
    device_type: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def kind(self) -> DeviceKind:
        return DeviceKind.from_type(self.type)
