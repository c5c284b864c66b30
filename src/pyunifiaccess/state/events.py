"""State change notifications.

The store never hands out its records; listeners receive these immutable
change descriptions together with frozen device snapshots.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChangeSource(StrEnum):
    """What committed a state transition."""

    STREAM = "stream"
    DEBOUNCE = "debounce"


class StateField(StrEnum):
    """Mutable per-device state fields.

    Values double as the attribute names on
    :class:`pyunifiaccess.state.store.DeviceState`.
    """

    LOCK_STATE = "lock_state"
    DOOR_CONTACT_CLOSED = "door_contact_closed"
    REQUEST_TO_EXIT = "request_to_exit"
    REQUEST_TO_ENTER = "request_to_enter"
    RELAY = "relay"


class StateChange(BaseModel):
    """A single committed field transition."""

    model_config = ConfigDict(frozen=True)

    device_id: str
    field: StateField
    previous: Any = None
    value: Any = None
    source: ChangeSource
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
