"""Authoritative in-memory device state.

This is the only component allowed to mutate device state. Records are frozen
snapshots; every mutation swaps in a new snapshot and, when something actually
changed, notifies the change listener exactly once.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict

from pyunifiaccess._constants import DEFAULT_DEBOUNCE_DELAY
from pyunifiaccess.identity import derive_uuid
from pyunifiaccess.models.device import Device, DeviceKind, LockState
from pyunifiaccess.state.debounce import DebounceTimers
from pyunifiaccess.state.events import ChangeSource, StateChange, StateField

_logger = logging.getLogger(__name__)

_HUB_FIELDS: frozenset[StateField] = frozenset(StateField)
_READER_FIELDS: frozenset[StateField] = frozenset({StateField.DOOR_CONTACT_CLOSED})

_DEFAULTS: dict[StateField, Any] = {
    StateField.LOCK_STATE: LockState.LOCKED,
    StateField.DOOR_CONTACT_CLOSED: True,
    StateField.REQUEST_TO_EXIT: True,
    StateField.REQUEST_TO_ENTER: True,
    StateField.RELAY: True,
}


def applicable_fields(kind: DeviceKind) -> frozenset[StateField]:
    """State fields that are meaningful for a device kind."""
    if kind.is_hub:
        return _HUB_FIELDS
    if kind.is_reader:
        return _READER_FIELDS
    return frozenset()


class DeviceState(BaseModel):
    """Immutable snapshot of one device.

    Fields that do not apply to the device's kind stay ``None``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    uuid: str
    name: str = ""
    vendor_type: str = ""
    kind: DeviceKind = DeviceKind.UNKNOWN
    lock_state: LockState | None = None
    door_contact_closed: bool | None = None
    request_to_exit: bool | None = None
    request_to_enter: bool | None = None
    relay: bool | None = None
    door_id: str | None = None
    door_name: str | None = None

    @property
    def fields(self) -> frozenset[StateField]:
        return applicable_fields(self.kind)

    def get(self, field: StateField) -> Any:
        return getattr(self, field.value)


ChangeListener = Callable[[StateChange, DeviceState], None]
RefreshListener = Callable[[DeviceState], None]


class DeviceStateStore:
    """Map of device id to :class:`DeviceState`.

    Lookups by id and by derived UUID are both dictionary hits. Callers must
    use it from a single event loop; that is what serialises stream frames,
    debounce callbacks and HTTP results against each other.
    """

    def __init__(
        self,
        *,
        timers: DebounceTimers | None = None,
        debounce_delay: float = DEFAULT_DEBOUNCE_DELAY,
        on_change: ChangeListener | None = None,
        on_refresh: RefreshListener | None = None,
    ) -> None:
        self._timers = timers if timers is not None else DebounceTimers()
        self._debounce_delay = debounce_delay
        self._on_change = on_change
        self._on_refresh = on_refresh
        self._devices: dict[str, DeviceState] = {}
        self._uuid_index: dict[str, str] = {}

    @property
    def timers(self) -> DebounceTimers:
        return self._timers

    def set_listeners(
        self,
        *,
        on_change: ChangeListener | None = None,
        on_refresh: RefreshListener | None = None,
    ) -> None:
        self._on_change = on_change
        self._on_refresh = on_refresh

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, device: Device) -> DeviceState:
        """Create the record for *device*, or refresh its metadata if known.

        Existing state fields are kept: a re-discovery must not reset a door
        that the stream already reported as unlocked.
        """
        existing = self._devices.get(device.id)
        kind = device.kind
        if existing is not None:
            if existing.name == device.name and existing.vendor_type == device.type:
                return existing
            updated = existing.model_copy(update={"name": device.name, "vendor_type": device.type})
            self._devices[device.id] = updated
            return updated

        if kind is DeviceKind.UNKNOWN:
            _logger.warning("Unknown device type %r for %s (%s)", device.type, device.name, device.id)

        defaults = {field.value: _DEFAULTS[field] for field in applicable_fields(kind)}
        state = DeviceState(
            id=device.id,
            uuid=derive_uuid(device.id),
            name=device.name,
            vendor_type=device.type,
            kind=kind,
            **defaults,
        )
        self._devices[device.id] = state
        self._uuid_index[state.uuid] = device.id
        _logger.debug("Registered %s %s (%s)", kind.value, device.name, device.id)
        return state

    def remove(self, device_id: str) -> bool:
        """Forget a device (host-initiated removal)."""
        state = self._devices.pop(device_id, None)
        if state is None:
            return False
        self._uuid_index.pop(state.uuid, None)
        self._timers.cancel(device_id)
        return True

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, device_id: str | None) -> DeviceState | None:
        if not device_id:
            return None
        return self._devices.get(device_id)

    def get_by_uuid(self, uuid: str | None) -> DeviceState | None:
        if not uuid:
            return None
        device_id = self._uuid_index.get(uuid.lower())
        return self._devices.get(device_id) if device_id is not None else None

    def snapshots(self) -> list[DeviceState]:
        return list(self._devices.values())

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._devices

    def __len__(self) -> int:
        return len(self._devices)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def apply_field(
        self,
        device_id: str,
        field: StateField,
        value: Any,
        *,
        source: ChangeSource = ChangeSource.STREAM,
    ) -> bool:
        """Set *field* to *value* if it differs. Returns True on change."""
        state = self._devices.get(device_id)
        if state is None:
            _logger.warning("State update for unknown device %s ignored", device_id)
            return False
        if field not in state.fields:
            _logger.debug("%s does not apply to %s device %s", field.value, state.kind.value, device_id)
            return False

        previous = state.get(field)
        if previous == value:
            return False

        updated = state.model_copy(update={field.value: value})
        self._devices[device_id] = updated
        _logger.info("%s changed for %s: %s -> %s (%s)", field.value, state.name, previous, value, source.value)
        self._notify_change(
            StateChange(device_id=device_id, field=field, previous=previous, value=value, source=source),
            updated,
        )
        return True

    def apply_contact_event(self, device_id: str, opened: bool) -> bool:
        """Apply a contact pulse, debouncing "open" back to closed.

        An open pulse flips the contact open (if not already) and (re)arms the
        auto-close timer. An explicit close flips it closed and pre-empts any
        pending auto-close.
        """
        state = self._devices.get(device_id)
        if state is None:
            _logger.warning("Contact event for unknown device %s ignored", device_id)
            return False
        if StateField.DOOR_CONTACT_CLOSED not in state.fields:
            _logger.debug("Contact event for %s device %s ignored", state.kind.value, device_id)
            return False

        if opened:
            changed = self.apply_field(device_id, StateField.DOOR_CONTACT_CLOSED, False)
            self._timers.arm(device_id, self._debounce_delay, lambda: self._auto_close(device_id))
            return changed

        self._timers.cancel(device_id)
        return self.apply_field(device_id, StateField.DOOR_CONTACT_CLOSED, True)

    def _auto_close(self, device_id: str) -> None:
        if device_id not in self._devices:
            return
        self.apply_field(
            device_id,
            StateField.DOOR_CONTACT_CLOSED,
            True,
            source=ChangeSource.DEBOUNCE,
        )

    def set_door(self, device_id: str, door_id: str | None, door_name: str | None) -> bool:
        """Record the door a device controls. Returns True on change."""
        state = self._devices.get(device_id)
        if state is None:
            return False
        if state.door_id == door_id and state.door_name == door_name:
            return False
        self._devices[device_id] = state.model_copy(update={"door_id": door_id, "door_name": door_name})
        _logger.debug("Door link for %s: %s (%s)", device_id, door_name, door_id)
        return True

    def refresh(self, device_id: str) -> DeviceState | None:
        """Re-emit the full snapshot of a device to the refresh listener."""
        state = self._devices.get(device_id)
        if state is None:
            return None
        if self._on_refresh is not None:
            try:
                self._on_refresh(state)
            except Exception:
                _logger.debug("on_refresh callback failed", exc_info=True)
        return state

    def _notify_change(self, change: StateChange, state: DeviceState) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(change, state)
        except Exception:
            _logger.debug("on_change callback failed", exc_info=True)
