from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import pytest

from pyunifiaccess.ingestion.router import EventRouter
from pyunifiaccess.models.device import Device, LockState
from pyunifiaccess.models.events import DeviceUpdateEvent, LogAddEvent, RemoteUnlockEvent, UnrecognizedEvent
from pyunifiaccess.state.debounce import DebounceTimers
from pyunifiaccess.state.events import ChangeSource, StateChange, StateField
from pyunifiaccess.state.store import DeviceState, DeviceStateStore


@dataclass
class _Handle:
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class _ManualScheduler:
    handles: list[_Handle] = field(default_factory=list)

    def __call__(self, delay: float, callback: Callable[[], None]) -> _Handle:
        handle = _Handle(callback)
        self.handles.append(handle)
        return handle


@dataclass
class _Harness:
    store: DeviceStateStore
    router: EventRouter
    scheduler: _ManualScheduler
    changes: list[StateChange] = field(default_factory=list)
    refreshed: list[DeviceState] = field(default_factory=list)


def _harness() -> _Harness:
    scheduler = _ManualScheduler()
    store = DeviceStateStore(timers=DebounceTimers(scheduler=scheduler), debounce_delay=5.0)
    harness = _Harness(store=store, router=EventRouter(store), scheduler=scheduler)
    store.set_listeners(
        on_change=lambda change, state: harness.changes.append(change),
        on_refresh=harness.refreshed.append,
    )
    store.register(Device.model_validate({"id": "hub1", "name": "Front Door", "type": "UAH"}))
    store.register(Device.model_validate({"id": "rdr1", "name": "Side Reader", "type": "UA-G2-MINI"}))
    return harness


def _device_update(device_id: str, configs: list[dict[str, Any]], **data: Any) -> dict[str, Any]:
    return {
        "event": "access.data.device.update",
        "deviceId": device_id,
        "data": {"unique_id": device_id, "configs": configs, **data},
    }


def _log_add(target_type: str, target_id: str, event: Any = None) -> dict[str, Any]:
    return {
        "event": "access.logs.add",
        "data": {
            "_source": {
                "event": event if event is not None else {"type": "access.door.unlock", "result": "ACCESS"},
                "target": [
                    {"type": "user", "id": "user-7", "display_name": "Alice"},
                    {"type": target_type, "id": target_id, "display_name": "Side Reader"},
                ],
            }
        },
    }


@pytest.mark.parametrize(
    "payload",
    [
        None,
        "access.data.device.update",
        42,
        [],
        {},
        {"deviceId": "hub1"},
        {"event": 7, "deviceId": "hub1"},
        {"event": None},
    ],
)
def test_malformed_envelope_is_noop(payload: Any) -> None:
    h = _harness()
    before = h.store.snapshots()

    assert h.router.route(payload) is None
    assert h.store.snapshots() == before
    assert h.changes == []
    assert h.refreshed == []


def test_device_update_maps_configs_to_hub_state() -> None:
    h = _harness()

    event = h.router.route(
        _device_update(
            "hub1",
            [
                {"key": "input_state_dps", "value": "off"},
                {"key": "input_state_rly-lock_dry", "value": "on"},
                {"key": "input_state_rex", "value": "on"},
                {"key": "input_state_ren", "value": "off"},
                {"key": "input_state_rel", "value": "on"},
                {"key": "wiring_state_dps", "value": "on"},
            ],
        )
    )

    assert isinstance(event, DeviceUpdateEvent)
    state = h.store.get("hub1")
    assert state is not None
    assert state.door_contact_closed is False
    assert state.lock_state is LockState.UNLOCKED
    assert state.request_to_exit is False
    assert state.request_to_enter is True
    assert state.relay is False
    assert {c.field for c in h.changes} == {
        StateField.DOOR_CONTACT_CLOSED,
        StateField.LOCK_STATE,
        StateField.REQUEST_TO_EXIT,
        StateField.RELAY,
    }
    assert all(c.source is ChangeSource.STREAM for c in h.changes)


def test_door_position_on_means_closed() -> None:
    h = _harness()
    h.router.route(_device_update("hub1", [{"key": "input_state_dps", "value": "off"}]))
    h.router.route(_device_update("hub1", [{"key": "input_state_dps", "value": "on"}]))

    assert h.store.get("hub1").door_contact_closed is True  # type: ignore[union-attr]
    assert [c.value for c in h.changes] == [False, True]


def test_same_update_twice_notifies_once() -> None:
    h = _harness()
    payload = _device_update("hub1", [{"key": "input_state_dps", "value": "off"}])

    h.router.route(payload)
    h.router.route(payload)

    assert len(h.changes) == 1
    assert h.changes[0].value is False
    # Every valid update still re-emits the full snapshot.
    assert len(h.refreshed) == 2


def test_unknown_lock_value_keeps_stored_state() -> None:
    h = _harness()
    h.router.route(_device_update("hub1", [{"key": "input_state_rly-lock_dry", "value": "on"}]))
    h.router.route(_device_update("hub1", [{"key": "input_state_rly-lock_dry", "value": "jammed"}]))

    assert h.store.get("hub1").lock_state is LockState.UNLOCKED  # type: ignore[union-attr]
    assert len(h.changes) == 1


def test_device_update_records_door_link() -> None:
    h = _harness()
    h.router.route(
        _device_update("hub1", [], door={"unique_id": "door-1", "name": "Front"}),
    )

    state = h.store.get("hub1")
    assert state is not None
    assert state.door_id == "door-1"
    assert state.door_name == "Front"


def test_device_update_for_unknown_device_is_ignored() -> None:
    h = _harness()
    before = h.store.snapshots()

    event = h.router.route(_device_update("ghost", [{"key": "input_state_dps", "value": "off"}]))

    assert isinstance(event, DeviceUpdateEvent)
    assert h.store.snapshots() == before
    assert "ghost" not in h.store
    assert h.changes == []


def test_device_update_on_reader_only_touches_contact() -> None:
    h = _harness()
    h.router.route(
        _device_update(
            "rdr1",
            [
                {"key": "input_state_rly-lock_dry", "value": "on"},
                {"key": "input_state_dps", "value": "off"},
            ],
        )
    )

    state = h.store.get("rdr1")
    assert state is not None
    assert state.lock_state is None
    assert state.door_contact_closed is False


def test_log_add_opens_reader_then_auto_closes() -> None:
    h = _harness()

    event = h.router.route(_log_add("UA-G2-MINI", "rdr1"))

    assert isinstance(event, LogAddEvent)
    assert h.store.get("rdr1").door_contact_closed is False  # type: ignore[union-attr]
    assert h.store.timers.pending("rdr1")

    h.scheduler.handles[-1].callback()
    assert h.store.get("rdr1").door_contact_closed is True  # type: ignore[union-attr]
    assert [c.source for c in h.changes] == [ChangeSource.STREAM, ChangeSource.DEBOUNCE]


def test_log_add_repeated_rearms_single_timer() -> None:
    h = _harness()

    h.router.route(_log_add("UA-G2-MINI", "rdr1"))
    h.router.route(_log_add("UA-G2-MINI", "rdr1"))

    assert len(h.store.timers) == 1
    assert h.scheduler.handles[0].cancelled


def test_log_add_for_unknown_reader_is_ignored() -> None:
    h = _harness()
    h.router.route(_log_add("UA-G2-MINI", "rdr-missing"))

    assert h.changes == []
    assert len(h.store.timers) == 0


def test_log_add_without_reader_target_is_ignored() -> None:
    h = _harness()
    h.router.route(_log_add("UAH", "hub1"))

    assert h.changes == []
    assert h.store.get("hub1").door_contact_closed is True  # type: ignore[union-attr]


def test_remote_unlock_does_not_touch_lock_state() -> None:
    h = _harness()
    event = h.router.route({"event": "access.remote_view", "deviceId": "hub1", "data": {}})
    assert event is not None

    event = h.router.route(
        {"event": "access.data.device.remote_unlock", "deviceId": "hub1", "data": {"unique_id": "door-1"}}
    )

    assert isinstance(event, RemoteUnlockEvent)
    assert h.store.get("hub1").lock_state is LockState.LOCKED  # type: ignore[union-attr]
    assert h.changes == []


def test_unrecognised_event_only_refreshes() -> None:
    h = _harness()
    event = h.router.route({"event": "access.something.new", "deviceId": "hub1", "data": [1, 2]})

    assert isinstance(event, UnrecognizedEvent)
    assert h.changes == []
    assert [s.id for s in h.refreshed] == ["hub1"]


def test_malformed_variant_payload_falls_back_to_unrecognized() -> None:
    h = _harness()
    event = h.router.route({"event": "access.data.device.update", "deviceId": "hub1", "data": "garbage"})

    assert isinstance(event, UnrecognizedEvent)
    assert h.changes == []


def test_unusable_config_entries_do_not_drop_the_update() -> None:
    h = _harness()

    event = h.router.route(
        _device_update(
            "hub1",
            [
                {"tag": "open_button", "value": "x"},
                {"key": 12, "value": "on"},
                "input_state_rel",
                {"key": "input_state_rex", "value": {"nested": "on"}},
                {"key": "input_state_dps", "value": "off"},
            ],
            door={"unique_id": "door-1", "name": "Front"},
        )
    )

    assert isinstance(event, DeviceUpdateEvent)
    state = h.store.get("hub1")
    assert state is not None
    assert state.door_contact_closed is False
    assert state.door_id == "door-1"
    # A structured value is unrecognised and falls back to the key's default.
    assert state.request_to_exit is False
    assert state.relay is True


def test_non_list_configs_and_non_object_door_are_tolerated() -> None:
    h = _harness()

    event = h.router.route(
        {
            "event": "access.data.device.update",
            "deviceId": "hub1",
            "data": {"unique_id": "hub1", "configs": "n/a", "door": "door-1"},
        }
    )

    assert isinstance(event, DeviceUpdateEvent)
    assert event.data.configs == []
    assert event.data.door is None
    assert h.changes == []


@pytest.mark.parametrize("device_id", [{"id": "hub1"}, ["hub1"], 1.5, True])
def test_non_string_device_id_keeps_the_envelope(device_id: Any) -> None:
    h = _harness()

    event = h.router.route(
        {
            "event": "access.data.device.update",
            "deviceId": device_id,
            "data": {"unique_id": "hub1", "configs": [{"key": "input_state_dps", "value": "off"}]},
        }
    )

    assert isinstance(event, DeviceUpdateEvent)
    assert event.device_id is None
    assert h.store.get("hub1").door_contact_closed is False  # type: ignore[union-attr]
    assert h.refreshed == []
