from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any, NamedTuple

import aiohttp
import pytest

from pyunifiaccess._stream import StreamState
from pyunifiaccess.client import UnifiAccessClient
from pyunifiaccess.config import UnifiAccessConfig
from pyunifiaccess.exceptions import UnifiAccessError
from pyunifiaccess.models.device import LockState
from pyunifiaccess.state.events import StateChange, StateField
from pyunifiaccess.state.store import DeviceState


class _Msg(NamedTuple):
    type: aiohttp.WSMsgType
    data: Any
    extra: Any = None


class _FakeWebSocket:
    def __init__(self) -> None:
        self._queue: asyncio.Queue[_Msg] = asyncio.Queue()
        self.closed = False

    def push(self, payload: Any) -> None:
        self._queue.put_nowait(_Msg(aiohttp.WSMsgType.TEXT, json.dumps(payload)))

    async def receive(self) -> _Msg:
        return await self._queue.get()

    async def close(self) -> bool:
        self.closed = True
        self._queue.put_nowait(_Msg(aiohttp.WSMsgType.CLOSED, None))
        return True


class _NullTransport:
    async def get_json(self, endpoint: str) -> Any:
        raise AssertionError("unexpected GET")

    async def put_json(self, endpoint: str, body: Any = None) -> Any:
        raise AssertionError("unexpected PUT")


async def _until(predicate: Callable[[], bool], *, attempts: int = 200) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.mark.asyncio
async def test_stream_updates_flow_into_store() -> None:
    ws = _FakeWebSocket()

    async def _connect() -> _FakeWebSocket:
        return ws

    changes: list[StateChange] = []
    refreshed: list[DeviceState] = []
    config = UnifiAccessConfig(base_url="https://hub.local:12445", api_token="secret-token", watchdog_interval=3600)

    async with UnifiAccessClient(
        config,
        transport=_NullTransport(),
        stream_connect=_connect,
        on_state_change=lambda change, state: changes.append(change),
        on_device_refresh=refreshed.append,
    ) as client:
        client.register_device({"id": "hub1", "name": "Front Door", "type": "UAH"})
        await _until(lambda: client.stream_state is StreamState.CONNECTED)

        ws.push({"data": "Hello"})
        ws.push(
            {
                "event": "access.data.device.update",
                "deviceId": "hub1",
                "data": {"unique_id": "hub1", "configs": [{"key": "input_state_rly-lock_dry", "value": "on"}]},
            }
        )
        await _until(lambda: len(refreshed) == 1)

        assert client.get_device("hub1").lock_state is LockState.UNLOCKED  # type: ignore[union-attr]
        assert [c.field for c in changes] == [StateField.LOCK_STATE]

    assert ws.closed
    assert client.stream_state is StreamState.DISCONNECTED


@pytest.mark.asyncio
async def test_stream_disabled_until_started() -> None:
    config = UnifiAccessConfig(base_url="https://hub.local:12445", api_token="secret-token", stream_enabled=False)
    client = UnifiAccessClient(config, transport=_NullTransport())

    with pytest.raises(UnifiAccessError):
        client.start_stream()

    async with UnifiAccessClient(config, transport=_NullTransport()) as entered:
        assert entered.stream is None
        assert entered.stream_state is StreamState.DISCONNECTED


@pytest.mark.asyncio
async def test_envelope_hook_sees_payloads_before_routing() -> None:
    ws = _FakeWebSocket()

    async def _connect() -> _FakeWebSocket:
        return ws

    seen: list[tuple[Any, LockState | None]] = []
    config = UnifiAccessConfig(base_url="https://hub.local:12445", api_token="secret-token", watchdog_interval=3600)
    client: UnifiAccessClient

    def _hook(payload: Any) -> None:
        state = client.get_device("hub1")
        seen.append((payload, state.lock_state if state else None))
        raise RuntimeError("hook failure")

    client = UnifiAccessClient(config, transport=_NullTransport(), stream_connect=_connect, on_envelope=_hook)
    async with client:
        client.register_device({"id": "hub1", "name": "Front Door", "type": "UAH"})
        await _until(lambda: client.stream_state is StreamState.CONNECTED)

        ws.push({"data": "Hello"})
        ws.push(
            {
                "event": "access.data.device.update",
                "deviceId": "hub1",
                "data": {"unique_id": "hub1", "configs": [{"key": "input_state_rly-lock_dry", "value": "on"}]},
            }
        )
        await _until(lambda: len(seen) == 1 and client.get_device("hub1").lock_state is LockState.UNLOCKED)  # type: ignore[union-attr]

    payload, lock_before = seen[0]
    assert payload["event"] == "access.data.device.update"
    assert lock_before is LockState.LOCKED
