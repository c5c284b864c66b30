"""High-level async client for the UniFi Access developer API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from pyunifiaccess._api import devices as _devices_api
from pyunifiaccess._api import doors as _doors_api
from pyunifiaccess._stream import Connector, StreamState, StreamSupervisor
from pyunifiaccess._transport import HttpTransport, Transport
from pyunifiaccess.config import UnifiAccessConfig
from pyunifiaccess.exceptions import UnifiAccessDoorNotLinkedError, UnifiAccessError
from pyunifiaccess.ingestion.router import EventRouter
from pyunifiaccess.models.device import Device
from pyunifiaccess.state.debounce import DebounceTimers, Scheduler
from pyunifiaccess.state.store import ChangeListener, DeviceState, DeviceStateStore, RefreshListener

_logger = logging.getLogger(__name__)


class UnifiAccessClient:
    """Async client for a UniFi Access hub.

    Usage::

        async with UnifiAccessClient(config, on_state_change=cb) as client:
            await client.discover_devices()
            ...

    The notification stream starts on entry when ``config.stream_enabled``
    is set; otherwise call :meth:`start_stream` explicitly.
    """

    def __init__(
        self,
        config: UnifiAccessConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        on_state_change: ChangeListener | None = None,
        on_device_refresh: RefreshListener | None = None,
        on_envelope: Callable[[Any], None] | None = None,
        transport: Transport | None = None,
        scheduler: Scheduler | None = None,
        stream_connect: Connector | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._stream_connect = stream_connect
        self._store = DeviceStateStore(
            timers=DebounceTimers(scheduler=scheduler),
            debounce_delay=config.debounce_delay,
            on_change=on_state_change,
            on_refresh=on_device_refresh,
        )
        self._router = EventRouter(self._store)
        self._on_envelope = on_envelope
        self._stream: StreamSupervisor | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> UnifiAccessClient:
        if self._http_session is None and (self._transport is None or self._stream_connect is None):
            self._http_session = aiohttp.ClientSession()
        if self._transport is None:
            assert self._http_session is not None  # noqa: S101
            self._transport = HttpTransport(self._config, self._http_session)
        if self._config.stream_enabled:
            self.start_stream()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop_stream()
        self._store.timers.cancel_all()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise UnifiAccessError("Client not initialized. Use 'async with UnifiAccessClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def store(self) -> DeviceStateStore:
        return self._store

    @property
    def router(self) -> EventRouter:
        return self._router

    def devices(self) -> list[DeviceState]:
        """Current snapshot of every known device."""
        return self._store.snapshots()

    def get_device(self, device_id: str) -> DeviceState | None:
        return self._store.get(device_id)

    def get_device_by_uuid(self, uuid: str) -> DeviceState | None:
        """Look up a device by its derived accessory UUID."""
        return self._store.get_by_uuid(uuid)

    def register_device(self, device: Device | dict[str, Any]) -> DeviceState:
        """Register a device the host already knows (e.g. from its own cache)."""
        model = device if isinstance(device, Device) else Device.model_validate(device)
        return self._store.register(model)

    def remove_device(self, device_id: str) -> bool:
        return self._store.remove(device_id)

    # ------------------------------------------------------------------
    # HTTP endpoints
    # ------------------------------------------------------------------

    async def discover_devices(self) -> list[DeviceState]:
        """Fetch the hub's devices and seed the store.

        Already-known devices keep their live state. Errors propagate; retrying
        is up to the caller.
        """
        devices = await _devices_api.fetch_devices(self._require_transport())
        states: list[DeviceState] = []
        for device in devices:
            known = device.id in self._store
            state = self._store.register(device)
            _logger.info("%s device: %s (%s)", "Updating" if known else "Adding", device.name, device.type)
            states.append(state)
        return states

    async def get_doors(self) -> Any:
        """Fetch the hub's door list (passed through uninterpreted)."""
        return await _doors_api.fetch_doors(self._require_transport())

    async def unlock_door(self, door_id: str) -> None:
        """Remote-unlock a door by id.

        Lock state is not touched here; the hub reports the relay change on the
        stream once it actually happens.
        """
        await _doors_api.unlock_door(self._require_transport(), door_id)

    async def unlock_device(self, device_id: str) -> None:
        """Remote-unlock the door linked to a hub device."""
        state = self._store.get(device_id)
        if state is None or not state.door_id:
            raise UnifiAccessDoorNotLinkedError(device_id)
        await self.unlock_door(state.door_id)

    # ------------------------------------------------------------------
    # Stream
    # ------------------------------------------------------------------

    @property
    def stream(self) -> StreamSupervisor | None:
        return self._stream

    @property
    def stream_state(self) -> StreamState:
        if self._stream is None:
            return StreamState.DISCONNECTED
        return self._stream.state

    def start_stream(self) -> asyncio.Task[None]:
        """Start (or return) the notification stream task."""
        if self._stream is None:
            if self._http_session is None and self._stream_connect is None:
                raise UnifiAccessError("Client not initialized. Use 'async with UnifiAccessClient(...) as client:'")
            self._stream = StreamSupervisor(
                config=self._config,
                on_envelope=self._handle_envelope,
                http_session=self._http_session,
                connect=self._stream_connect,
            )
        return self._stream.start()

    def _handle_envelope(self, payload: Any) -> None:
        if self._on_envelope is not None:
            try:
                self._on_envelope(payload)
            except Exception:
                _logger.debug("on_envelope callback failed", exc_info=True)
        self._router.route(payload)

    async def stop_stream(self) -> None:
        stream = self._stream
        if stream is None:
            return
        await stream.stop()
