"""Notification stream runtime.

Owns the websocket connection to ``/api/v1/developer/devices/notifications``:
connect, decode frames, watch liveness, and redial forever.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import time
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any, Protocol

import aiohttp

from pyunifiaccess._constants import CONNECT_TIMEOUT, HEARTBEAT_SENTINEL, STREAM_CLOSE_TIMEOUT
from pyunifiaccess._redact import scrub_text
from pyunifiaccess.config import UnifiAccessConfig

_logger = logging.getLogger(__name__)


class StreamState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"
    FAILED = "failed"


class WebSocketLike(Protocol):
    """The subset of ``aiohttp.ClientWebSocketResponse`` the runtime uses."""

    @property
    def closed(self) -> bool: ...

    async def receive(self) -> aiohttp.WSMessage: ...

    async def close(self) -> Any: ...


Connector = Callable[[], Awaitable[WebSocketLike]]


def decode_frame(text: str) -> Any:
    """JSON-decode a text frame. Raises ``ValueError`` on malformed input."""
    return json.loads(text)


def is_heartbeat(payload: Any) -> bool:
    return isinstance(payload, dict) and payload.get("data") == HEARTBEAT_SENTINEL


class StreamSupervisor:
    """Keeps exactly one notification stream connection alive.

    A single runner task performs every (re)connect; transport errors, server
    closes and watchdog-forced recycles all just end the current receive loop.
    """

    def __init__(
        self,
        *,
        config: UnifiAccessConfig,
        on_envelope: Callable[[Any], Any],
        http_session: aiohttp.ClientSession | None = None,
        connect: Connector | None = None,
        clock: Callable[[], float] = time.monotonic,
        close_timeout: float = STREAM_CLOSE_TIMEOUT,
    ) -> None:
        if connect is None and http_session is None:
            raise ValueError("either http_session or connect is required")
        self._config = config
        self._on_envelope = on_envelope
        self._http = http_session
        self._connect = connect or self._ws_connect
        self._clock = clock
        self._close_timeout = close_timeout

        self._state = StreamState.DISCONNECTED
        self._ws: WebSocketLike | None = None
        self._task: asyncio.Task[None] | None = None
        self._watchdog_task: asyncio.Task[None] | None = None
        self._receive_task: asyncio.Task[None] | None = None
        self._closing = False
        self._recycle_pending = False
        self._last_heartbeat_at = clock()
        self._connect_count = 0
        self._reconnect_count = 0
        self._frames_total = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def last_heartbeat_at(self) -> float:
        return self._last_heartbeat_at

    @property
    def reconnect_count(self) -> int:
        """Number of connections opened after the first one."""
        return self._reconnect_count

    @property
    def frames_total(self) -> int:
        return self._frames_total

    @property
    def is_running(self) -> bool:
        return bool(self._task and not self._task.done())

    # ------------------------------------------------------------------
    # Public control
    # ------------------------------------------------------------------

    def start(self) -> asyncio.Task[None]:
        """Start the stream background tasks (idempotent)."""
        if self._task is not None and not self._task.done():
            return self._task
        _logger.debug("Stream start requested")
        self._closing = False
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._runner(), name="unifi-access-stream")
        if self._watchdog_task is None or self._watchdog_task.done():
            self._watchdog_task = loop.create_task(self._watchdog(), name="unifi-access-stream-watchdog")
        return self._task

    async def stop(self) -> None:
        """Cancel background tasks and close the socket."""
        _logger.debug("Stream stop requested")
        self._closing = True
        for task in (self._watchdog_task, self._task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._watchdog_task = None
        self._task = None
        await self._close_socket()
        self._state = StreamState.DISCONNECTED

    # ------------------------------------------------------------------
    # Connection loop
    # ------------------------------------------------------------------

    async def _ws_connect(self) -> WebSocketLike:
        assert self._http is not None  # noqa: S101
        return await self._http.ws_connect(
            self._config.stream_url,
            headers={"Authorization": f"Bearer {self._config.api_token}"},
            ssl=self._config.verify_ssl,
            heartbeat=None,
        )

    async def _runner(self) -> None:
        try:
            while not self._closing:
                try:
                    await self._connect_once()
                    await self._receive_until_closed()
                    if not self._closing:
                        self._state = StreamState.CLOSING
                        _logger.info("Stream connection closed; reconnecting")
                except asyncio.CancelledError:
                    raise
                except Exception as err:
                    self._state = StreamState.FAILED
                    _logger.warning("Stream connection error (%s: %s); reconnecting", type(err).__name__, err)
                    _logger.debug("Stream connection error details", exc_info=True)
                finally:
                    await self._close_socket()
                if self._closing:
                    break
                if self._config.reconnect_delay > 0:
                    await asyncio.sleep(self._config.reconnect_delay)
        finally:
            self._state = StreamState.DISCONNECTED

    async def _connect_once(self) -> None:
        self._state = StreamState.CONNECTING
        _logger.debug("Stream connecting to %s", self._config.stream_url)
        ws = await asyncio.wait_for(self._connect(), timeout=CONNECT_TIMEOUT)
        self._ws = ws
        if self._connect_count:
            self._reconnect_count += 1
        self._connect_count += 1
        self._recycle_pending = False
        self._touch()
        self._state = StreamState.CONNECTED
        _logger.info("Stream %s", "reconnected" if self._reconnect_count else "connected")

    async def _receive_until_closed(self) -> None:
        """Run the receive loop as a task the watchdog can cancel."""
        task = asyncio.get_running_loop().create_task(self._receive_loop())
        self._receive_task = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            raise
        finally:
            self._receive_task = None
        if task.cancelled():
            return
        task.result()

    async def _receive_loop(self) -> None:
        ws = self._ws
        if ws is None:
            return
        while not self._closing:
            msg = await ws.receive()
            if msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
                return
            if msg.type == aiohttp.WSMsgType.ERROR:
                raise ConnectionError(f"websocket error: {msg.data!r}")
            if msg.type == aiohttp.WSMsgType.TEXT:
                self.handle_frame(msg.data)
            elif msg.type == aiohttp.WSMsgType.BINARY:
                self.handle_frame(bytes(msg.data).decode("utf-8", errors="replace"))

    async def _close_socket(self) -> None:
        ws = self._ws
        self._ws = None
        if ws is None or ws.closed:
            return
        # A half-open peer never answers the close handshake.
        try:
            await asyncio.wait_for(ws.close(), timeout=self._close_timeout)
        except TimeoutError:
            _logger.debug("Stream close handshake timed out after %.1fs", self._close_timeout)
        except Exception:
            _logger.debug("Stream close failed", exc_info=True)

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    def _touch(self) -> None:
        self._last_heartbeat_at = self._clock()

    def handle_frame(self, text: str) -> None:
        """Decode one text frame and forward it unless it is a heartbeat."""
        try:
            payload = decode_frame(text)
        except ValueError:
            _logger.warning("Discarding undecodable stream frame: %s", scrub_text(text, max_string=120))
            return

        self._frames_total += 1
        self._touch()
        if is_heartbeat(payload):
            _logger.debug("Stream heartbeat")
            return

        try:
            self._on_envelope(payload)
        except Exception:
            _logger.exception("Stream envelope handler failed")

    # ------------------------------------------------------------------
    # Liveness
    # ------------------------------------------------------------------

    def check_liveness(self) -> bool:
        """Recycle a silent connection. Returns True if a recycle was triggered."""
        if self._closing or self._state is not StreamState.CONNECTED or self._recycle_pending:
            return False
        idle_for = self._clock() - self._last_heartbeat_at
        if idle_for < self._config.heartbeat_timeout:
            return False

        _logger.warning("No stream traffic for %.0fs; reconnecting", idle_for)
        self._recycle_pending = True
        self._state = StreamState.CLOSING
        # The runner closes the socket (bounded) and redials.
        receive = self._receive_task
        if receive is not None and not receive.done():
            receive.cancel()
        return True

    async def _watchdog(self) -> None:
        while not self._closing:
            await asyncio.sleep(self._config.watchdog_interval)
            try:
                self.check_liveness()
            except Exception:
                _logger.exception("Stream liveness check failed")
