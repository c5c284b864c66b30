"""pyunifiaccess - Async Python client for the UniFi Access developer API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyunifiaccess")
except PackageNotFoundError:
    __version__ = "0+local"
from pyunifiaccess._stream import StreamState, StreamSupervisor
from pyunifiaccess.client import UnifiAccessClient
from pyunifiaccess.config import UnifiAccessConfig
from pyunifiaccess.exceptions import (
    UnifiAccessApiError,
    UnifiAccessConfigError,
    UnifiAccessDoorNotLinkedError,
    UnifiAccessError,
    UnifiAccessTransportError,
)
from pyunifiaccess.identity import derive_uuid
from pyunifiaccess.ingestion.router import EventRouter
from pyunifiaccess.models import Device, DeviceKind, LockState, StreamEvent
from pyunifiaccess.state.events import ChangeSource, StateChange, StateField
from pyunifiaccess.state.store import DeviceState, DeviceStateStore

__all__ = [
    "__version__",
    "ChangeSource",
    "Device",
    "DeviceKind",
    "DeviceState",
    "DeviceStateStore",
    "EventRouter",
    "LockState",
    "StateChange",
    "StateField",
    "StreamEvent",
    "StreamState",
    "StreamSupervisor",
    "UnifiAccessApiError",
    "UnifiAccessClient",
    "UnifiAccessConfig",
    "UnifiAccessConfigError",
    "UnifiAccessDoorNotLinkedError",
    "UnifiAccessError",
    "UnifiAccessTransportError",
    "derive_uuid",
]
