"""Pydantic models for hub payloads."""

from pyunifiaccess.models.device import Device, DeviceKind, LockState
from pyunifiaccess.models.events import (
    ConfigEntry,
    DeviceUpdateEvent,
    DoorbellEvent,
    EventEnvelope,
    LogAddEvent,
    RemoteUnlockEvent,
    RemoteViewChangeEvent,
    RemoteViewEvent,
    StreamEvent,
    UnrecognizedEvent,
    parse_envelope,
)

__all__ = [
    "ConfigEntry",
    "Device",
    "DeviceKind",
    "DeviceUpdateEvent",
    "DoorbellEvent",
    "EventEnvelope",
    "LockState",
    "LogAddEvent",
    "RemoteUnlockEvent",
    "RemoteViewChangeEvent",
    "RemoteViewEvent",
    "StreamEvent",
    "UnrecognizedEvent",
    "parse_envelope",
]
