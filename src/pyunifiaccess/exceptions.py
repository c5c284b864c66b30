"""Custom exception hierarchy for pyunifiaccess."""

from __future__ import annotations


class UnifiAccessError(Exception):
    """Base exception for all pyunifiaccess errors."""


class UnifiAccessConfigError(UnifiAccessError):
    """Invalid or missing configuration."""


class UnifiAccessTransportError(UnifiAccessError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class UnifiAccessApiError(UnifiAccessError):
    """The hub answered, but the payload signals a failure or is unusable."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class UnifiAccessDoorNotLinkedError(UnifiAccessError):
    """Unlock requested for a device whose door has not been resolved yet.

    Door linkage is learned from ``access.data.device.update`` stream events,
    so this is expected until the hub has pushed one for the device.
    """

    def __init__(self, device_id: str) -> None:
        self.device_id = device_id
        super().__init__(f"No door linked to device {device_id}")
