"""Client configuration for pyunifiaccess."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyunifiaccess._constants import (
    DEFAULT_DEBOUNCE_DELAY,
    DEFAULT_HEARTBEAT_TIMEOUT,
    DEFAULT_RECONNECT_DELAY,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_WATCHDOG_INTERVAL,
    NOTIFICATIONS_ENDPOINT,
)
from pyunifiaccess.exceptions import UnifiAccessConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class UnifiAccessConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Hub base URL, e.g. ``"https://192.168.1.1:12445"``.
    api_token : str
        Developer API bearer token. Never included in ``repr`` or logs.
    verify_ssl : bool
        Validate the hub's TLS certificate. Off by default because hubs ship
        with a self-signed certificate.
    request_timeout : float
        Total timeout in seconds for HTTP request/response calls.
    heartbeat_timeout : float
        Seconds without any stream frame before the connection is considered
        dead and is recycled.
    watchdog_interval : float
        Period in seconds of the stream liveness check.
    debounce_delay : float
        Seconds after a contact "open" pulse before it auto-resolves to closed.
    reconnect_delay : float
        Fixed pause in seconds before redialling the stream. ``0`` redials
        immediately.
    stream_enabled : bool
        Start the notification stream when the client is entered.
    """

    base_url: str
    api_token: str = dataclasses.field(repr=False)
    verify_ssl: bool = False
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    heartbeat_timeout: float = DEFAULT_HEARTBEAT_TIMEOUT
    watchdog_interval: float = DEFAULT_WATCHDOG_INTERVAL
    debounce_delay: float = DEFAULT_DEBOUNCE_DELAY
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY
    stream_enabled: bool = True

    def __post_init__(self) -> None:
        if not self.base_url or not self.base_url.strip():
            raise UnifiAccessConfigError("base_url is required")
        if not self.api_token or not self.api_token.strip():
            raise UnifiAccessConfigError("api_token is required")
        object.__setattr__(self, "base_url", self.base_url.strip().rstrip("/"))

    @property
    def stream_url(self) -> str:
        """Websocket URL of the device notification stream."""
        base = self.base_url
        if base.startswith("https://"):
            base = "wss://" + base[len("https://") :]
        elif base.startswith("http://"):
            base = "ws://" + base[len("http://") :]
        return f"{base}{NOTIFICATIONS_ENDPOINT}"

    def api_url(self, endpoint: str) -> str:
        """Absolute URL for a developer API endpoint path."""
        return f"{self.base_url}{endpoint}"

    @classmethod
    def from_env(cls, **overrides: Any) -> UnifiAccessConfig:
        """Create configuration from environment variables.

        Reads ``UNIFI_ACCESS_BASE_URL``, ``UNIFI_ACCESS_API_TOKEN`` and the
        optional ``UNIFI_ACCESS_*`` tuning variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        UnifiAccessConfig
            Populated configuration.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}
        _ENV_STR_MAP = {
            "UNIFI_ACCESS_BASE_URL": "base_url",
            "UNIFI_ACCESS_API_TOKEN": "api_token",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "UNIFI_ACCESS_REQUEST_TIMEOUT": "request_timeout",
            "UNIFI_ACCESS_HEARTBEAT_TIMEOUT": "heartbeat_timeout",
            "UNIFI_ACCESS_WATCHDOG_INTERVAL": "watchdog_interval",
            "UNIFI_ACCESS_DEBOUNCE_DELAY": "debounce_delay",
            "UNIFI_ACCESS_RECONNECT_DELAY": "reconnect_delay",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = float(val)
                except ValueError as exc:
                    raise UnifiAccessConfigError(f"{env_key} must be a number, got {val!r}") from exc

        if "verify_ssl" not in overrides:
            config_kwargs["verify_ssl"] = _env_bool(env.get("UNIFI_ACCESS_VERIFY_SSL"), False)

        if "stream_enabled" not in overrides:
            config_kwargs["stream_enabled"] = _env_bool(env.get("UNIFI_ACCESS_STREAM_ENABLED"), True)

        config_kwargs.update(overrides)

        if "base_url" not in config_kwargs or "api_token" not in config_kwargs:
            raise UnifiAccessConfigError("UNIFI_ACCESS_BASE_URL and UNIFI_ACCESS_API_TOKEN must be set")

        return cls(**config_kwargs)
