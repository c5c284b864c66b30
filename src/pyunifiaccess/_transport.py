"""HTTP transport for the UniFi Access developer API."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp

from pyunifiaccess._constants import USER_AGENT
from pyunifiaccess._redact import scrub_text
from pyunifiaccess.config import UnifiAccessConfig
from pyunifiaccess.exceptions import UnifiAccessTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping the
    production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, endpoint: str) -> Any: ...

    async def put_json(self, endpoint: str, body: Any = None) -> Any: ...


class HttpTransport:
    """Bearer-authenticated JSON transport over an aiohttp session."""

    def __init__(self, config: UnifiAccessConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.api_token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        body: Any = None,
        require_body: bool,
    ) -> Any:
        url = self._config.api_url(endpoint)
        _logger.debug("%s %s", method, url)

        try:
            async with self._http.request(
                method,
                url,
                headers=self._headers(),
                json=body,
                ssl=self._config.verify_ssl,
                timeout=aiohttp.ClientTimeout(total=self._config.request_timeout),
            ) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise UnifiAccessTransportError(
                        f"HTTP {resp.status} from {endpoint}: {scrub_text(text, max_string=200)}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except UnifiAccessTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise UnifiAccessTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        if not text.strip():
            if require_body:
                raise UnifiAccessTransportError(
                    f"Empty response body from {endpoint}",
                    status_code=200,
                    endpoint=endpoint,
                )
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            if not require_body:
                return None
            raise UnifiAccessTransportError(
                f"Invalid JSON from {endpoint}: {scrub_text(text, max_string=200)}",
                status_code=200,
                endpoint=endpoint,
            ) from exc

    async def get_json(self, endpoint: str) -> Any:
        """GET *endpoint* and return the decoded JSON body."""
        return await self._request("GET", endpoint, require_body=True)

    async def put_json(self, endpoint: str, body: Any = None) -> Any:
        """PUT *body* to *endpoint*; returns the decoded body, if any."""
        return await self._request("PUT", endpoint, body=body if body is not None else {}, require_body=False)
