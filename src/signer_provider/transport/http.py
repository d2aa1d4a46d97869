"""
HTTP transport for upstream JSON-RPC endpoints.

Uses httpx.AsyncClient. Responses are returned as full JSON-RPC envelopes,
including ones that carry an ``error`` member; only transport-level failures
(connection errors, non-2xx status, undecodable bodies) raise.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

import httpx
from loguru import logger

from ..errors import ConfigurationError, TransportError

DEFAULT_TIMEOUT = 30.0


class Transport(Protocol):
    async def send(self, payload: dict[str, Any]) -> dict[str, Any]:
        ...


class HttpTransport:
    """
    Post JSON-RPC envelopes to an HTTP(S) endpoint.

    Args:
        path: Endpoint URL
        timeout: Request timeout in seconds. ``0`` disables the timeout.
        client: Pre-built AsyncClient (tests, connection sharing)

    Raises:
        ConfigurationError: If ``path`` is not a non-empty string
    """

    def __init__(
        self,
        path: str,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not isinstance(path, str) or not path:
            raise ConfigurationError(f"HttpTransport requires an endpoint URL, got {path!r}")
        self.path = path
        if timeout is None:
            timeout = DEFAULT_TIMEOUT
        self.timeout = timeout or None
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def send(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Send one JSON-RPC envelope.

        Returns:
            The decoded response envelope

        Raises:
            TransportError: If the request fails or the body is not a JSON object
        """
        client = self._get_client()
        logger.debug(f"POST {self.path} {payload.get('method')}")
        try:
            response = await client.post(self.path, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise TransportError(f"RPC transport error: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"Invalid JSON-RPC response body: {exc}") from exc

        if not isinstance(data, dict):
            raise TransportError(f"Unexpected JSON-RPC response: {data!r}")
        return data

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
