"""
EthRPC - frame and send JSON-RPC calls over a transport.

The provider uses this for the calls it issues straight to the upstream
node (``eth_estimateGas``), bypassing local capability overrides.
"""

from __future__ import annotations

import itertools
from typing import Any, Optional

from ..errors import TransportError
from .http import Transport


class EthRPC:
    def __init__(self, transport: Transport, start_id: int = 1) -> None:
        self.transport = transport
        self._ids = itertools.count(start_id)

    def build_payload(self, method: str, params: Optional[list] = None) -> dict[str, Any]:
        return {
            "id": next(self._ids),
            "jsonrpc": "2.0",
            "method": method,
            "params": list(params or []),
        }

    async def call(self, method: str, params: Optional[list] = None) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_estimateGas")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            TransportError: If the transport fails or the response carries an error
        """
        response = await self.transport.send(self.build_payload(method, params))
        return unwrap_result(response, method)


def unwrap_result(response: Any, method: str) -> Any:
    """Return ``result`` from a response envelope, raising on ``error``."""
    if not isinstance(response, dict):
        raise TransportError(f"{method}: unexpected response {response!r}")
    if response.get("error") is not None:
        error = response["error"]
        message = error.get("message") if isinstance(error, dict) else error
        raise TransportError(
            f"{method} failed: {message}",
            error=error if isinstance(error, dict) else None,
        )
    return response.get("result")
