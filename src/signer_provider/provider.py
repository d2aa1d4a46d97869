"""
SignerProvider - JSON-RPC dispatcher with local signing capabilities.

Requests for accounts, nonces, gas price and signatures are answered by the
configured capabilities; ``eth_sendTransaction`` goes through the
SubmissionPipeline; everything else is forwarded to the upstream transport
untouched.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping, Optional

from loguru import logger

from .capabilities import CapabilitySet, invoke_capability
from .errors import CapabilityError, ConfigurationError, ProviderError
from .pipeline import NONCE_TAGS, Callback, SubmissionPipeline
from .transport.http import HttpTransport, Transport
from .transport.rpc import EthRPC

TransportFactory = Callable[[str, Optional[float]], Transport]

# method -> (capability, number of params passed positionally)
SIGNING_METHODS: dict[str, tuple[str, int]] = {
    "eth_signTypedData": ("sign_typed_data", 1),
    "eth_signTypedData_v3": ("sign_typed_data_v3", 2),
    "eth_sign": ("sign_message", 2),
    "personal_sign": ("sign_personal_message", 2),
}


def build_response(payload: Mapping[str, Any], result: Any) -> dict[str, Any]:
    return {
        "id": payload.get("id"),
        "jsonrpc": payload.get("jsonrpc", "2.0"),
        "result": result,
    }


class SignerProvider:
    """
    Intercept signing-related JSON-RPC methods and forward the rest.

    Args:
        path: Upstream endpoint passed to the transport factory
        options: CapabilitySet, or a mapping accepted by
            CapabilitySet.from_options. A mapping may also carry ``provider``
            (transport factory) and ``timeout``.
        timeout: Transport timeout in seconds
        transport_factory: ``factory(path, timeout) -> transport``;
            defaults to HttpTransport
        nonce_tag: Block tag used for nonce look-ups, ``pending`` (default)
            or ``latest``

    Raises:
        ConfigurationError: If the options are malformed, lack sign_transaction
            or the transport rejects the endpoint
    """

    def __init__(
        self,
        path: str,
        options: Any,
        timeout: Optional[float] = None,
        transport_factory: Optional[TransportFactory] = None,
        nonce_tag: Optional[str] = None,
    ) -> None:
        self.capabilities = CapabilitySet.from_options(options)

        if isinstance(options, Mapping):
            transport_factory = transport_factory or options.get("provider")
            if timeout is None:
                timeout = options.get("timeout")
        transport_factory = transport_factory or HttpTransport
        if not callable(transport_factory):
            raise ConfigurationError(
                f"transport_factory must be callable, got {type(transport_factory).__name__}"
            )
        if nonce_tag is None:
            nonce_tag = "pending"
        if nonce_tag not in NONCE_TAGS:
            raise ConfigurationError(f"nonce_tag must be one of {NONCE_TAGS}, got {nonce_tag!r}")

        self.path = path
        self.timeout = timeout
        self.transport: Transport = transport_factory(path, timeout)
        self.rpc = EthRPC(self.transport)
        self.pipeline = SubmissionPipeline(
            dispatch=self.request,
            rpc=self.rpc,
            transport=self.transport,
            sign_transaction=self.capabilities.sign_transaction,
            nonce_tag=nonce_tag,
        )
        self._tasks: set[asyncio.Task] = set()

    def send(self, payload: dict[str, Any], callback: Callback) -> None:
        """
        Handle a request and report through ``callback(error, response)``.

        Never raises; the callback is invoked exactly once. Must be called
        from within a running event loop.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            callback(ProviderError("SignerProvider.send() requires a running event loop"), None)
            return
        task = loop.create_task(self._send(payload, callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    send_async = send

    async def _send(self, payload: dict[str, Any], callback: Callback) -> None:
        try:
            response = await self.request(payload)
        except Exception as exc:
            logger.debug(f"send() {exc!r}")
            error, response = exc, None
        else:
            error = None
        try:
            callback(error, response)
        except Exception:
            logger.exception("Request callback raised")

    async def request(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Handle a request and return the response envelope.

        Raises:
            ProviderError: CapabilityError, PipelineError or TransportError
        """
        if not isinstance(payload, Mapping):
            raise ProviderError(f"JSON-RPC request must be an object, got {type(payload).__name__}")
        logger.debug(f"payload {payload}")

        method = payload.get("method")
        params = payload.get("params") or []
        caps = self.capabilities

        if method == "eth_accounts" and caps.has("accounts"):
            result = await self._call_capability(method, "accounts")
        elif method == "eth_getTransactionCount" and caps.has("get_transaction_count"):
            logger.debug("eth_getTransactionCount overwrite getTransactionCount")
            result = await self._call_capability(method, "get_transaction_count", *params)
        elif method == "eth_gasPrice" and caps.has("gas_price"):
            if callable(caps.gas_price):
                result = await self._call_capability(method, "gas_price")
            else:
                result = caps.gas_price
            logger.debug(f"eth_gasPrice overwrite {result}")
        elif method == "eth_sendTransaction":
            return await self.pipeline.submit_async(dict(payload))
        elif method in SIGNING_METHODS and caps.has(SIGNING_METHODS[method][0]):
            name, arity = SIGNING_METHODS[method]
            if len(params) < arity:
                raise CapabilityError(
                    f"{method} expects {arity} params, got {len(params)}", method=method
                )
            result = await self._call_capability(method, name, *params[:arity])
        else:
            return await self.transport.send(payload)

        return build_response(payload, result)

    async def _call_capability(self, method: str, name: str, *args: Any) -> Any:
        func = getattr(self.capabilities, name)
        try:
            return await invoke_capability(func, *args)
        except ProviderError:
            raise
        except Exception as exc:
            raise CapabilityError(f"{name} failed for {method}: {exc}", method=method) from exc

    async def aclose(self) -> None:
        """Close the transport if it holds resources."""
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()
