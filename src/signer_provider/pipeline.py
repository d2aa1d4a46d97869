"""
Submission Pipeline - serialized eth_sendTransaction handling.

Each job resolves its nonce, gas price and gas limit, has the transaction
signed by the ``sign_transaction`` capability and relays the raw payload
with ``eth_sendRawTransaction``. Jobs are drained one at a time in arrival
order, so two transactions from the same sender never read the same
pending nonce.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from .capabilities import invoke_capability
from .errors import PipelineError
from .transport.http import Transport
from .transport.rpc import EthRPC, unwrap_result

Callback = Callable[[Optional[BaseException], Optional[dict]], Any]
Dispatch = Callable[[dict], Awaitable[dict]]

NONCE_TAGS = ("pending", "latest")


@dataclass
class QueuedTransaction:
    payload: dict[str, Any]
    callback: Callback


def merge_transaction(tx: dict[str, Any], nonce: Any, gas_price: Any, gas_limit: Any) -> dict[str, Any]:
    """
    Merge resolved values into the caller's transaction.

    Caller-supplied ``gasPrice`` and ``gasLimit`` (or ``gas``) win over the
    resolved ones unless they are ``None``. The resolved nonce always wins.
    """
    merged: dict[str, Any] = {k: v for k, v in tx.items() if v is not None}
    merged.setdefault("gasPrice", gas_price)
    merged.setdefault("gasLimit", merged.get("gas", gas_limit))
    merged["nonce"] = nonce
    return merged


def _sub_request_id(payload: dict[str, Any]) -> Any:
    request_id = payload.get("id")
    if isinstance(request_id, int) and not isinstance(request_id, bool):
        return request_id + 1
    return request_id


class SubmissionPipeline:
    """
    FIFO queue of transaction jobs with a single active drain.

    Args:
        dispatch: Coroutine used for nonce and gas price look-ups so that
            local capability overrides apply (normally SignerProvider.request)
        rpc: RPC helper used for ``eth_estimateGas`` against the transport
        transport: Upstream transport receiving ``eth_sendRawTransaction``
        sign_transaction: The signing capability
        nonce_tag: Block tag for the nonce look-up, ``pending`` or ``latest``
    """

    def __init__(
        self,
        dispatch: Dispatch,
        rpc: EthRPC,
        transport: Transport,
        sign_transaction: Callable[..., Any],
        nonce_tag: str = "pending",
    ) -> None:
        if nonce_tag not in NONCE_TAGS:
            raise ValueError(f"nonce_tag must be one of {NONCE_TAGS}, got {nonce_tag!r}")
        self._dispatch = dispatch
        self._rpc = rpc
        self._transport = transport
        self._sign_transaction = sign_transaction
        self.nonce_tag = nonce_tag
        self._queue: deque[QueuedTransaction] = deque()
        self._draining = False
        self._drain_task: Optional[asyncio.Task] = None

    @property
    def is_draining(self) -> bool:
        return self._draining

    def __len__(self) -> int:
        return len(self._queue)

    def submit(self, payload: dict[str, Any], callback: Callback) -> None:
        """
        Enqueue a job and start draining if no drain is active.

        Must be called from within a running event loop.
        """
        loop = asyncio.get_running_loop()
        self._queue.append(QueuedTransaction(payload=payload, callback=callback))
        logger.debug(f"txQueue: queued request id={payload.get('id')}, {len(self._queue)} waiting")
        if self._draining:
            logger.debug("txQueue: drain already active")
            return
        self._draining = True
        self._drain_task = loop.create_task(self._drain())

    async def submit_async(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Enqueue a job and wait for the relayed response envelope."""
        future: asyncio.Future = asyncio.get_running_loop().create_future()

        def _settle(error: Optional[BaseException], response: Optional[dict]) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(response)

        self.submit(payload, _settle)
        return await future

    async def _drain(self) -> None:
        try:
            while self._queue:
                job = self._queue.popleft()
                logger.debug(f"txQueue: processing 1 tx, {len(self._queue)} remaining")
                try:
                    response = await self.process(job.payload)
                except Exception as exc:
                    if not isinstance(exc, PipelineError):
                        wrapped = PipelineError(f"unexpected failure: {exc}", step="internal")
                        wrapped.__cause__ = exc
                        exc = wrapped
                    logger.warning(f"txQueue: request id={job.payload.get('id')} failed at {exc.step}: {exc}")
                    _invoke_callback(job.callback, exc, None)
                else:
                    _invoke_callback(job.callback, None, response)
            logger.debug("txQueue is empty")
        finally:
            self._draining = False
            self._drain_task = None

    async def process(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Run one job: nonce, gas, sign, relay.

        Returns:
            The transport's response to ``eth_sendRawTransaction``, verbatim

        Raises:
            PipelineError: On failure at any step, with ``step`` set
        """
        tx = _transaction_from(payload)
        sender = tx.get("from")
        if not sender:
            raise PipelineError("eth_sendTransaction requires a 'from' address", step="nonce")

        nonce = await self._step("nonce", self._lookup(
            payload, "eth_getTransactionCount", [sender, self.nonce_tag]
        ))
        if nonce is None:
            raise PipelineError("eth_getTransactionCount returned no nonce", step="nonce")
        logger.debug(f"nonce {nonce}")

        results = await asyncio.gather(
            self._step("gas_price", self._lookup(payload, "eth_gasPrice", [])),
            self._step("gas_limit", self._rpc.call("eth_estimateGas", [tx])),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        gas_price, gas_limit = results
        logger.debug(f"gasPrice {gas_price} estimateGas {gas_limit}")

        tx_to_sign = merge_transaction(tx, nonce, gas_price, gas_limit)
        if tx_to_sign["gasPrice"] is None:
            raise PipelineError("eth_gasPrice returned no gas price", step="gas_price")
        if tx_to_sign["gasLimit"] is None:
            raise PipelineError("eth_estimateGas returned no gas limit", step="gas_limit")
        logger.debug(f"txToSign {tx_to_sign}")

        signed_raw_tx = await self._step("sign", invoke_capability(self._sign_transaction, tx_to_sign))
        if not signed_raw_tx:
            raise PipelineError("sign_transaction returned an empty payload", step="sign")

        output_payload = {
            "id": payload.get("id"),
            "jsonrpc": payload.get("jsonrpc", "2.0"),
            "method": "eth_sendRawTransaction",
            "params": [signed_raw_tx],
        }
        return await self._step("relay", self._transport.send(output_payload))

    async def _lookup(self, payload: dict[str, Any], method: str, params: list) -> Any:
        response = await self._dispatch({
            "id": _sub_request_id(payload),
            "jsonrpc": payload.get("jsonrpc", "2.0"),
            "method": method,
            "params": params,
        })
        return unwrap_result(response, method)

    @staticmethod
    async def _step(step: str, awaitable: Awaitable[Any]) -> Any:
        try:
            return await awaitable
        except PipelineError:
            raise
        except Exception as exc:
            raise PipelineError(f"{step} step failed: {exc}", step=step) from exc


def _transaction_from(payload: dict[str, Any]) -> dict[str, Any]:
    params = payload.get("params") or []
    if not params or not isinstance(params[0], dict):
        raise PipelineError("eth_sendTransaction expects a transaction object as params[0]", step="nonce")
    return dict(params[0])


def _invoke_callback(callback: Callback, error: Optional[BaseException], response: Optional[dict]) -> None:
    try:
        callback(error, response)
    except Exception:
        logger.exception("Request callback raised")
