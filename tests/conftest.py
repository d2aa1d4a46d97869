"""Shared fixtures: an in-memory JSON-RPC transport and provider factory."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

import pytest

from signer_provider import SignerProvider


class FakeTransport:
    """
    Records every envelope and answers from a per-method table.

    A table entry is either a plain result value or a callable taking the
    payload and returning a full response envelope.
    """

    def __init__(self, path: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.path = path
        self.timeout = timeout
        self.requests: list[dict[str, Any]] = []
        self.responses: dict[str, Any] = {}
        self.closed = False

    async def send(self, payload: dict[str, Any]) -> dict[str, Any]:
        self.requests.append(payload)
        await asyncio.sleep(0)
        handler = self.responses.get(payload.get("method"))
        if callable(handler):
            return handler(payload)
        return {"id": payload.get("id"), "jsonrpc": "2.0", "result": handler}

    async def aclose(self) -> None:
        self.closed = True

    def methods(self) -> list[str]:
        return [p.get("method") for p in self.requests]


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def make_provider(transport: FakeTransport) -> Callable[..., SignerProvider]:
    """Build a SignerProvider wired to the shared FakeTransport."""

    def _factory(path: str, timeout: Optional[float]) -> FakeTransport:
        transport.path = path
        transport.timeout = timeout
        return transport

    def _make(nonce_tag: str = "pending", **capabilities: Any) -> SignerProvider:
        capabilities.setdefault("sign_transaction", lambda tx: "0xsigned")
        return SignerProvider(
            "http://node.test",
            capabilities,
            transport_factory=_factory,
            nonce_tag=nonce_tag,
        )

    return _make
