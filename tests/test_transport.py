from __future__ import annotations

import json

import httpx
import pytest

from signer_provider.errors import ConfigurationError, TransportError
from signer_provider.transport.http import DEFAULT_TIMEOUT, HttpTransport
from signer_provider.transport.rpc import EthRPC, unwrap_result

from conftest import FakeTransport


def _http(handler) -> HttpTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpTransport("http://node.test/rpc", client=client)


class TestHttpTransport:
    @pytest.mark.asyncio
    async def test_posts_envelope_and_returns_response(self) -> None:
        seen = []

        def _handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"id": 1, "jsonrpc": "2.0", "result": "0x1"})

        transport = _http(_handler)
        payload = {"id": 1, "jsonrpc": "2.0", "method": "eth_chainId", "params": []}

        assert await transport.send(payload) == {"id": 1, "jsonrpc": "2.0", "result": "0x1"}
        assert seen == [payload]
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_error_envelope_is_not_raised(self) -> None:
        body = {"id": 1, "jsonrpc": "2.0", "error": {"code": -32601, "message": "nope"}}
        transport = _http(lambda request: httpx.Response(200, json=body))
        assert await transport.send({"id": 1, "method": "x"}) == body

    @pytest.mark.asyncio
    async def test_http_status_error(self) -> None:
        transport = _http(lambda request: httpx.Response(502, text="bad gateway"))
        with pytest.raises(TransportError):
            await transport.send({"id": 1, "method": "eth_chainId"})

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        transport = _http(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(TransportError, match="Invalid JSON-RPC"):
            await transport.send({"id": 1, "method": "eth_chainId"})

    @pytest.mark.asyncio
    async def test_non_object_body(self) -> None:
        transport = _http(lambda request: httpx.Response(200, json=[1, 2]))
        with pytest.raises(TransportError):
            await transport.send({"id": 1, "method": "eth_chainId"})

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        def _handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        transport = _http(_handler)
        with pytest.raises(TransportError, match="refused"):
            await transport.send({"id": 1, "method": "eth_chainId"})

    def test_timeouts(self) -> None:
        assert HttpTransport("http://node.test").timeout == DEFAULT_TIMEOUT
        assert HttpTransport("http://node.test", timeout=3).timeout == 3
        assert HttpTransport("http://node.test", timeout=0).timeout is None

    @pytest.mark.parametrize("path", ["", None, 8545])
    def test_requires_url(self, path) -> None:
        with pytest.raises(ConfigurationError):
            HttpTransport(path)


class TestEthRPC:
    @pytest.mark.asyncio
    async def test_call_frames_envelopes_with_increasing_ids(self) -> None:
        transport = FakeTransport()
        transport.responses["eth_estimateGas"] = "0x5208"
        rpc = EthRPC(transport)

        assert await rpc.call("eth_estimateGas", [{"to": "0xdef"}]) == "0x5208"
        assert await rpc.call("eth_estimateGas", [{"to": "0xdef"}]) == "0x5208"

        assert [p["id"] for p in transport.requests] == [1, 2]
        assert transport.requests[0] == {
            "id": 1, "jsonrpc": "2.0", "method": "eth_estimateGas", "params": [{"to": "0xdef"}],
        }

    @pytest.mark.asyncio
    async def test_call_raises_on_error_member(self) -> None:
        transport = FakeTransport()
        transport.responses["eth_estimateGas"] = lambda payload: {
            "id": payload["id"], "jsonrpc": "2.0", "error": {"code": 3, "message": "execution reverted"},
        }
        with pytest.raises(TransportError) as info:
            await EthRPC(transport).call("eth_estimateGas", [{}])
        assert info.value.error == {"code": 3, "message": "execution reverted"}
        assert info.value.to_dict() == {"code": 3, "message": "execution reverted"}

    def test_unwrap_result(self) -> None:
        assert unwrap_result({"id": 1, "result": None}, "m") is None
        assert unwrap_result({"id": 1, "result": "0x0"}, "m") == "0x0"
        with pytest.raises(TransportError):
            unwrap_result({"id": 1, "error": "plain string error"}, "m")
        with pytest.raises(TransportError):
            unwrap_result(None, "m")
