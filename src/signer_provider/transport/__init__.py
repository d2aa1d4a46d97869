"""
Transport - upstream JSON-RPC connectivity for the signer provider.

Any object with an ``async send(payload) -> dict`` method can act as a
transport. HttpTransport is the httpx-based default; EthRPC frames
envelopes for calls the provider issues on its own behalf.
"""

from .http import HttpTransport, Transport
from .rpc import EthRPC

__all__ = ["EthRPC", "HttpTransport", "Transport"]
