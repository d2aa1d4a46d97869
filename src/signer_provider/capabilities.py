"""
Capability Set - the externally supplied functions the provider calls.

Only ``sign_transaction`` is mandatory. Every other capability is optional;
when one is absent the matching RPC method is forwarded to the transport.
Capabilities may be plain functions or coroutine functions.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, fields
from typing import Any, Callable, Mapping, Optional

from .errors import ConfigurationError


# camelCase names used by JavaScript-style option bags
_ALIASES = {
    "accounts": "accounts",
    "getTransactionCount": "get_transaction_count",
    "gasPrice": "gas_price",
    "signTransaction": "sign_transaction",
    "signTypedData": "sign_typed_data",
    "signTypedDataV3": "sign_typed_data_v3",
    "signTypedDatav3": "sign_typed_data_v3",
    "signMessage": "sign_message",
    "signPersonalMessage": "sign_personal_message",
}


@dataclass(frozen=True)
class CapabilitySet:
    """
    Immutable bundle of capability functions shared by all requests.

    Attributes:
        sign_transaction: ``(tx) -> hex`` raw signed transaction (required)
        accounts: ``() -> [address, ...]``
        get_transaction_count: ``(*params) -> quantity``
        gas_price: static value, or ``() -> quantity``
        sign_typed_data: ``(data) -> signature``
        sign_typed_data_v3: ``(address, data) -> signature``
        sign_message: ``(address, message) -> signature``
        sign_personal_message: ``(address, message) -> signature``
    """
    sign_transaction: Callable[..., Any]
    accounts: Optional[Callable[..., Any]] = None
    get_transaction_count: Optional[Callable[..., Any]] = None
    gas_price: Any = None
    sign_typed_data: Optional[Callable[..., Any]] = None
    sign_typed_data_v3: Optional[Callable[..., Any]] = None
    sign_message: Optional[Callable[..., Any]] = None
    sign_personal_message: Optional[Callable[..., Any]] = None

    def __post_init__(self) -> None:
        if not callable(self.sign_transaction):
            raise ConfigurationError(
                "The signer provider requires a callable 'sign_transaction' "
                f"capability, got {type(self.sign_transaction).__name__}."
            )
        for f in fields(self):
            if f.name in ("sign_transaction", "gas_price"):
                continue
            value = getattr(self, f.name)
            if value is not None and not callable(value):
                raise ConfigurationError(
                    f"Capability '{f.name}' must be callable, got {type(value).__name__}."
                )

    def has(self, name: str) -> bool:
        return getattr(self, name, None) is not None

    @classmethod
    def from_options(cls, options: Any) -> "CapabilitySet":
        """
        Build a capability set from a mapping of options.

        Accepts snake_case field names and their camelCase aliases.
        Keys that belong to the provider itself (``provider``, ``timeout``)
        are ignored here.

        Raises:
            ConfigurationError: If options is not a mapping, contains unknown
                keys, or lacks a callable ``sign_transaction``.
        """
        if isinstance(options, cls):
            return options
        if not isinstance(options, Mapping):
            raise ConfigurationError(
                "The signer provider requires an options mapping with the "
                f"'sign_transaction' capability, got {type(options).__name__}."
            )

        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            if key in ("provider", "timeout"):
                continue
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown capability option: {key!r}")
            if name in kwargs:
                raise ConfigurationError(f"Capability {name!r} given more than once")
            kwargs[name] = value

        if kwargs.get("sign_transaction") is None:
            raise ConfigurationError(
                "The signer provider requires the 'sign_transaction' capability "
                "(e.g. CapabilitySet(sign_transaction=signer.sign))."
            )
        return cls(**kwargs)


async def invoke_capability(func: Callable[..., Any], *args: Any) -> Any:
    """Call a capability and await its result when it returns an awaitable."""
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
