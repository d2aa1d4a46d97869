from __future__ import annotations

from typing import Any


def to_quantity(value: int) -> str:
    """Encode an integer as a JSON-RPC quantity (``0x``-prefixed, no padding)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Quantity must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"Quantity must not be negative: {value}")
    return hex(value)


def from_quantity(value: Any) -> int:
    """Decode a JSON-RPC quantity; plain ints and decimal strings pass through."""
    if isinstance(value, bool):
        raise TypeError("Quantity must not be a bool")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.lower().startswith("0x"):
            return int(text, 16) if len(text) > 2 else 0
        return int(text)
    raise TypeError(f"Unsupported quantity: {value!r}")
