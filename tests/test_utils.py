"""Unit tests for utils.py functions."""

from __future__ import annotations

import pytest

from signer_provider.utils import from_quantity, to_quantity


class TestToQuantity:
    def test_encodes_without_padding(self) -> None:
        assert to_quantity(0) == "0x0"
        assert to_quantity(21000) == "0x5208"

    def test_rejects_negative(self) -> None:
        with pytest.raises(ValueError):
            to_quantity(-1)

    @pytest.mark.parametrize("value", [True, 1.5, "0x1", None])
    def test_rejects_non_int(self, value) -> None:
        with pytest.raises(TypeError):
            to_quantity(value)


class TestFromQuantity:
    @pytest.mark.parametrize(
        "value, expected",
        [("0x5208", 21000), ("0X10", 16), ("0x", 0), ("42", 42), (7, 7), (" 0x1 ", 1)],
    )
    def test_decodes(self, value, expected) -> None:
        assert from_quantity(value) == expected

    @pytest.mark.parametrize("value", [False, None, 1.0, ["0x1"]])
    def test_rejects_unsupported(self, value) -> None:
        with pytest.raises(TypeError):
            from_quantity(value)
