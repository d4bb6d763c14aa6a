"""
Tests for integer normalization.
"""
from decimal import Decimal
from fractions import Fraction

import pytest

from brink_sdk.exceptions import UnsupportedNumericType
from brink_sdk.numeric import MAX_UINT256, canonical_str, register_adapter, to_int, to_uint


class BigNumber:
    """Stand-in for a third-party big integer with ``__index__``"""

    def __init__(self, value):
        self._value = value

    def __index__(self):
        return self._value


@pytest.mark.parametrize("value", [
    1000,
    "1000",
    " 1000 ",
    "0x3e8",
    Decimal("1000"),
    Decimal("1000.000"),
    Fraction(2000, 2),
    BigNumber(1000),
])
def test_to_int_accepts_integer_representations(value):
    assert to_int(value) == 1000


@pytest.mark.parametrize("value", [
    True,
    1.0,
    Decimal("1.5"),
    Decimal("NaN"),
    Decimal("Infinity"),
    Fraction(1, 3),
    "",
    "1e3",
    "ten",
    None,
    [1],
])
def test_to_int_rejects_inexact_values(value):
    with pytest.raises(UnsupportedNumericType):
        to_int(value)


def test_to_uint_bounds():
    assert to_uint(0) == 0
    assert to_uint(MAX_UINT256) == MAX_UINT256
    assert to_uint(255, bits=8) == 255

    with pytest.raises(UnsupportedNumericType):
        to_uint(-1)
    with pytest.raises(UnsupportedNumericType):
        to_uint(MAX_UINT256 + 1)
    with pytest.raises(UnsupportedNumericType):
        to_uint(256, bits=8)


def test_unsupported_numeric_type_is_value_error():
    with pytest.raises(ValueError):
        to_uint("not a number")


def test_canonical_str():
    assert canonical_str("0xff") == "255"
    assert canonical_str(Decimal("12")) == "12"
    assert canonical_str(10 ** 30) == "1" + "0" * 30


def test_register_adapter():
    class Wei:
        def __init__(self, amount):
            self.amount = amount

    register_adapter(Wei, lambda w: w.amount)
    assert to_uint(Wei(42)) == 42
