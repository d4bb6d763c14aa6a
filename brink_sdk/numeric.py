"""
Integer normalization for values passed to the message encoder.

Callers supply amounts, bitmap indexes and bits as plain ints, numeric
strings, ``Decimal`` values or big-integer objects from other libraries
(numpy, gmpy2, ...). Everything is converted to a plain ``int`` here so that
encoding never depends on the representation the caller happened to use.
"""
import logging
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Any, Callable, List, Tuple, Type, Union

from .exceptions import UnsupportedNumericType

logger = logging.getLogger(__name__)

MAX_UINT256 = 2 ** 256 - 1

IntegerLike = Union[int, str, Decimal, Fraction]


def _from_int(value: int) -> int:
    return value


def _from_str(value: str) -> int:
    text = value.strip()
    if not text:
        raise UnsupportedNumericType("Empty string is not an integer")
    try:
        if text.lower().startswith("0x"):
            return int(text, 16)
        return int(text, 10)
    except ValueError:
        raise UnsupportedNumericType(f"String {value!r} is not a base-10 or 0x-hex integer")


def _from_decimal(value: Decimal) -> int:
    try:
        integral = value == value.to_integral_value()
    except InvalidOperation:
        integral = False
    if not value.is_finite() or not integral:
        raise UnsupportedNumericType(f"Decimal {value} is not an integral value")
    return int(value)


def _from_fraction(value: Fraction) -> int:
    if value.denominator != 1:
        raise UnsupportedNumericType(f"Fraction {value} is not an integral value")
    return value.numerator


# Checked in order; bool is rejected before int because bool subclasses int
_ADAPTERS: List[Tuple[Type, Callable[[Any], int]]] = [
    (int, _from_int),
    (str, _from_str),
    (Decimal, _from_decimal),
    (Fraction, _from_fraction),
]


def register_adapter(value_type: Type, adapter: Callable[[Any], int]) -> None:
    """
    Register a conversion for an additional big-integer representation.

    Args:
        value_type: Type whose instances the adapter accepts
        adapter: Callable returning a plain int for an instance of value_type
    """
    _ADAPTERS.insert(0, (value_type, adapter))


def to_int(value: Any) -> int:
    """
    Convert an integer-like value to a plain int.

    Args:
        value: int, numeric string, integral Decimal/Fraction, or any object
            implementing ``__index__``

    Returns:
        The integer value

    Raises:
        UnsupportedNumericType: If the value has no exact integer form
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise UnsupportedNumericType(
            f"Values of type {type(value).__name__} are not accepted as integers"
        )

    for value_type, adapter in _ADAPTERS:
        if isinstance(value, value_type):
            return int(adapter(value))

    # numpy integers, gmpy2.mpz and similar expose __index__
    index = getattr(type(value), "__index__", None)
    if index is not None:
        return int(index(value))

    raise UnsupportedNumericType(f"Cannot normalize {type(value).__name__} to an integer")


def to_uint(value: Any, bits: int = 256) -> int:
    """
    Convert an integer-like value to an unsigned integer of the given width.

    Raises:
        UnsupportedNumericType: If the value is negative or does not fit
    """
    result = to_int(value)
    if result < 0:
        raise UnsupportedNumericType(f"Unsigned value expected, got {result}")
    if result >= 2 ** bits:
        raise UnsupportedNumericType(f"Value {result} does not fit in uint{bits}")
    return result


def canonical_str(value: Any) -> str:
    """Return the canonical base-10 string form of an unsigned integer value."""
    return str(to_uint(value))
