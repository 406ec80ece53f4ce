"""
Typed Values for Remote Calls

Every value that crosses the RPC boundary is tagged with a ValueType.
Wide integers (INT64/UINT64) keep an exact int payload so they never
pass through a double.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict

from .errors import ValueEncodingError


class ValueType(Enum):
    """Semantic kind of a remote value, keyed by its wire type code."""
    VOID = "0"
    VALUE = "v"
    BOOLEAN = "b"
    INT8 = "1"
    UINT8 = "2"
    INT32 = "4"
    UINT32 = "5"
    INT64 = "6"
    UINT64 = "7"
    FLOAT = "e"
    DOUBLE = "d"
    STRING = "s"
    OBJECT = "o"
    FUNCTION = "f"
    VOIDPTR = "z"

    @property
    def code(self) -> str:
        return self.value

    @classmethod
    def from_code(cls, code: str) -> "ValueType":
        try:
            return cls(code)
        except ValueError:
            raise ValueEncodingError(f"Unknown value type code: {code!r}") from None

    @property
    def is_integer(self) -> bool:
        return self in INTEGER_RANGES

    @property
    def is_wide(self) -> bool:
        return self in (ValueType.INT64, ValueType.UINT64)

    @property
    def is_float(self) -> bool:
        return self in (ValueType.FLOAT, ValueType.DOUBLE)

    @property
    def is_numeric(self) -> bool:
        return self.is_integer or self.is_float


# Inclusive bounds per integer width
INTEGER_RANGES: Dict[ValueType, tuple] = {
    ValueType.INT8: (-(2 ** 7), 2 ** 7 - 1),
    ValueType.UINT8: (0, 2 ** 8 - 1),
    ValueType.INT32: (-(2 ** 31), 2 ** 31 - 1),
    ValueType.UINT32: (0, 2 ** 32 - 1),
    ValueType.INT64: (-(2 ** 63), 2 ** 63 - 1),
    ValueType.UINT64: (0, 2 ** 64 - 1),
}


def type_name(value_type: ValueType) -> str:
    """Display name used in reports, e.g. ``INT32``."""
    return value_type.name


@dataclass(frozen=True)
class TypedValue:
    """A payload tagged with its semantic type."""
    type: ValueType
    value: Any = None

    def __str__(self) -> str:
        return f"{type_name(self.type)}({self.value!r})"


def _coerce_integer(raw: Any, value_type: ValueType) -> int:
    if isinstance(raw, bool):
        raise ValueEncodingError(f"{type_name(value_type)} cannot hold a boolean")

    if isinstance(raw, int):
        result = raw
    elif isinstance(raw, (Decimal, str)):
        try:
            dec = Decimal(raw.strip() if isinstance(raw, str) else raw)
        except InvalidOperation:
            raise ValueEncodingError(
                f"{type_name(value_type)} cannot hold {raw!r}"
            ) from None
        if not dec.is_finite() or dec != dec.to_integral_value():
            raise ValueEncodingError(f"{type_name(value_type)} cannot hold {raw!r}")
        result = int(dec)
    elif isinstance(raw, float) and not value_type.is_wide and raw.is_integer():
        result = int(raw)
    else:
        # Floats are refused for wide types: they may already have lost precision
        raise ValueEncodingError(f"{type_name(value_type)} cannot hold {raw!r}")

    low, high = INTEGER_RANGES[value_type]
    if not low <= result <= high:
        raise ValueEncodingError(
            f"{result} out of range for {type_name(value_type)} [{low}, {high}]"
        )
    return result


def make_value(raw: Any, value_type: ValueType) -> TypedValue:
    """
    Build a TypedValue, normalizing ``raw`` to the payload kind of ``value_type``.

    Args:
        raw: Native value. Wide integers also accept Decimal or decimal strings.
        value_type: Target type

    Returns:
        TypedValue whose payload is consistent with its type

    Raises:
        ValueEncodingError: If ``raw`` cannot be represented as ``value_type``
    """
    if isinstance(raw, TypedValue):
        raw = raw.value

    if value_type.is_integer:
        return TypedValue(value_type, _coerce_integer(raw, value_type))

    if value_type.is_float:
        if isinstance(raw, bool) or not isinstance(raw, (int, float, Decimal)):
            raise ValueEncodingError(f"{type_name(value_type)} cannot hold {raw!r}")
        return TypedValue(value_type, float(raw))

    if value_type is ValueType.STRING:
        if not isinstance(raw, str):
            raise ValueEncodingError(f"STRING cannot hold {raw!r}")
        return TypedValue(value_type, raw)

    if value_type is ValueType.BOOLEAN:
        if not isinstance(raw, bool):
            raise ValueEncodingError(f"BOOLEAN cannot hold {raw!r}")
        return TypedValue(value_type, raw)

    if value_type is ValueType.VOID:
        return TypedValue(value_type, None)

    return TypedValue(value_type, raw)
