"""
Type-Aware Value Equality

One comparison rule shared by property round trips and method checks.

64-bit integers are compared through their canonical decimal string form:
a double cannot hold every 64-bit integer, so a payload that went through
one must not compare equal by accident.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .values import TypedValue, ValueType

# Digits in UINT64 max; anything wider in exponent form is never expanded
MAX_CANONICAL_DIGITS = 20


def _payload(value: Any) -> Any:
    if isinstance(value, TypedValue):
        return value.value
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def canonical_decimal(value: Any) -> Optional[str]:
    """
    Canonical base-10 form of an integral value, or None if it has none.

    Floats are converted exactly, so ``9007199254740992.0`` renders as
    ``"9007199254740992"`` and never as the integer that was written.
    """
    value = _payload(value)

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return str(int(value)) if value.is_integer() else None
    if isinstance(value, str):
        try:
            value = Decimal(value.strip())
        except InvalidOperation:
            return None
    if isinstance(value, Decimal):
        if not value.is_finite() or value.adjusted() >= MAX_CANONICAL_DIGITS:
            return None
        if value != value.to_integral_value():
            return None
        return str(int(value))
    return None


def values_equal(value_type: ValueType, expected: Any, observed: Any) -> bool:
    """
    Compare an expected payload against an observed one for ``value_type``.

    Never raises: operands that cannot be compared are unequal.
    """
    try:
        expected = _payload(expected)
        observed = _payload(observed)

        if value_type.is_wide:
            left = canonical_decimal(expected)
            return left is not None and left == canonical_decimal(observed)

        if value_type.is_numeric:
            return _is_number(expected) and _is_number(observed) and expected == observed

        if value_type is ValueType.STRING:
            return isinstance(expected, str) and isinstance(observed, str) and expected == observed

        if value_type is ValueType.BOOLEAN:
            return isinstance(expected, bool) and isinstance(observed, bool) and expected == observed

        return bool(expected == observed)
    except Exception:
        return False
