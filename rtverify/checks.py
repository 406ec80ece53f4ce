"""
Round-Trip and Method Checks

A property check writes a value, reads it back and compares. Any failure
of the set or get call is reported and the check is skipped (no outcome).
A method check lets call failures propagate to the cycle.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Optional

from .equality import values_equal
from .interfaces import RemoteObjectHandle
from .values import TypedValue, ValueType, make_value


@dataclass(frozen=True)
class TestOutcome:
    """Result of one check. Reported, never persisted."""
    __test__ = False

    object_id: str
    kind: str
    name: str
    type: ValueType
    expected: Any
    observed: Any
    passed: bool
    latency_ms: float = 0.0


def _observed_payload(result: Any) -> Any:
    if isinstance(result, TypedValue):
        return result.value
    return result


def _elapsed_ms(start_ns: int) -> float:
    return (time.monotonic_ns() - start_ns) / 1_000_000


async def check_round_trip(
    handle: RemoteObjectHandle,
    property_name: str,
    value_type: ValueType,
    value: Any,
    reporter,
    object_id: Optional[str] = None
) -> Optional[TestOutcome]:
    """
    Set ``property_name`` to ``value`` and read it back.

    Args:
        object_id: Label for reports (default: ``handle.object_id``)

    Returns:
        TestOutcome, or None when the set or get call failed
    """
    object_id = object_id or handle.object_id
    typed = make_value(value, value_type)
    start = time.monotonic_ns()

    try:
        await handle.set(property_name, typed)
        result = await handle.get(property_name)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        reporter.check_skipped(object_id, property_name, e)
        return None

    observed = _observed_payload(result)
    outcome = TestOutcome(
        object_id=object_id,
        kind="property",
        name=property_name,
        type=value_type,
        expected=typed.value,
        observed=observed,
        passed=values_equal(value_type, typed.value, observed),
        latency_ms=_elapsed_ms(start),
    )
    reporter.outcome(outcome)
    return outcome


async def check_method(
    handle: RemoteObjectHandle,
    method_name: str,
    expected: TypedValue,
    *args: TypedValue,
    reporter,
    object_id: Optional[str] = None
) -> TestOutcome:
    """
    Invoke ``method_name`` and compare its result against ``expected``.

    Transport and remote errors are not caught here.
    """
    start = time.monotonic_ns()
    result = await handle.invoke(method_name, *args)

    observed = _observed_payload(result)
    outcome = TestOutcome(
        object_id=object_id or handle.object_id,
        kind="method",
        name=method_name,
        type=expected.type,
        expected=expected.value,
        observed=observed,
        passed=values_equal(expected.type, expected.value, observed),
        latency_ms=_elapsed_ms(start),
    )
    reporter.outcome(outcome)
    return outcome
