"""
Test Cycle Definitions

A cycle is fixed configuration: property round trips in declared order,
then one method call. Generators run when a step starts, never earlier.
"""

from dataclasses import dataclass
from typing import Any, Callable, Sequence, Tuple

from .generators import ValueSource
from .values import TypedValue, ValueType, make_value

Generator = Callable[[ValueSource], Any]


@dataclass(frozen=True)
class PropertyStep:
    """Write a fresh value to ``property_name`` and read it back."""
    property_name: str
    type: ValueType
    generate: Generator


@dataclass(frozen=True)
class MethodStep:
    """
    Invoke ``method_name`` with freshly generated arguments.

    ``expected`` derives the expected result from the generated arguments.
    """
    method_name: str
    arguments: Tuple[Tuple[ValueType, Generator], ...]
    expected: Callable[[Sequence[TypedValue]], TypedValue]

    def build_arguments(self, source: ValueSource) -> Tuple[TypedValue, ...]:
        return tuple(make_value(generate(source), value_type) for value_type, generate in self.arguments)


@dataclass(frozen=True)
class CycleSchedule:
    property_steps: Tuple[PropertyStep, ...]
    method_step: MethodStep

    def __post_init__(self):
        object.__setattr__(self, "property_steps", tuple(self.property_steps))

    @property
    def round_trips(self) -> int:
        """Checks performed per cycle: one per property step plus the method call."""
        return len(self.property_steps) + 1


def _sum_of(args: Sequence[TypedValue]) -> TypedValue:
    return make_value(sum(arg.value for arg in args), ValueType.INT32)


def default_schedule() -> CycleSchedule:
    """The standard sequence run against every object."""
    return CycleSchedule(
        property_steps=(
            PropertyStep("int32", ValueType.INT32, ValueSource.random_int),
            PropertyStep("int32", ValueType.INT32, ValueSource.random_int),
            PropertyStep("int8", ValueType.INT8, ValueSource.random_byte),
            PropertyStep("int64", ValueType.INT64, ValueSource.random_long),
            PropertyStep("string", ValueType.STRING, ValueSource.sample_string),
        ),
        method_step=MethodStep(
            method_name="twoIntNumberSum",
            arguments=(
                (ValueType.INT32, ValueSource.random_int),
                (ValueType.INT32, ValueSource.random_int),
            ),
            expected=_sum_of,
        ),
    )
