"""
Test Cycle Execution

Runs a schedule's property steps strictly one after another, then its
method step. Values are generated right before each step.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .checks import TestOutcome, check_method, check_round_trip
from .generators import ValueSource
from .interfaces import RemoteObjectHandle
from .schedule import CycleSchedule


@dataclass
class CycleResult:
    """Outcomes of one cycle."""
    outcomes: List[TestOutcome] = field(default_factory=list)
    skipped: int = 0

    @property
    def passed(self) -> int:
        return sum(1 for o in self.outcomes if o.passed)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.passed)

    @property
    def all_passed(self) -> bool:
        return self.failed == 0 and self.skipped == 0


async def run_cycle(
    handle: RemoteObjectHandle,
    schedule: CycleSchedule,
    source: ValueSource,
    reporter,
    object_id: Optional[str] = None
) -> CycleResult:
    """
    Execute one full cycle against ``handle``, reporting under ``object_id``.

    A failing method call propagates; property failures are absorbed by
    check_round_trip.
    """
    result = CycleResult()

    for step in schedule.property_steps:
        outcome = await check_round_trip(
            handle, step.property_name, step.type, step.generate(source), reporter,
            object_id=object_id,
        )
        if outcome is None:
            result.skipped += 1
        else:
            result.outcomes.append(outcome)

    method = schedule.method_step
    args = method.build_arguments(source)
    outcome = await check_method(
        handle, method.method_name, method.expected(args), *args,
        reporter=reporter, object_id=object_id,
    )
    result.outcomes.append(outcome)

    return result
