"""
Per-Object Test Loop

Drives TestCycle for one remote object, forever or for ``max_cycles``:

    RUNNING --cycle settles--> WAITING --delay--> RUNNING

A cycle that raises (a failed method call, an unexpected error) is
reported as aborted and the loop still waits and runs the next one. The
loop only stops through stop(), the max_cycles bound, or a reported halt.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from .cycle import CycleResult, run_cycle
from .generators import ValueSource
from .interfaces import RemoteObjectHandle
from .schedule import CycleSchedule

DEFAULT_DELAY_SECONDS = 10.0


class LoopState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    WAITING = "waiting"
    STOPPED = "stopped"


@dataclass
class LoopStats:
    """Running pass/fail counts for one object. Health policy is up to the caller."""
    cycles_completed: int = 0
    cycles_aborted: int = 0
    checks_passed: int = 0
    checks_failed: int = 0
    checks_skipped: int = 0
    consecutive_failed_cycles: int = 0
    last_error: Optional[str] = None

    @property
    def cycles(self) -> int:
        return self.cycles_completed + self.cycles_aborted

    def record_cycle(self, result: CycleResult):
        self.cycles_completed += 1
        self.checks_passed += result.passed
        self.checks_failed += result.failed
        self.checks_skipped += result.skipped
        if result.all_passed:
            self.consecutive_failed_cycles = 0
        else:
            self.consecutive_failed_cycles += 1

    def record_abort(self, error: BaseException):
        self.cycles_aborted += 1
        self.consecutive_failed_cycles += 1
        self.last_error = f"{type(error).__name__}: {error}"


class ObjectTestLoop:
    """
    Repeats the test cycle against one handle with a fixed delay in between.

    Args:
        handle: Remote object handle, owned by this loop
        schedule: Cycle definition
        source: Value source for this object
        reporter: Reporting sink (HarnessLogger)
        delay: Seconds to wait between cycles
        max_cycles: Stop after this many cycles (None = run until stopped)
        on_cycle: Called with (stats, result) after every cycle; result is
            None for an aborted cycle
        sleep: Awaitable delay function
        object_id: Label for every report (default: ``handle.object_id``)
    """

    def __init__(
        self,
        handle: RemoteObjectHandle,
        schedule: CycleSchedule,
        source: ValueSource,
        reporter,
        delay: float = DEFAULT_DELAY_SECONDS,
        max_cycles: Optional[int] = None,
        on_cycle: Optional[Callable[[LoopStats, Optional[CycleResult]], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        object_id: Optional[str] = None
    ):
        self.handle = handle
        self.object_id = object_id or handle.object_id
        self.schedule = schedule
        self.source = source
        self.reporter = reporter
        self.delay = delay
        self.max_cycles = max_cycles
        self.on_cycle = on_cycle
        self._sleep = sleep
        self.state = LoopState.IDLE
        self.stats = LoopStats()
        self._task: Optional[asyncio.Task] = None

    def _finished(self) -> bool:
        return self.max_cycles is not None and self.stats.cycles >= self.max_cycles

    async def _run_one(self) -> Optional[CycleResult]:
        try:
            result = await run_cycle(
                self.handle, self.schedule, self.source, self.reporter, object_id=self.object_id
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.stats.record_abort(e)
            self.reporter.cycle_aborted(self.object_id, e, self.delay)
            return None

        self.stats.record_cycle(result)
        self.reporter.cycle_completed(self.object_id, result, self.delay)
        return result

    async def run(self):
        """Run cycles until stopped or ``max_cycles`` is reached."""
        self.reporter.loop_event(self.object_id, "started", f"test loop started (delay {self.delay:g}s)")
        reason = "completed"
        try:
            while not self._finished():
                self.state = LoopState.RUNNING
                result = await self._run_one()
                if self.on_cycle is not None:
                    self.on_cycle(self.stats, result)
                if self._finished():
                    break
                self.state = LoopState.WAITING
                await self._sleep(self.delay)
        except asyncio.CancelledError:
            reason = "cancelled"
            raise
        except Exception as e:
            reason = "halted"
            self.reporter.error(
                "loop_halted",
                f"test loop halted: {e}",
                error_type=type(e).__name__,
                object_id=self.object_id,
            )
            raise
        finally:
            self.state = LoopState.STOPPED
            self.reporter.loop_event(
                self.object_id,
                "stopped",
                f"test loop {reason} after {self.stats.cycles} cycles",
                extra={"reason": reason, "cycles": self.stats.cycles},
            )

    def start(self) -> asyncio.Task:
        """Start the loop as an owned task. Must be called from a running event loop."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    async def wait(self):
        """Wait for the loop to end on its own."""
        if self._task is not None:
            await self._task

    async def stop(self):
        """Cancel the loop and wait until it has stopped."""
        if self._task is None:
            return
        if self._task.done():
            if not self._task.cancelled():
                # a halt was already reported as loop_halted
                self._task.exception()
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
