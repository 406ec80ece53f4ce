"""
Harness Runner - one independent test loop per remote object.

Each object name is located, connected and started on its own. A name
that cannot be resolved or connected is reported and dropped; every other
object keeps cycling.
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from .errors import ResolutionError
from .generators import ValueSource, source_factory
from .interfaces import ConnectionManager, RemoteObjectHandle, Resolver
from .loop import DEFAULT_DELAY_SECONDS, LoopStats, ObjectTestLoop
from .schedule import CycleSchedule, default_schedule


class HarnessRunner:
    """
    Fan-out of ObjectTestLoops over a list of object names.

    Args:
        resolver: Maps names to locations
        connections: Maps locations to handles
        object_ids: Logical object names
        reporter: Reporting sink shared by all loops
        schedule: Cycle definition (default_schedule() if omitted)
        sources: Factory giving each object its own ValueSource
        delay: Seconds between cycles
        max_cycles: Per-object cycle bound (None = run until stopped)
        locate_timeout: Seconds allowed for each locate call (None = no limit)
        on_cycle: Called with (object_id, stats, result) after every cycle
        sleep: Awaitable delay function shared by all loops
    """

    def __init__(
        self,
        resolver: Resolver,
        connections: ConnectionManager,
        object_ids: Sequence[str],
        reporter,
        schedule: Optional[CycleSchedule] = None,
        sources: Optional[Callable[[str], ValueSource]] = None,
        delay: float = DEFAULT_DELAY_SECONDS,
        max_cycles: Optional[int] = None,
        locate_timeout: Optional[float] = None,
        on_cycle=None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.resolver = resolver
        self.connections = connections
        self.object_ids = list(object_ids)
        self.reporter = reporter
        self.schedule = schedule or default_schedule()
        self.sources = sources or source_factory()
        self.delay = delay
        self.max_cycles = max_cycles
        self.locate_timeout = locate_timeout
        self.on_cycle = on_cycle
        self._sleep = sleep
        self.loops: Dict[str, ObjectTestLoop] = {}
        self.failures: Dict[str, str] = {}

    async def _locate(self, object_id: str):
        if self.locate_timeout is None:
            return await self.resolver.locate(object_id)
        try:
            return await asyncio.wait_for(self.resolver.locate(object_id), self.locate_timeout)
        except asyncio.TimeoutError:
            raise ResolutionError(object_id, f"timed out after {self.locate_timeout:g}s") from None

    async def _setup(self, object_id: str) -> Optional[ObjectTestLoop]:
        try:
            location = await self._locate(object_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.reporter.setup_failed(object_id, "resolution", e)
            self.failures[object_id] = f"resolution: {e}"
            return None

        try:
            handle: RemoteObjectHandle = await self.connections.connect(location)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.reporter.setup_failed(object_id, "connection", e)
            self.failures[object_id] = f"connection: {e}"
            return None

        on_cycle = None
        if self.on_cycle is not None:
            def on_cycle(stats, result, _object_id=object_id):
                self.on_cycle(_object_id, stats, result)

        loop = ObjectTestLoop(
            handle,
            self.schedule,
            self.sources(object_id),
            self.reporter,
            delay=self.delay,
            max_cycles=self.max_cycles,
            on_cycle=on_cycle,
            sleep=self._sleep,
            object_id=object_id,
        )
        self.loops[object_id] = loop
        loop.start()
        return loop

    async def start(self) -> List[ObjectTestLoop]:
        """Set up every object concurrently; each loop starts as soon as its handle exists."""
        results = await asyncio.gather(*(self._setup(object_id) for object_id in self.object_ids))
        started = [loop for loop in results if loop is not None]
        self.reporter.info(
            "runner_started",
            f"{len(started)}/{len(self.object_ids)} object loops started",
            extra={"started": [loop.object_id for loop in started], "failed": sorted(self.failures)},
        )
        return started

    async def run(self):
        """Start all loops and wait for them; stops everything on cancellation."""
        try:
            await self.start()
            await asyncio.gather(
                *(loop.wait() for loop in self.loops.values()),
                return_exceptions=True,
            )
        finally:
            await self.stop()

    async def stop(self):
        """Stop every loop and release its handle."""
        for loop in self.loops.values():
            await loop.stop()
        for object_id, loop in self.loops.items():
            try:
                await loop.handle.close()
            except Exception as e:
                self.reporter.error(
                    "handle_close_failed",
                    f"failed to close handle: {e}",
                    error_type=type(e).__name__,
                    object_id=object_id,
                )

    def stats(self) -> Dict[str, LoopStats]:
        return {object_id: loop.stats for object_id, loop in self.loops.items()}

    def summary(self) -> Dict[str, int]:
        """Totals across all objects."""
        stats = list(self.stats().values())
        return {
            "objects_requested": len(self.object_ids),
            "objects_started": len(self.loops),
            "setup_failures": len(self.failures),
            "cycles_completed": sum(s.cycles_completed for s in stats),
            "cycles_aborted": sum(s.cycles_aborted for s in stats),
            "checks_passed": sum(s.checks_passed for s in stats),
            "checks_failed": sum(s.checks_failed for s in stats),
            "checks_skipped": sum(s.checks_skipped for s in stats),
        }
