#!/usr/bin/env python3
"""
Harness Runner Tests

Scenario 5: one object name cannot be resolved, the other three still run.
Also covers connection failures, loop independence and shutdown.
"""

import asyncio

import pytest
from conftest import events_of

from rtverify.config import DEFAULT_OBJECTS
from rtverify.errors import ResolutionError
from rtverify.generators import source_factory
from rtverify.interfaces import ConnectionManager, RemoteObjectHandle, Resolver
from rtverify.loopback import loopback_network
from rtverify.resolver import StaticResolver
from rtverify.runner import HarnessRunner
from rtverify.values import ValueType, make_value


def _runner(table, connections, reporter, recording_sleep, **kwargs):
    kwargs.setdefault("max_cycles", 2)
    return HarnessRunner(
        StaticResolver(table),
        connections,
        DEFAULT_OBJECTS,
        reporter,
        sources=source_factory(42),
        delay=10,
        sleep=recording_sleep,
        **kwargs
    )


def test_unresolvable_object_does_not_block_others(reporter, recording_sleep):
    table, connections = loopback_network(DEFAULT_OBJECTS)
    del table["obj2"]
    runner = _runner(table, connections, reporter, recording_sleep)

    asyncio.run(runner.run())

    assert sorted(runner.loops) == ["host_object", "obj3", "obj4"]
    assert "obj2" in runner.failures
    assert runner.failures["obj2"].startswith("resolution:")

    [failure] = events_of(reporter, "resolution_failed")
    assert failure["object_id"] == "obj2"
    assert failure["error_type"] == "ResolutionError"

    for stats in runner.stats().values():
        assert stats.cycles_completed == 2
        assert stats.checks_failed == 0

    [started] = events_of(reporter, "runner_started")
    assert started["extra"]["failed"] == ["obj2"]


def test_connection_failure_reported(reporter, recording_sleep):
    table, connections = loopback_network(DEFAULT_OBJECTS)
    del connections.objects[str(table["obj4"])]
    runner = _runner(table, connections, reporter, recording_sleep, max_cycles=1)

    asyncio.run(runner.run())

    assert "obj4" not in runner.loops
    assert runner.failures["obj4"].startswith("connection:")
    [failure] = events_of(reporter, "connection_failed")
    assert failure["error_type"] == "ConnectError"


class GatedResolver(Resolver):
    """Holds back one name until released."""

    def __init__(self, table, gated):
        self.inner = StaticResolver(table)
        self.gated = gated
        self.gate = asyncio.Event()

    async def locate(self, object_id):
        if object_id == self.gated:
            await self.gate.wait()
        return await self.inner.locate(object_id)


def test_loops_start_independently(reporter, recording_sleep):
    table, connections = loopback_network(DEFAULT_OBJECTS)

    async def scenario():
        resolver = GatedResolver(table, "obj2")
        cycles_before_release = {}

        def on_cycle(object_id, stats, result):
            if object_id == "host_object" and not resolver.gate.is_set():
                cycles_before_release[object_id] = stats.cycles
                resolver.gate.set()

        runner = HarnessRunner(
            resolver, connections, DEFAULT_OBJECTS, reporter,
            max_cycles=1, delay=0, on_cycle=on_cycle, sleep=recording_sleep,
        )
        await asyncio.wait_for(runner.run(), timeout=5)
        return runner, cycles_before_release

    runner, cycles_before_release = asyncio.run(scenario())

    assert cycles_before_release == {"host_object": 1}
    assert sorted(runner.loops) == sorted(DEFAULT_OBJECTS)
    assert runner.summary()["cycles_completed"] == 4


class HangingResolver(Resolver):
    async def locate(self, object_id):
        await asyncio.sleep(3600)


def test_locate_timeout(reporter, recording_sleep):
    _, connections = loopback_network(["obj3"])
    runner = HarnessRunner(
        HangingResolver(), connections, ["obj3"], reporter,
        locate_timeout=0.01, sleep=recording_sleep,
    )

    asyncio.run(asyncio.wait_for(runner.run(), timeout=5))

    assert runner.loops == {}
    assert "timed out" in runner.failures["obj3"]
    [failure] = events_of(reporter, "resolution_failed")
    assert failure["error_type"] == "ResolutionError"


def test_stop_cancels_loops_and_closes_handles(reporter):
    table, connections = loopback_network(DEFAULT_OBJECTS)

    async def scenario():
        runner = HarnessRunner(StaticResolver(table), connections, DEFAULT_OBJECTS, reporter, delay=3600)
        await runner.start()
        while runner.summary()["cycles_completed"] < len(DEFAULT_OBJECTS):
            await asyncio.sleep(0)
        await runner.stop()
        return runner

    runner = asyncio.run(scenario())

    assert all(loop.task.done() for loop in runner.loops.values())
    assert all(obj.closed for obj in connections.objects.values())
    reasons = {e["object_id"]: e["extra"]["reason"] for e in events_of(reporter, "loop_stopped")}
    assert reasons == {object_id: "cancelled" for object_id in DEFAULT_OBJECTS}


def test_summary_totals(reporter, recording_sleep):
    table, connections = loopback_network(DEFAULT_OBJECTS)
    del table["obj2"]
    connections.objects[str(table["obj3"])].fail_calls.add("invoke")
    runner = _runner(table, connections, reporter, recording_sleep, max_cycles=2)

    asyncio.run(runner.run())

    assert runner.summary() == {
        "objects_requested": 4,
        "objects_started": 3,
        "setup_failures": 1,
        "cycles_completed": 4,
        "cycles_aborted": 2,
        "checks_passed": 24,
        "checks_failed": 0,
        "checks_skipped": 0,
    }


def test_static_resolver_error_message():
    with pytest.raises(ResolutionError, match="Failed to locate obj2"):
        asyncio.run(StaticResolver({}).locate("obj2"))


class DictHandle(RemoteObjectHandle):
    """Bare handle that carries no label of its own."""

    def __init__(self):
        self.properties = {}

    async def get(self, property_name):
        return self.properties[property_name]

    async def set(self, property_name, value):
        self.properties[property_name] = value

    async def invoke(self, method_name, *args):
        if method_name != "twoIntNumberSum":
            raise NotImplementedError(method_name)
        return make_value(sum(arg.value for arg in args), ValueType.INT32)


class DictConnections(ConnectionManager):
    def __init__(self):
        self.handles = {}

    async def connect(self, location):
        return self.handles.setdefault(str(location), DictHandle())


def test_reports_use_resolved_names_for_unlabelled_handles(reporter, recording_sleep):
    table, _ = loopback_network(["host_object", "obj3"])
    connections = DictConnections()
    runner = HarnessRunner(
        StaticResolver(table), connections, ["host_object", "obj3"], reporter,
        max_cycles=1, sleep=recording_sleep,
    )

    asyncio.run(runner.run())

    assert {h.object_id for h in connections.handles.values()} == {"unknown"}
    passed = events_of(reporter, "check_passed")
    assert len(passed) == 12
    assert {e["object_id"] for e in passed} == {"host_object", "obj3"}
    completed = {e["object_id"] for e in events_of(reporter, "cycle_completed")}
    assert completed == {"host_object", "obj3"}
    assert sorted(runner.loops) == ["host_object", "obj3"]
    assert all(loop.object_id == name for name, loop in runner.loops.items())
