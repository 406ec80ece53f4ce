"""
rtverify - Test Configuration and Determinism Utilities

Seeded value sources, a fixed clock and a file-backed reporter so every
test run is reproducible and its events can be inspected.

Environment Variables:
    TEST_SEED: Master seed for all generated values (default: 42)
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Dict, List

import pytest

from rtverify.generators import ValueSource
from rtverify.logger import HarnessLogger
from rtverify.loopback import LoopbackObject

DEFAULT_SEED = 42
MASTER_SEED = int(os.environ.get("TEST_SEED", str(DEFAULT_SEED)))

# 2019-01-01T00:00:00Z, in epoch seconds
FIXED_EPOCH = 1546300800.0


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: float = FIXED_EPOCH):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingSleep:
    """Replacement for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float):
        self.delays.append(seconds)
        await asyncio.sleep(0)


def read_events(logger: HarnessLogger) -> List[Dict[str, Any]]:
    """All JSON Lines events written so far."""
    with open(logger.log_file) as f:
        return [json.loads(line) for line in f if line.strip()]


def events_of(logger: HarnessLogger, event_type: str) -> List[Dict[str, Any]]:
    return [e for e in read_events(logger) if e["event_type"] == event_type]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def source(clock) -> ValueSource:
    return ValueSource(seed=MASTER_SEED, clock=clock)


@pytest.fixture
def reporter(tmp_path: Path):
    logger = HarnessLogger("test_run", output_dir=tmp_path, console_output=False)
    yield logger
    logger.close()


@pytest.fixture
def remote() -> LoopbackObject:
    return LoopbackObject("host_object")


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
