"""
Value Generation for Test Cycles

Each cycle writes fresh values. The source of randomness and time is
injected so a run can be replayed from its seed.

Usage:
    source = ValueSource(seed=42)
    source.random_int()    # 1..10_000_000
    source.random_long()   # epoch millis + jitter, exact int
"""

import random
import time
from typing import Callable, Optional, Union

SAMPLE_STRING = "SampleString"

MAX_RANDOM_INT = 10_000_000
MAX_RANDOM_BYTE = 120
MAX_LONG_JITTER = 100


class ValueSource:
    """
    Seedable generator for cycle values.

    Args:
        seed: Seed for the underlying random.Random (None = OS entropy)
        clock: Callable returning epoch seconds, used for 64-bit values
    """

    def __init__(self, seed: Union[int, str, None] = None, clock: Optional[Callable[[], float]] = None):
        self._seed = seed
        self._random = random.Random(seed)
        self._clock = clock or time.time

    @property
    def seed(self) -> Union[int, str, None]:
        return self._seed

    def reset(self):
        """Reset to the initial seed."""
        self._random.seed(self._seed)

    def random_int(self) -> int:
        """Positive integer that fits INT32."""
        return self._random.randint(1, MAX_RANDOM_INT)

    def random_byte(self) -> int:
        """Positive integer that fits INT8."""
        return self._random.randint(1, MAX_RANDOM_BYTE)

    def random_long(self) -> int:
        """
        Millisecond timestamp plus jitter.

        Successive cycles are at least one delay apart, so values do not
        repeat across cycles.
        """
        return int(self._clock() * 1000) + self._random.randint(1, MAX_LONG_JITTER)

    def sample_string(self) -> str:
        return SAMPLE_STRING


def source_factory(seed: Optional[int] = None) -> Callable[[str], ValueSource]:
    """
    Build a per-object ValueSource factory.

    With a seed, each object gets its own deterministic stream derived from
    the seed and the object id.
    """
    def make(object_id: str) -> ValueSource:
        if seed is None:
            return ValueSource()
        return ValueSource(seed=f"{seed}:{object_id}")

    return make
