"""
rtverify - Continuous Round-Trip Verification

Exercises remote objects forever: writes properties and reads them back,
calls methods and checks their results, one independent loop per object.
"""

__version__ = "0.1.0"

from .values import ValueType, TypedValue, make_value, type_name
from .equality import canonical_decimal, values_equal
from .errors import (
    HarnessError,
    ConfigError,
    ValueEncodingError,
    ResolutionError,
    ConnectError,
    TransportError,
    RemoteCallError,
)
from .interfaces import RemoteObjectHandle, Resolver, ConnectionManager
from .generators import ValueSource, source_factory
from .schedule import PropertyStep, MethodStep, CycleSchedule, default_schedule
from .checks import TestOutcome, check_round_trip, check_method
from .cycle import CycleResult, run_cycle
from .loop import LoopState, LoopStats, ObjectTestLoop
from .runner import HarnessRunner
from .resolver import Endpoint, StaticResolver
from .loopback import LoopbackObject, LoopbackConnectionManager, loopback_network
from .logger import HarnessLogger, get_logger, close_all_loggers

__all__ = [
    "ValueType",
    "TypedValue",
    "make_value",
    "type_name",
    "canonical_decimal",
    "values_equal",
    "HarnessError",
    "ConfigError",
    "ValueEncodingError",
    "ResolutionError",
    "ConnectError",
    "TransportError",
    "RemoteCallError",
    "RemoteObjectHandle",
    "Resolver",
    "ConnectionManager",
    "ValueSource",
    "source_factory",
    "PropertyStep",
    "MethodStep",
    "CycleSchedule",
    "default_schedule",
    "TestOutcome",
    "check_round_trip",
    "check_method",
    "CycleResult",
    "run_cycle",
    "LoopState",
    "LoopStats",
    "ObjectTestLoop",
    "HarnessRunner",
    "Endpoint",
    "StaticResolver",
    "LoopbackObject",
    "LoopbackConnectionManager",
    "loopback_network",
    "HarnessLogger",
    "get_logger",
    "close_all_loggers",
]
