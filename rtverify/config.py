"""
Harness Configuration

Values come from environment variables with defaults, and command-line
flags override them.

Environment Variables:
    RTVERIFY_OBJECTS: Comma-separated object names (default: host_object,obj2,obj3,obj4)
    RTVERIFY_ENDPOINTS: Comma-separated name=endpoint pairs
    RTVERIFY_DELAY: Seconds between cycles (default: 10)
    RTVERIFY_MAX_CYCLES: Cycles per object before stopping (default: unbounded)
    RTVERIFY_LOCATE_TIMEOUT: Seconds allowed per locate call (default: 4)
    RTVERIFY_MONITOR_INTERVAL: Seconds between resource samples (default: off)
    RTVERIFY_ARTIFACTS: Directory for JSON Lines logs
    RTVERIFY_CONNECTOR: Connection manager factory as module:callable
    TEST_SEED: Seed for generated values (default: unseeded)
"""

import argparse
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from .errors import ConfigError, ResolutionError
from .loop import DEFAULT_DELAY_SECONDS
from .resolver import Endpoint, parse_endpoint_table

DEFAULT_OBJECTS = ["host_object", "obj2", "obj3", "obj4"]
DEFAULT_LOCATE_TIMEOUT = 4.0


def _split(text: str) -> List[str]:
    return [item.strip() for item in text.split(",") if item.strip()]


def _number(environ: Mapping[str, str], name: str, kind, default):
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return kind(raw)
    except ValueError:
        raise ConfigError(f"{name} must be {kind.__name__}, got {raw!r}") from None


@dataclass
class HarnessConfig:
    objects: List[str] = field(default_factory=lambda: list(DEFAULT_OBJECTS))
    endpoints: Dict[str, Endpoint] = field(default_factory=dict)
    delay_seconds: float = DEFAULT_DELAY_SECONDS
    max_cycles: Optional[int] = None
    seed: Optional[int] = None
    locate_timeout: Optional[float] = DEFAULT_LOCATE_TIMEOUT
    monitor_interval: Optional[float] = None
    artifacts_dir: Optional[Path] = None
    run_id: str = "rtverify"
    console_level: str = "debug"
    connector: Optional[str] = None
    loopback: bool = False
    lossy_wide: bool = False

    def validate(self) -> "HarnessConfig":
        if not self.objects:
            raise ConfigError("at least one object name is required")
        if self.delay_seconds < 0:
            raise ConfigError(f"delay must be >= 0, got {self.delay_seconds}")
        if self.max_cycles is not None and self.max_cycles < 1:
            raise ConfigError(f"max cycles must be >= 1, got {self.max_cycles}")
        if self.locate_timeout is not None and self.locate_timeout <= 0:
            raise ConfigError(f"locate timeout must be > 0, got {self.locate_timeout}")
        if self.monitor_interval is not None and self.monitor_interval <= 0:
            raise ConfigError(f"monitor interval must be > 0, got {self.monitor_interval}")
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HarnessConfig":
        environ = os.environ if environ is None else environ

        objects = _split(environ.get("RTVERIFY_OBJECTS", "")) or list(DEFAULT_OBJECTS)
        try:
            endpoints = parse_endpoint_table(_split(environ.get("RTVERIFY_ENDPOINTS", "")))
        except ResolutionError as e:
            raise ConfigError(f"RTVERIFY_ENDPOINTS: {e}") from None

        artifacts = environ.get("RTVERIFY_ARTIFACTS")

        return cls(
            objects=objects,
            endpoints=endpoints,
            delay_seconds=_number(environ, "RTVERIFY_DELAY", float, DEFAULT_DELAY_SECONDS),
            max_cycles=_number(environ, "RTVERIFY_MAX_CYCLES", int, None),
            seed=_number(environ, "TEST_SEED", int, None),
            locate_timeout=_number(environ, "RTVERIFY_LOCATE_TIMEOUT", float, DEFAULT_LOCATE_TIMEOUT),
            monitor_interval=_number(environ, "RTVERIFY_MONITOR_INTERVAL", float, None),
            artifacts_dir=Path(artifacts) if artifacts else None,
            connector=environ.get("RTVERIFY_CONNECTOR") or None,
        ).validate()

    @classmethod
    def from_args(
        cls,
        argv: Optional[Sequence[str]] = None,
        environ: Optional[Mapping[str, str]] = None
    ) -> "HarnessConfig":
        """Environment defaults, overridden by command-line flags."""
        config = cls.from_env(environ)
        args = build_parser().parse_args(argv)

        if args.objects:
            config.objects = _split(args.objects)
        if args.endpoint:
            try:
                config.endpoints.update(parse_endpoint_table(args.endpoint))
            except ResolutionError as e:
                raise ConfigError(f"--endpoint: {e}") from None
        if args.delay is not None:
            config.delay_seconds = args.delay
        if args.max_cycles is not None:
            config.max_cycles = args.max_cycles
        if args.seed is not None:
            config.seed = args.seed
        if args.locate_timeout is not None:
            config.locate_timeout = args.locate_timeout
        if args.monitor_interval is not None:
            config.monitor_interval = args.monitor_interval
        if args.artifacts is not None:
            config.artifacts_dir = Path(args.artifacts)
        if args.connector:
            config.connector = args.connector
        if args.run_id:
            config.run_id = args.run_id
        if args.quiet:
            config.console_level = "info"
        config.loopback = args.loopback
        config.lossy_wide = args.lossy_wide

        return config.validate()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rtverify",
        description="Continuously verify property and method round trips on remote objects",
    )
    parser.add_argument("--objects", help="Comma-separated object names")
    parser.add_argument("--endpoint", action="append", metavar="NAME=URI",
                        help="Endpoint for an object, e.g. host_object=tcp://127.0.0.1:10004 (repeatable)")
    parser.add_argument("--delay", type=float, help="Seconds between cycles")
    parser.add_argument("--max-cycles", type=int, help="Stop each object after N cycles")
    parser.add_argument("--seed", type=int, help="Seed for generated values")
    parser.add_argument("--locate-timeout", type=float, help="Seconds allowed per locate call")
    parser.add_argument("--monitor-interval", type=float, help="Sample harness resources every N seconds")
    parser.add_argument("--artifacts", help="Directory for JSON Lines logs")
    parser.add_argument("--run-id", help="Label for this run's log file")
    parser.add_argument("--connector", metavar="MODULE:CALLABLE",
                        help="Factory returning the ConnectionManager for remote objects")
    parser.add_argument("--quiet", action="store_true", help="Hide passing checks on the console")
    parser.add_argument("--loopback", action="store_true",
                        help="Test in-process loopback objects instead of connecting out")
    parser.add_argument("--lossy-wide", action="store_true",
                        help="Loopback objects read 64-bit values back through a double")
    return parser
