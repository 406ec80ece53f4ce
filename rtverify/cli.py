"""
Command-line driver.

Exit codes follow the test contract:
- exit(0) = every check that ran passed
- exit(1) = a check failed, a cycle was aborted, or an object could not be set up
- exit(2) = configuration error

Usage:
    rtverify --loopback --max-cycles 3 --delay 1
    rtverify --connector mypkg.rt:connections --endpoint host_object=tcp://10.0.0.5:10004
"""

import asyncio
import importlib
import json
import sys
from typing import Optional, Sequence, Tuple

from .config import HarnessConfig
from .errors import ConfigError
from .generators import source_factory
from .interfaces import ConnectionManager
from .logger import HarnessLogger
from .loopback import loopback_network
from .monitor import ResourceMonitor
from .resolver import StaticResolver
from .runner import HarnessRunner


def load_connector(target: str) -> ConnectionManager:
    """Import ``module:callable`` and call it to obtain a ConnectionManager."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigError(f"connector must be module:callable, got {target!r}")
    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise ConfigError(f"cannot load connector {target!r}: {e}") from None

    connections = factory()
    if not isinstance(connections, ConnectionManager):
        raise ConfigError(f"connector {target!r} did not return a ConnectionManager")
    return connections


def build_runner(config: HarnessConfig, logger: HarnessLogger) -> HarnessRunner:
    if config.loopback:
        table, connections = loopback_network(config.objects, lossy_wide=config.lossy_wide)
    elif config.connector:
        table, connections = config.endpoints, load_connector(config.connector)
    else:
        raise ConfigError("no connection manager: pass --loopback or --connector")

    return HarnessRunner(
        StaticResolver(table),
        connections,
        config.objects,
        logger,
        sources=source_factory(config.seed),
        delay=config.delay_seconds,
        max_cycles=config.max_cycles,
        locate_timeout=config.locate_timeout,
    )


async def _run(runner: HarnessRunner, monitor: Optional[ResourceMonitor]):
    if monitor is not None:
        monitor.start()
    try:
        await runner.run()
    finally:
        if monitor is not None:
            await monitor.stop()


def run(config: HarnessConfig, logger: HarnessLogger) -> Tuple[HarnessRunner, Optional[ResourceMonitor]]:
    runner = build_runner(config, logger)
    monitor = None
    if config.monitor_interval:
        monitor = ResourceMonitor(logger, interval=config.monitor_interval)

    try:
        asyncio.run(_run(runner, monitor))
    except KeyboardInterrupt:
        logger.info("run_interrupted", "interrupted, loops stopped")
    return runner, monitor


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        config = HarnessConfig.from_args(argv)
    except ConfigError as e:
        print(f"rtverify: {e}", file=sys.stderr)
        return 2

    with HarnessLogger(
        config.run_id,
        output_dir=config.artifacts_dir,
        console_level=config.console_level,
    ) as logger:
        try:
            runner, monitor = run(config, logger)
        except ConfigError as e:
            logger.error("config_error", str(e), error_type="ConfigError")
            return 2

        summary = runner.summary()
        if monitor is not None:
            summary["resources"] = monitor.summary()
        logger.info("run_summary", json.dumps(summary, default=str), extra=summary)

    failed = summary["checks_failed"] or summary["cycles_aborted"] or summary["setup_failures"]
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
