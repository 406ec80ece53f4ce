"""
Structured JSON Logging for Verification Runs

Every check outcome, cycle boundary and setup failure becomes one JSON
Lines record, so metrics can be derived after the run (see metrics.py).
A compact line is echoed to the console.

The logger is the harness's reporting sink and never raises: write
failures are redirected to stderr.
"""

import json
import os
import sys
import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .values import type_name

LEVELS = {"debug": 10, "info": 20, "error": 40}


@dataclass
class LogEvent:
    """Structured log event."""
    wall_time: str
    monotonic_ns: int
    run_id: str
    object_id: str
    event_type: str
    level: str
    message: str = ""
    check_kind: Optional[str] = None
    name: Optional[str] = None
    value_type: Optional[str] = None
    expected: Any = None
    observed: Any = None
    passed: Optional[bool] = None
    latency_ms: Optional[float] = None
    error_type: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


class HarnessLogger:
    """
    Structured JSON logger for harness reporting.

    Writes JSON Lines format to file with optional console output.
    Thread-safe.
    """

    def __init__(
        self,
        run_id: str,
        output_dir: Optional[Path] = None,
        console_output: bool = True,
        console_level: str = "debug",
        write_file: bool = True
    ):
        self.run_id = run_id
        self.console_output = console_output
        self.console_level = LEVELS.get(console_level, LEVELS["debug"])
        self._lock = threading.Lock()
        self._start_time = time.monotonic_ns()
        self._file_handle = None
        self.log_file: Optional[Path] = None

        if write_file:
            if output_dir:
                self.output_dir = Path(output_dir)
            else:
                artifacts_env = os.environ.get("RTVERIFY_ARTIFACTS")
                if artifacts_env:
                    self.output_dir = Path(artifacts_env)
                else:
                    self.output_dir = Path.cwd() / "artifacts" / "logs"

            self.output_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.log_file = self.output_dir / f"{run_id}_{timestamp}.jsonl"
            self._file_handle = open(self.log_file, "w")

        self.info("run_start", f"Run {run_id} started")

    def _create_event(self, event_type: str, level: str, message: str = "", object_id: str = "-", **kwargs) -> LogEvent:
        return LogEvent(
            wall_time=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            monotonic_ns=time.monotonic_ns(),
            run_id=self.run_id,
            object_id=object_id,
            event_type=event_type,
            level=level,
            message=message,
            **kwargs
        )

    def _write(self, event: LogEvent):
        event_dict = {k: v for k, v in asdict(event).items() if v is not None}
        if not event_dict.get("extra"):
            event_dict.pop("extra", None)

        try:
            json_line = json.dumps(event_dict, separators=(',', ':'), default=str)
            with self._lock:
                if self._file_handle is not None and not self._file_handle.closed:
                    self._file_handle.write(json_line + "\n")
                    self._file_handle.flush()

                if self.console_output and LEVELS[event.level] >= self.console_level:
                    label = "" if event.object_id == "-" else f"[{event.object_id}] "
                    print(f"[{event.wall_time[11:19]}] [{event.level.upper()}] {label}{event.message}")
        except (OSError, ValueError, TypeError) as e:
            print(f"[rtverify] failed to write log event {event.event_type}: {e}", file=sys.stderr)

    def debug(self, event_type: str, message: str = "", **kwargs):
        self._write(self._create_event(event_type, "debug", message, **kwargs))

    def info(self, event_type: str, message: str = "", **kwargs):
        self._write(self._create_event(event_type, "info", message, **kwargs))

    def error(self, event_type: str, message: str = "", error_type: str = "error", **kwargs):
        self._write(self._create_event(event_type, "error", message, error_type=error_type, **kwargs))

    def outcome(self, outcome):
        """Log a check outcome: debug when it passed, error when it did not."""
        if outcome.kind == "method":
            message = f"test method {outcome.name} result = [{outcome.passed}]"
        else:
            message = (
                f"{type_name(outcome.type)} test => set val = {outcome.expected}, "
                f"rpc result = {outcome.observed}, passed = [{outcome.passed}]"
            )
        fields = dict(
            object_id=outcome.object_id,
            check_kind=outcome.kind,
            name=outcome.name,
            value_type=type_name(outcome.type),
            expected=outcome.expected,
            observed=outcome.observed,
            passed=outcome.passed,
            latency_ms=outcome.latency_ms,
        )
        if outcome.passed:
            self.debug("check_passed", message, **fields)
        else:
            self.error("check_failed", message, error_type="mismatch", **fields)

    def check_skipped(self, object_id: str, name: str, error: BaseException):
        """Log a property check that ended on a transport failure."""
        self.error(
            "check_skipped",
            f"{name} round trip skipped: {error}",
            error_type=type(error).__name__,
            object_id=object_id,
            check_kind="property",
            name=name,
        )

    def cycle_completed(self, object_id: str, result, delay: float):
        self.debug(
            "cycle_completed",
            f"=========> {object_id} test completed, next test will at {delay:g}s ...",
            object_id=object_id,
            extra={"passed": result.passed, "failed": result.failed, "skipped": result.skipped},
        )

    def cycle_aborted(self, object_id: str, error: BaseException, delay: float):
        self.error(
            "cycle_aborted",
            f"cycle aborted: {error}; next test will at {delay:g}s ...",
            error_type=type(error).__name__,
            object_id=object_id,
        )

    def loop_event(self, object_id: str, event_subtype: str, message: str = "", **kwargs):
        """Log a loop lifecycle event (started, stopped)."""
        self.info(f"loop_{event_subtype}", message or f"loop {event_subtype}", object_id=object_id, **kwargs)

    def setup_failed(self, object_id: str, stage: str, error: BaseException):
        """Log a resolution or connection failure for one object."""
        self.error(
            f"{stage}_failed",
            f"{stage} failed: {error}",
            error_type=type(error).__name__,
            object_id=object_id,
        )

    def metric(self, name: str, value: float, unit: str = "", **kwargs):
        self.debug(
            "metric",
            f"{name}: {value} {unit}".rstrip(),
            extra={"metric_name": name, "metric_value": value, "metric_unit": unit, **kwargs}
        )

    def close(self):
        """Close the logger and finalize the log file."""
        elapsed_ms = (time.monotonic_ns() - self._start_time) / 1_000_000
        self.info("run_end", f"Run {self.run_id} finished after {elapsed_ms:.2f}ms")

        with self._lock:
            if self._file_handle is not None:
                self._file_handle.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.error("run_error", str(exc_val), error_type=exc_type.__name__)
        self.close()
        return False


# Global logger registry
_loggers: Dict[str, HarnessLogger] = {}
_logger_lock = threading.Lock()


def get_logger(run_id: str, **kwargs) -> HarnessLogger:
    """
    Get or create a logger for the given run.

    Thread-safe singleton per run_id.
    """
    with _logger_lock:
        if run_id not in _loggers:
            _loggers[run_id] = HarnessLogger(run_id, **kwargs)
        return _loggers[run_id]


def close_all_loggers():
    """Close all active loggers."""
    with _logger_lock:
        for logger in _loggers.values():
            logger.close()
        _loggers.clear()
