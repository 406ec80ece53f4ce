#!/usr/bin/env python3
"""
Structured Logger Tests

Outcome severity, message format and JSON Lines shape.
"""

from conftest import events_of, read_events

from rtverify.checks import TestOutcome
from rtverify.errors import RemoteCallError
from rtverify.logger import HarnessLogger, close_all_loggers, get_logger
from rtverify.values import ValueType


def _outcome(passed: bool, **kwargs) -> TestOutcome:
    fields = dict(
        object_id="host_object",
        kind="property",
        name="int32",
        type=ValueType.INT32,
        expected=12345,
        observed=12345 if passed else 54321,
        passed=passed,
        latency_ms=1.5,
    )
    fields.update(kwargs)
    return TestOutcome(**fields)


def test_run_start_written(reporter):
    events = read_events(reporter)
    assert events[0]["event_type"] == "run_start"
    assert events[0]["run_id"] == "test_run"


def test_passing_outcome_logged_at_debug(reporter):
    reporter.outcome(_outcome(True))

    [event] = events_of(reporter, "check_passed")
    assert event["level"] == "debug"
    assert event["object_id"] == "host_object"
    assert event["value_type"] == "INT32"
    assert event["passed"] is True
    assert event["message"] == "INT32 test => set val = 12345, rpc result = 12345, passed = [True]"
    assert "error_type" not in event


def test_failing_outcome_logged_at_error(reporter):
    reporter.outcome(_outcome(False))

    [event] = events_of(reporter, "check_failed")
    assert event["level"] == "error"
    assert event["error_type"] == "mismatch"
    assert event["observed"] == 54321


def test_method_outcome_message(reporter):
    reporter.outcome(_outcome(True, kind="method", name="twoIntNumberSum", expected=7, observed=7))

    [event] = events_of(reporter, "check_passed")
    assert event["message"] == "test method twoIntNumberSum result = [True]"
    assert event["check_kind"] == "method"


def test_wide_values_serialized_exactly(reporter):
    reporter.outcome(_outcome(True, type=ValueType.INT64, expected=9223372036854775807, observed=9223372036854775807))

    [event] = events_of(reporter, "check_passed")
    assert event["expected"] == 9223372036854775807


def test_skipped_check_logged(reporter):
    reporter.check_skipped("obj3", "int64", RemoteCallError("get", "int64", "timeout"))

    [event] = events_of(reporter, "check_skipped")
    assert event["level"] == "error"
    assert event["error_type"] == "RemoteCallError"
    assert event["name"] == "int64"


def test_unserializable_values_do_not_raise(reporter):
    reporter.outcome(_outcome(False, type=ValueType.OBJECT, expected=object(), observed={1, 2}))
    assert len(events_of(reporter, "check_failed")) == 1


def test_logging_after_close_does_not_raise(tmp_path):
    logger = HarnessLogger("closed_run", output_dir=tmp_path, console_output=False)
    logger.close()
    logger.error("late_event", "after close")


def test_console_output(tmp_path, capsys):
    logger = HarnessLogger("console_run", output_dir=tmp_path, console_level="info")
    logger.outcome(_outcome(True))
    logger.outcome(_outcome(False))
    logger.close()

    out = capsys.readouterr().out
    assert "[ERROR] [host_object] INT32 test => set val = 12345, rpc result = 54321" in out
    assert "passed = [True]" not in out


def test_context_manager_records_errors(tmp_path):
    try:
        with HarnessLogger("ctx_run", output_dir=tmp_path, console_output=False) as logger:
            raise ValueError("boom")
    except ValueError:
        pass

    [event] = events_of(logger, "run_error")
    assert event["error_type"] == "ValueError"


def test_get_logger_is_singleton(tmp_path):
    first = get_logger("shared", output_dir=tmp_path, console_output=False)
    assert get_logger("shared") is first
    close_all_loggers()
    assert read_events(first)[-1]["event_type"] == "run_end"
