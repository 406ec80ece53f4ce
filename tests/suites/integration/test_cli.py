#!/usr/bin/env python3
"""
Command-Line Driver Tests

Exit code contract:
- 0 when every check passed
- 1 when a check failed, a cycle aborted or an object could not be set up
- 2 on configuration errors
"""

import json

import pytest

from rtverify.cli import load_connector, main
from rtverify.errors import ConfigError
from rtverify.loopback import LoopbackConnectionManager


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in (
        "RTVERIFY_OBJECTS", "RTVERIFY_ENDPOINTS", "RTVERIFY_DELAY", "RTVERIFY_MAX_CYCLES",
        "RTVERIFY_LOCATE_TIMEOUT", "RTVERIFY_MONITOR_INTERVAL", "RTVERIFY_ARTIFACTS",
        "RTVERIFY_CONNECTOR", "TEST_SEED",
    ):
        monkeypatch.delenv(name, raising=False)


def _summary(artifacts):
    [log_file] = artifacts.glob("*.jsonl")
    with open(log_file) as f:
        events = [json.loads(line) for line in f if line.strip()]
    [summary] = [e for e in events if e["event_type"] == "run_summary"]
    return summary["extra"]


def test_loopback_run_passes(tmp_path):
    code = main([
        "--loopback", "--max-cycles", "2", "--delay", "0", "--seed", "42",
        "--quiet", "--artifacts", str(tmp_path),
    ])

    assert code == 0
    summary = _summary(tmp_path)
    assert summary["objects_started"] == 4
    assert summary["cycles_completed"] == 8
    assert summary["checks_passed"] == 48


def test_monitor_summary_included(tmp_path):
    code = main([
        "--loopback", "--objects", "host_object", "--max-cycles", "1", "--delay", "0",
        "--monitor-interval", "60", "--quiet", "--artifacts", str(tmp_path),
    ])

    assert code == 0
    assert _summary(tmp_path)["resources"]["samples"] >= 1


def test_missing_connection_manager_is_config_error(tmp_path):
    assert main(["--artifacts", str(tmp_path), "--quiet"]) == 2


def test_bad_flag_value_is_config_error(tmp_path):
    assert main(["--loopback", "--delay", "-3", "--artifacts", str(tmp_path)]) == 2


def test_unloadable_connector_is_config_error(tmp_path):
    code = main(["--connector", "rtverify.nothing:here", "--artifacts", str(tmp_path), "--quiet"])
    assert code == 2


def test_setup_failures_exit_one(tmp_path):
    code = main([
        "--connector", "rtverify.loopback:LoopbackConnectionManager",
        "--objects", "host_object",
        "--endpoint", "host_object=tcp://127.0.0.1:10004",
        "--max-cycles", "1", "--quiet", "--artifacts", str(tmp_path),
    ])

    assert code == 1
    summary = _summary(tmp_path)
    assert summary["setup_failures"] == 1
    assert summary["objects_started"] == 0


def test_load_connector():
    assert isinstance(load_connector("rtverify.loopback:LoopbackConnectionManager"), LoopbackConnectionManager)

    with pytest.raises(ConfigError):
        load_connector("rtverify.loopback")
    with pytest.raises(ConfigError):
        load_connector("rtverify.loop:LoopStats")
