"""
Metrics Post-Processing

Derives metrics from structured JSON logs after a run.
Produces summary statistics suitable for CI reporting or a health policy.
"""

import json
import statistics
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List


@dataclass
class DerivedMetrics:
    """Derived metrics from log analysis."""
    run_id: str
    timestamp: str
    duration_seconds: float = 0.0

    # Check metrics
    checks_passed: int = 0
    checks_failed: int = 0
    checks_skipped: int = 0
    pass_rate_pct: float = 0.0

    # Cycle metrics
    cycles_completed: int = 0
    cycles_aborted: int = 0
    setup_failures: int = 0

    # Latency metrics (milliseconds)
    latency_p50_ms: float = 0.0
    latency_p90_ms: float = 0.0
    latency_p99_ms: float = 0.0
    latency_min_ms: float = 0.0
    latency_max_ms: float = 0.0
    latency_avg_ms: float = 0.0

    error_count: int = 0

    per_object: Dict[str, Dict[str, int]] = field(default_factory=dict)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_log_file(log_path: Path) -> List[Dict[str, Any]]:
    """Parse a JSON Lines log file, skipping corrupt lines."""
    events = []
    with open(log_path, 'r') as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    events.append(json.loads(line))
                except json.JSONDecodeError:
                    pass
    return events


def percentile(values: List[float], p: float) -> float:
    """Calculate percentile of a list of values."""
    if not values:
        return 0.0
    sorted_values = sorted(values)
    idx = int(len(sorted_values) * p / 100)
    idx = min(idx, len(sorted_values) - 1)
    return sorted_values[idx]


def _parse_time(wall_time: str):
    return datetime.fromisoformat(wall_time.replace("Z", "+00:00"))


def _bump(counts, key: str):
    if counts is not None:
        counts[key] += 1


def derive_metrics(log_path: Path) -> DerivedMetrics:
    """Derive metrics from a log file."""
    events = parse_log_file(log_path)

    if not events:
        return DerivedMetrics(run_id="unknown", timestamp=_now())

    metrics = DerivedMetrics(run_id=events[0].get("run_id", "unknown"), timestamp=_now())
    latencies = []
    start_time = None
    end_time = None

    for event in events:
        event_type = event.get("event_type", "")
        object_id = event.get("object_id", "-")

        if "wall_time" in event:
            try:
                ts = _parse_time(event["wall_time"])
                if start_time is None:
                    start_time = ts
                end_time = ts
            except ValueError:
                pass

        per_object = None
        if object_id != "-":
            per_object = metrics.per_object.setdefault(
                object_id, {"passed": 0, "failed": 0, "skipped": 0, "cycles": 0, "aborted": 0}
            )

        if event_type == "check_passed":
            metrics.checks_passed += 1
            _bump(per_object, "passed")
        elif event_type == "check_failed":
            metrics.checks_failed += 1
            _bump(per_object, "failed")
        elif event_type == "check_skipped":
            metrics.checks_skipped += 1
            _bump(per_object, "skipped")
        elif event_type == "cycle_completed":
            metrics.cycles_completed += 1
            _bump(per_object, "cycles")
        elif event_type == "cycle_aborted":
            metrics.cycles_aborted += 1
            _bump(per_object, "aborted")
        elif event_type in ("resolution_failed", "connection_failed"):
            metrics.setup_failures += 1

        if event_type in ("check_passed", "check_failed") and event.get("latency_ms") is not None:
            latencies.append(event["latency_ms"])

        if event.get("level") == "error":
            metrics.error_count += 1

    if start_time and end_time:
        metrics.duration_seconds = (end_time - start_time).total_seconds()

    checked = metrics.checks_passed + metrics.checks_failed
    metrics.pass_rate_pct = (metrics.checks_passed / checked * 100) if checked > 0 else 0.0

    metrics.latency_p50_ms = percentile(latencies, 50)
    metrics.latency_p90_ms = percentile(latencies, 90)
    metrics.latency_p99_ms = percentile(latencies, 99)
    metrics.latency_min_ms = min(latencies) if latencies else 0.0
    metrics.latency_max_ms = max(latencies) if latencies else 0.0
    metrics.latency_avg_ms = statistics.mean(latencies) if latencies else 0.0

    return metrics


def process_run_directory(run_dir: Path) -> Dict[str, DerivedMetrics]:
    """Process all log files in a run directory."""
    results = {}

    for log_file in run_dir.rglob("*.jsonl"):
        try:
            metrics = derive_metrics(log_file)
            results[str(log_file.relative_to(run_dir))] = metrics
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error processing {log_file}: {e}")

    return results


def save_metrics(metrics: DerivedMetrics, output_path: Path):
    """Save derived metrics to JSON file."""
    with open(output_path, 'w') as f:
        json.dump(asdict(metrics), f, indent=2)


def aggregate_metrics(metrics_list: List[DerivedMetrics]) -> Dict[str, Any]:
    """Aggregate metrics across multiple runs."""
    if not metrics_list:
        return {}

    total_passed = sum(m.checks_passed for m in metrics_list)
    total_failed = sum(m.checks_failed for m in metrics_list)
    total_checked = total_passed + total_failed
    all_latencies_p99 = [m.latency_p99_ms for m in metrics_list if m.latency_p99_ms > 0]

    return {
        "runs_count": len(metrics_list),
        "total_checks_passed": total_passed,
        "total_checks_failed": total_failed,
        "total_checks_skipped": sum(m.checks_skipped for m in metrics_list),
        "total_cycles_completed": sum(m.cycles_completed for m in metrics_list),
        "total_cycles_aborted": sum(m.cycles_aborted for m in metrics_list),
        "pass_rate_pct": (total_passed / total_checked * 100) if total_checked > 0 else 0,
        "total_duration_seconds": sum(m.duration_seconds for m in metrics_list),
        "latency_p99_max_ms": max(all_latencies_p99) if all_latencies_p99 else 0,
        "latency_p99_avg_ms": statistics.mean(all_latencies_p99) if all_latencies_p99 else 0,
    }


if __name__ == "__main__":
    import sys

    if len(sys.argv) < 2:
        print("Usage: python -m rtverify.metrics <log_file_or_directory>")
        sys.exit(1)

    path = Path(sys.argv[1])

    if path.is_file():
        print(json.dumps(asdict(derive_metrics(path)), indent=2))
    elif path.is_dir():
        for log_path, metrics in process_run_directory(path).items():
            print(f"\n=== {log_path} ===")
            print(json.dumps(asdict(metrics), indent=2))
    else:
        print(f"Path not found: {path}")
        sys.exit(1)
