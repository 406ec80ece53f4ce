"""
Resource Monitor for Long Runs

Samples the harness process with psutil while loops are cycling, so a
soak run shows whether memory or descriptors grow over time.
"""

import asyncio
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import psutil


@dataclass
class ResourceSample:
    """Single resource measurement sample."""
    timestamp: str
    elapsed_seconds: float
    cpu_percent: float = 0.0
    memory_rss_mb: float = 0.0
    num_threads: int = 0
    open_fds: int = 0


class ResourceMonitor:
    """
    Periodic resource sampler running as an asyncio task.

    Args:
        reporter: Reporting sink; each sample is logged as metric events
        interval: Seconds between samples
        pid: Process to watch (default: this process)
    """

    def __init__(self, reporter=None, interval: float = 60.0, pid: Optional[int] = None):
        self.reporter = reporter
        self.interval = interval
        self.process = psutil.Process(pid)
        self.samples: List[ResourceSample] = []
        self._start_time = time.monotonic()
        self._task: Optional[asyncio.Task] = None

    def take_sample(self) -> ResourceSample:
        """Take and record a single sample."""
        with self.process.oneshot():
            rss_mb = self.process.memory_info().rss / (1024 * 1024)
            cpu = self.process.cpu_percent(interval=None)
            threads = self.process.num_threads()
            try:
                fds = self.process.num_fds()
            except (AttributeError, psutil.AccessDenied):
                # num_fds is POSIX only
                fds = 0

        sample = ResourceSample(
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            elapsed_seconds=time.monotonic() - self._start_time,
            cpu_percent=cpu,
            memory_rss_mb=rss_mb,
            num_threads=threads,
            open_fds=fds,
        )
        self.samples.append(sample)

        if self.reporter is not None:
            self.reporter.metric("memory_rss", round(rss_mb, 2), "MB")
            self.reporter.metric("cpu_percent", cpu, "%")
            self.reporter.metric("open_fds", fds)
        return sample

    async def _run(self):
        while True:
            self.take_sample()
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def stop(self):
        if self._task is None or self._task.done():
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    def summary(self) -> Dict[str, Any]:
        """Peak and average figures over all samples."""
        if not self.samples:
            return {"samples": 0}
        rss = [s.memory_rss_mb for s in self.samples]
        return {
            "samples": len(self.samples),
            "memory_rss_peak_mb": max(rss),
            "memory_rss_avg_mb": sum(rss) / len(rss),
            "memory_rss_growth_mb": rss[-1] - rss[0],
            "open_fds_peak": max(s.open_fds for s in self.samples),
            "last": asdict(self.samples[-1]),
        }
