"""
Performance monitoring utilities.

Submission latency samples, event counters and process resource usage
(through psutil) for the matching engine, the statistics endpoint and
the load tests.
"""

import logging
import threading
import time
from collections import deque
from contextlib import contextmanager
from typing import Any, Deque, Dict, Iterable, Optional

import psutil

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 10000

_EMPTY_STATS = {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p99": 0.0, "count": 0}


class PerformanceMonitor:
    """
    Thread-safe collector of latency samples and counters.

    Each metric keeps only its most recent ``window`` samples, so a
    long-running server holds bounded memory; counters are totals since
    the last reset.
    """

    def __init__(self, window: int = DEFAULT_WINDOW):
        self.window = window
        self.metrics: Dict[str, Deque[float]] = {}
        self.counters: Dict[str, int] = {}
        self._lock = threading.Lock()

        self._process = psutil.Process()
        self._started = time.monotonic()
        self._baseline_rss = self._process.memory_info().rss

    def record_metric(self, name: str, value: float) -> None:
        """Append one sample to ``name``, evicting the oldest once the window is full."""
        with self._lock:
            samples = self.metrics.get(name)
            if samples is None:
                samples = self.metrics[name] = deque(maxlen=self.window)
            samples.append(value)

    def increment_counter(self, name: str, value: int = 1) -> None:
        with self._lock:
            self.counters[name] = self.counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        with self._lock:
            return self.counters.get(name, 0)

    def get_metric_stats(self, name: str) -> Dict[str, float]:
        """
        Summary of the samples held for ``name``.

        Returns:
            min, max, avg, p50, p99 and count; all zero for an unknown metric
        """
        with self._lock:
            samples = list(self.metrics.get(name, ()))
        return _summarize(samples) if samples else dict(_EMPTY_STATS)

    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started

    def get_system_stats(self) -> Dict[str, Any]:
        """Resident memory, CPU and thread usage of this process; empty if psutil fails."""
        try:
            with self._process.oneshot():
                rss = self._process.memory_info().rss
                return {
                    "memory_rss_mb": rss / (1024 * 1024),
                    "memory_growth_mb": (rss - self._baseline_rss) / (1024 * 1024),
                    "cpu_percent": self._process.cpu_percent(),
                    "thread_count": self._process.num_threads(),
                }
        except psutil.Error as e:
            logger.warning(f"Could not read process stats: {e}")
            return {}

    def get_summary(self) -> Dict[str, Any]:
        with self._lock:
            counters = dict(self.counters)
            names = list(self.metrics)
        summary: Dict[str, Any] = {
            "uptime_seconds": self.uptime_seconds(),
            "counters": counters,
            "metrics": {name: self.get_metric_stats(name) for name in names},
        }
        summary.update(self.get_system_stats())
        return summary

    def reset(self) -> None:
        """Drop every sample and counter and restart the uptime clock."""
        with self._lock:
            self.metrics.clear()
            self.counters.clear()
            self._started = time.monotonic()
            self._baseline_rss = self._process.memory_info().rss


def _percentile(ordered: list, fraction: float) -> float:
    index = min(len(ordered) - 1, int(round(fraction * (len(ordered) - 1))))
    return ordered[index]


def _summarize(samples: Iterable[float]) -> Dict[str, float]:
    ordered = sorted(samples)
    return {
        "min": ordered[0],
        "max": ordered[-1],
        "avg": sum(ordered) / len(ordered),
        "p50": _percentile(ordered, 0.50),
        "p99": _percentile(ordered, 0.99),
        "count": len(ordered),
    }


@contextmanager
def measure_latency(monitor: PerformanceMonitor, operation_name: str):
    """
    Time the enclosed block and record it as ``<operation_name>_latency_ms``.

    The sample is recorded even if the block raises.
    """
    started = time.perf_counter()
    try:
        yield
    finally:
        monitor.record_metric(f"{operation_name}_latency_ms", (time.perf_counter() - started) * 1000)


_performance_monitor: Optional[PerformanceMonitor] = None


def get_performance_monitor() -> PerformanceMonitor:
    """Process-wide monitor shared by the servers; created on first use."""
    global _performance_monitor
    if _performance_monitor is None:
        _performance_monitor = PerformanceMonitor()
    return _performance_monitor
