"""
Operation timing and memory tracking for the resilience core.

Each finished timer is forwarded to ``LoggingService.performance`` so the
measurement also lands in the telemetry buffer; per-operation aggregates are
kept here for summaries.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

import psutil

from .logging_service import LoggingService

logger = logging.getLogger(__name__)

DEFAULT_SLOW_THRESHOLD_MS = 100.0


@dataclass
class OperationMetrics:
    """Aggregated timings for one operation name."""
    operation_name: str
    total_calls: int = 0
    total_duration: float = 0.0
    min_duration: float = float("inf")
    max_duration: float = 0.0
    total_memory_delta: int = 0

    @property
    def average_duration(self) -> float:
        return self.total_duration / self.total_calls if self.total_calls else 0.0

    @property
    def average_memory_delta(self) -> float:
        return self.total_memory_delta / self.total_calls if self.total_calls else 0.0


class OperationTimer:
    """A running measurement started by ``PerformanceMonitor.start_timer``."""

    def __init__(self, monitor: 'PerformanceMonitor', operation_name: str, component: str):
        self._monitor = monitor
        self.operation_name = operation_name
        self.component = component
        self._start_memory = monitor._rss()
        self._start = time.perf_counter()
        self._duration: Optional[float] = None

    def end(self) -> float:
        """Stop the timer and record it. Returns the duration in milliseconds.

        Calling ``end`` again returns the first duration without recording twice.
        """
        if self._duration is None:
            self._duration = (time.perf_counter() - self._start) * 1000
            memory_delta = self._monitor._rss() - self._start_memory
            self._monitor._record(self.operation_name, self.component, self._duration, memory_delta)
        return self._duration


class PerformanceMonitor:
    """Times operations, aggregates metrics and flags slow operations."""

    def __init__(
        self,
        logging_service: LoggingService,
        slow_threshold_ms: float = DEFAULT_SLOW_THRESHOLD_MS
    ):
        self._logging = logging_service
        self.slow_threshold_ms = slow_threshold_ms
        self._metrics: Dict[str, OperationMetrics] = {}
        self._process = psutil.Process()

    def start_timer(self, operation_name: str, component: str = "PerformanceMonitor") -> OperationTimer:
        return OperationTimer(self, operation_name, component)

    @contextmanager
    def measure(self, operation_name: str, component: str = "PerformanceMonitor") -> Iterator[OperationTimer]:
        """Time the enclosed block, recording it even when the block raises."""
        timer = self.start_timer(operation_name, component)
        try:
            yield timer
        finally:
            timer.end()

    def get_metrics(self, operation_name: str) -> Optional[OperationMetrics]:
        return self._metrics.get(operation_name)

    def get_all_metrics(self) -> List[OperationMetrics]:
        return list(self._metrics.values())

    def clear_metrics(self) -> None:
        self._metrics.clear()

    def get_current_memory_usage(self) -> Dict[str, int]:
        """Resident and virtual memory of this process, in bytes."""
        info = self._process.memory_info()
        return {"rss": info.rss, "vms": info.vms}

    def log_performance_summary(self) -> None:
        if not self._metrics:
            self._logging.info("PerformanceMonitor", "No performance metrics recorded")
            return

        self._logging.info("PerformanceMonitor", "=== Performance Summary ===")
        for metrics in sorted(self._metrics.values(), key=lambda m: m.total_duration, reverse=True):
            self._logging.info(
                "PerformanceMonitor",
                f"{metrics.operation_name}: {metrics.total_calls} calls, "
                f"avg {metrics.average_duration:.2f}ms, "
                f"min {metrics.min_duration:.2f}ms, max {metrics.max_duration:.2f}ms, "
                f"avg memory delta {metrics.average_memory_delta / 1024:.1f}KB"
            )

    def dispose(self) -> None:
        self._metrics.clear()

    def _rss(self) -> int:
        try:
            return self._process.memory_info().rss
        except psutil.Error as e:
            logger.debug(f"Could not read process memory: {e}")
            return 0

    def _record(self, operation_name: str, component: str, duration_ms: float, memory_delta: int) -> None:
        metrics = self._metrics.get(operation_name)
        if metrics is None:
            metrics = self._metrics[operation_name] = OperationMetrics(operation_name)

        metrics.total_calls += 1
        metrics.total_duration += duration_ms
        metrics.min_duration = min(metrics.min_duration, duration_ms)
        metrics.max_duration = max(metrics.max_duration, duration_ms)
        metrics.total_memory_delta += memory_delta

        self._logging.performance(component, operation_name, round(duration_ms, 2))
        if duration_ms > self.slow_threshold_ms:
            self._logging.warn(component, f"[SLOW] {operation_name}: {duration_ms:.2f}ms")
