"""
Tests for operation timing and metrics.
"""
import time
from unittest.mock import Mock

import pytest

from backend.src.resilience import LoggingService, LogLevel, MemoryLogSink, PerformanceMonitor


@pytest.fixture
def sink():
    return MemoryLogSink()


@pytest.fixture
def logging_service(sink):
    return LoggingService(sink, LogLevel.DEBUG)


@pytest.fixture
def monitor(logging_service):
    return PerformanceMonitor(logging_service)


class TestTimers:
    """Test timers and metric aggregation."""

    def test_single_timer(self, monitor):
        timer = monitor.start_timer("load")
        duration = timer.end()

        metrics = monitor.get_metrics("load")
        assert duration >= 0
        assert metrics.total_calls == 1
        assert metrics.total_duration == duration

    def test_end_is_idempotent(self, monitor):
        timer = monitor.start_timer("load")
        first = timer.end()
        second = timer.end()

        assert first == second
        assert monitor.get_metrics("load").total_calls == 1

    def test_accumulates_calls(self, monitor):
        monitor.start_timer("save").end()
        timer = monitor.start_timer("save")
        time.sleep(0.01)
        timer.end()

        metrics = monitor.get_metrics("save")
        assert metrics.total_calls == 2
        assert metrics.min_duration < metrics.max_duration
        assert metrics.average_duration == pytest.approx(metrics.total_duration / 2)

    def test_measure_context_manager(self, monitor):
        with monitor.measure("parse", "SessionStorage"):
            pass

        assert monitor.get_metrics("parse").total_calls == 1

    def test_measure_records_on_exception(self, monitor):
        with pytest.raises(RuntimeError):
            with monitor.measure("parse"):
                raise RuntimeError("boom")

        assert monitor.get_metrics("parse").total_calls == 1

    def test_unknown_operation(self, monitor):
        assert monitor.get_metrics("missing") is None

    def test_all_metrics_and_clear(self, monitor):
        monitor.start_timer("a").end()
        monitor.start_timer("b").end()

        names = {m.operation_name for m in monitor.get_all_metrics()}
        assert names == {"a", "b"}

        monitor.clear_metrics()
        assert monitor.get_all_metrics() == []

    def test_empty_metrics_averages(self):
        from backend.src.resilience import OperationMetrics

        metrics = OperationMetrics("idle")
        assert metrics.average_duration == 0.0
        assert metrics.average_memory_delta == 0.0


class TestReporting:
    """Test telemetry forwarding and summaries."""

    def test_forwards_to_telemetry(self, monitor, logging_service, sink):
        monitor.start_timer("load", "SessionStorage").end()

        telemetry = logging_service.get_telemetry_data()
        assert telemetry[0].event == "performance"
        assert telemetry[0].properties["component"] == "SessionStorage"
        assert any("[SessionStorage] load completed in" in line for line in sink.lines)

    def test_slow_operation_warning(self, logging_service, sink):
        monitor = PerformanceMonitor(logging_service, slow_threshold_ms=5)
        timer = monitor.start_timer("slowOperation")
        time.sleep(0.02)
        timer.end()

        assert any("[WARN]" in line and "[SLOW] slowOperation" in line for line in sink.lines)

    def test_fast_operation_not_flagged(self, monitor, sink):
        monitor.start_timer("fastOperation").end()
        assert not any("[SLOW]" in line for line in sink.lines)

    def test_summary(self, monitor, sink):
        monitor.start_timer("operation1").end()
        monitor.start_timer("operation2").end()
        sink.clear()

        monitor.log_performance_summary()

        assert any("=== Performance Summary ===" in line for line in sink.lines)
        assert any("operation1: 1 calls" in line for line in sink.lines)
        assert any("operation2: 1 calls" in line for line in sink.lines)

    def test_empty_summary(self, monitor, sink):
        monitor.log_performance_summary()
        assert any("No performance metrics recorded" in line for line in sink.lines)

    def test_summary_uses_logging_service(self):
        logging_service = Mock(spec=LoggingService)
        monitor = PerformanceMonitor(logging_service)

        monitor.log_performance_summary()

        logging_service.info.assert_called_once_with("PerformanceMonitor", "No performance metrics recorded")


class TestMemory:
    """Test process memory readings."""

    def test_current_memory_usage(self, monitor):
        usage = monitor.get_current_memory_usage()

        assert set(usage) == {"rss", "vms"}
        assert usage["rss"] > 0

    def test_dispose_clears_metrics(self, monitor):
        monitor.start_timer("load").end()
        monitor.dispose()

        assert monitor.get_all_metrics() == []
