"""
Leveled log emission with a bounded in-memory telemetry buffer.
"""
import json
import logging
import traceback
from collections import deque
from datetime import datetime, timezone
from typing import Any, Optional

from .types import ErrorContext, LogLevel, LogSink, TelemetryEntry

logger = logging.getLogger(__name__)

DEFAULT_TELEMETRY_CAPACITY = 1000

_STDLIB_LEVELS = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
}


def _to_json(value: Any, **kwargs: Any) -> str:
    """Serialize for a log line, falling back to repr for unencodable values."""
    try:
        return json.dumps(value, default=str, **kwargs)
    except (TypeError, ValueError):
        return repr(value)


class LoggingService:
    """Writes filtered log lines to a sink and keeps telemetry for diagnosis.

    Every emitted line is also mirrored to this module's stdlib logger.
    Telemetry lives only in memory; once ``telemetry_capacity`` entries are
    held, the oldest entry is evicted for each new one.
    """

    def __init__(
        self,
        sink: LogSink,
        level: LogLevel = LogLevel.INFO,
        telemetry_capacity: int = DEFAULT_TELEMETRY_CAPACITY
    ):
        self._sink = sink
        self._level = level
        self._telemetry: deque[TelemetryEntry] = deque(maxlen=telemetry_capacity)
        self._disposed = False

    @property
    def level(self) -> LogLevel:
        return self._level

    def set_level(self, level: LogLevel) -> None:
        """Change the filter threshold and record the change."""
        self._level = level
        # The confirmation is written even when INFO is now filtered out
        self._write(LogLevel.INFO, "LoggingService", f"Log level set to {level.name}")

    def error(
        self,
        component: str,
        message: str,
        cause: Optional[BaseException] = None,
        context: Optional[ErrorContext] = None
    ) -> None:
        if not self._should_log(LogLevel.ERROR):
            return

        text = f"{message}: {cause}" if cause is not None else message
        self._write(LogLevel.ERROR, component, text)
        if context is not None:
            self._append(f"Context: {_to_json(context.to_dict())}")
        if cause is not None and self._level == LogLevel.DEBUG and cause.__traceback__ is not None:
            stack = "".join(traceback.format_exception(type(cause), cause, cause.__traceback__))
            self._append(f"Stack: {stack.rstrip()}")

        properties: dict[str, Any] = {"component": component, "message": message}
        if cause is not None:
            properties["error"] = str(cause)
            properties["errorType"] = type(cause).__name__
        if context is not None:
            properties["operation"] = context.operation
            if context.session_id is not None:
                properties["sessionId"] = context.session_id
        self._record(TelemetryEntry(event="error", properties=properties))

    def warn(self, component: str, message: str, context: Optional[ErrorContext] = None) -> None:
        if not self._should_log(LogLevel.WARN):
            return

        self._write(LogLevel.WARN, component, message)
        properties: dict[str, Any] = {"component": component, "message": message}
        if context is not None:
            properties["operation"] = context.operation
        self._record(TelemetryEntry(event="warning", properties=properties))

    def info(self, component: str, message: str, context: Optional[ErrorContext] = None) -> None:
        if not self._should_log(LogLevel.INFO):
            return

        self._write(LogLevel.INFO, component, message)
        if context is not None:
            self._append(f"Context: {_to_json(context.to_dict())}")

    def debug(self, component: str, message: str, data: Any = None) -> None:
        if not self._should_log(LogLevel.DEBUG):
            return

        self._write(LogLevel.DEBUG, component, message)
        if data is not None:
            self._append(_to_json(data, indent=2))

    def performance(self, component: str, operation_name: str, duration_ms: float) -> None:
        """Log an operation duration and record it as a measurement."""
        if not self._should_log(LogLevel.INFO):
            return

        self._write(LogLevel.INFO, component, f"{operation_name} completed in {duration_ms:g}ms")
        self._record(TelemetryEntry(
            event="performance",
            properties={"component": component, "operation": operation_name},
            measurements={"duration": duration_ms}
        ))

    def get_telemetry_data(self) -> list[TelemetryEntry]:
        """Return a copy of the buffered telemetry, oldest first."""
        return list(self._telemetry)

    def get_telemetry_summary(self) -> dict[str, Any]:
        """Aggregate the telemetry buffer in a single pass."""
        error_count = 0
        warning_count = 0
        performance_events = 0
        component_breakdown: dict[str, int] = {}
        duration_totals: dict[str, float] = {}
        duration_counts: dict[str, int] = {}

        for entry in self._telemetry:
            if entry.event == "error":
                error_count += 1
            elif entry.event == "warning":
                warning_count += 1
            elif entry.event == "performance":
                performance_events += 1
                operation = entry.properties.get("operation")
                duration = entry.measurements.get("duration")
                if operation is not None and duration is not None:
                    duration_totals[operation] = duration_totals.get(operation, 0.0) + duration
                    duration_counts[operation] = duration_counts.get(operation, 0) + 1

            component = entry.properties.get("component")
            if component:
                component_breakdown[component] = component_breakdown.get(component, 0) + 1

        average_performance = {
            operation: total / duration_counts[operation]
            for operation, total in duration_totals.items()
        }

        return {
            "total_events": len(self._telemetry),
            "error_count": error_count,
            "warning_count": warning_count,
            "performance_events": performance_events,
            "component_breakdown": component_breakdown,
            "average_performance": average_performance,
        }

    def clear_telemetry_data(self) -> None:
        self._telemetry.clear()

    def show(self) -> None:
        if not self._disposed:
            self._sink.show()

    def hide(self) -> None:
        if not self._disposed:
            self._sink.hide()

    def dispose(self) -> None:
        """Clear telemetry and release the sink. Later calls are ignored."""
        self._telemetry.clear()
        if not self._disposed:
            self._disposed = True
            self._sink.dispose()

    def _should_log(self, level: LogLevel) -> bool:
        return not self._disposed and self._level.allows(level)

    def _write(self, level: LogLevel, component: str, message: str) -> None:
        timestamp = datetime.now(timezone.utc).isoformat()
        self._append(f"[{timestamp}] [{level.name}] [{component}] {message}")
        logger.log(_STDLIB_LEVELS[level], f"[{component}] {message}")

    def _append(self, line: str) -> None:
        if not self._disposed:
            self._sink.append_line(line)

    def _record(self, entry: TelemetryEntry) -> None:
        self._telemetry.append(entry)
