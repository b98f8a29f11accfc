"""
Shared type definitions for the resilience core.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, TypeVar, Union


# Type variables
T = TypeVar('T')
Operation = Callable[[], Union[Awaitable[T], T]]


class _Missing:
    """Marker for an argument that was not supplied."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class ErrorCategory(Enum):
    """Subsystems a failure can be attributed to."""
    STORAGE = "storage"
    GIT = "git"
    AI_SERVICE = "ai_service"
    TERMINAL = "terminal"
    UI = "ui"
    NETWORK = "network"
    UNKNOWN = "unknown"


class RecoveryAction(Enum):
    """Strategy chosen for a classified failure."""
    RETRY = "retry"
    FALLBACK = "fallback"
    DISABLE_FEATURE = "disable_feature"
    USER_ACTION_REQUIRED = "user_action_required"
    NONE = "none"


class LogLevel(Enum):
    """Log filter threshold. Lower values are more restrictive."""
    ERROR = 0
    WARN = 1
    INFO = 2
    DEBUG = 3

    def allows(self, level: 'LogLevel') -> bool:
        """Return True if an entry at ``level`` passes this threshold."""
        return level.value <= self.value

    @classmethod
    def from_name(cls, name: str) -> 'LogLevel':
        """Parse a level name such as ``"warn"`` or ``"WARNING"``."""
        normalized = name.strip().upper()
        if normalized == "WARNING":
            normalized = "WARN"
        try:
            return cls[normalized]
        except KeyError:
            raise ValueError(f"Unknown log level: {name!r}") from None


@dataclass(frozen=True)
class ErrorContext:
    """Identifies who failed and what it was doing."""
    component: str
    operation: str
    session_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @property
    def key(self) -> str:
        """Retry-state key for this operation."""
        return f"{self.component}:{self.operation}"

    def to_dict(self) -> dict:
        """Convert to dictionary for log output."""
        data: Dict[str, Any] = {
            "component": self.component,
            "operation": self.operation,
        }
        if self.session_id is not None:
            data["sessionId"] = self.session_id
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


@dataclass(frozen=True)
class ErrorHandlingResult:
    """Decision produced for one classified failure."""
    handled: bool
    recovery_action: RecoveryAction
    user_message: str
    retryable: bool
    fallback_data: Any = None


@dataclass
class TelemetryEntry:
    """A structured, timestamped record kept in the telemetry buffer."""
    event: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    properties: Dict[str, Any] = field(default_factory=dict)
    measurements: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "event": self.event,
            "timestamp": self.timestamp.isoformat(),
            "properties": dict(self.properties),
            "measurements": dict(self.measurements),
        }


class LogSink(Protocol):
    """Output surface the host provides for log lines."""

    def append_line(self, line: str) -> None:
        """Append a single line."""
        ...

    def show(self) -> None:
        """Reveal the output surface."""
        ...

    def hide(self) -> None:
        """Hide the output surface."""
        ...

    def dispose(self) -> None:
        """Release the output surface."""
        ...


class NotificationSink(Protocol):
    """Host UI capable of showing messages with optional action buttons."""

    def show_error(self, message: str, *actions: str) -> Optional[str]:
        """Show an error message. Returns the chosen action, if any."""
        ...

    def show_warning(self, message: str, *actions: str) -> Optional[str]:
        """Show a warning message. Returns the chosen action, if any."""
        ...

    def show_information(self, message: str, *actions: str) -> Optional[str]:
        """Show an informational message. Returns the chosen action, if any."""
        ...
