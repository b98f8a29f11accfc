"""
Log and notification sinks for running without an editor host.
"""
import logging
from typing import Optional


logger = logging.getLogger(__name__)


class MemoryLogSink:
    """In-memory log sink.

    Useful for testing and for headless runs where no output panel exists.
    """

    def __init__(self, name: str = "Session Recap"):
        self.name = name
        self.lines: list[str] = []
        self.visible = False
        self.disposed = False

    def append_line(self, line: str) -> None:
        self.lines.append(line)

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def dispose(self) -> None:
        self.disposed = True
        self.visible = False

    def clear(self) -> None:
        """Drop all collected lines."""
        self.lines.clear()


class LoggerLogSink:
    """Log sink that writes each line to a stdlib logger."""

    def __init__(self, logger_name: str = "session_recap.output"):
        self._logger = logging.getLogger(logger_name)

    def append_line(self, line: str) -> None:
        self._logger.info(line)

    def show(self) -> None:
        pass

    def hide(self) -> None:
        pass

    def dispose(self) -> None:
        pass


class LoggerNotificationSink:
    """Notification sink without a UI: messages are logged, no action is chosen."""

    def show_error(self, message: str, *actions: str) -> Optional[str]:
        logger.error(f"User notification: {message}")
        return None

    def show_warning(self, message: str, *actions: str) -> Optional[str]:
        logger.warning(f"User notification: {message}")
        return None

    def show_information(self, message: str, *actions: str) -> Optional[str]:
        logger.info(f"User notification: {message}")
        return None
