"""
Entry point other subsystems use to run operations under the resilience policy.
"""
import asyncio
import functools
import inspect
import logging
from typing import Any, Optional

from .classification import ErrorClassifier, infer_category
from .config import ResilienceConfig
from .exceptions import OperationTimeoutError
from .logging_service import LoggingService
from .performance import PerformanceMonitor
from .sinks import LoggerLogSink, LoggerNotificationSink
from .strategies import BaseStrategy, ExponentialBackoffStrategy
from .types import (
    MISSING,
    ErrorCategory,
    ErrorContext,
    ErrorHandlingResult,
    LogLevel,
    LogSink,
    NotificationSink,
    Operation,
    RecoveryAction,
)

logger = logging.getLogger(__name__)


async def _invoke(operation: Operation) -> Any:
    """Call an operation and await its result when it is awaitable."""
    result = operation()
    if inspect.isawaitable(result):
        result = await result
    return result


async def _invoke_in_executor(operation: Operation) -> Any:
    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(None, operation)
    if inspect.isawaitable(result):
        result = await result
    return result


def _schedule(operation: Operation) -> asyncio.Future:
    """Start an operation as an independent task so it can be raced against a timer."""
    if inspect.iscoroutinefunction(operation):
        return asyncio.ensure_future(operation())
    # Sync callables run in the default executor so the loop stays free for the timer
    return asyncio.ensure_future(_invoke_in_executor(operation))


def _discard_late_result(operation_key: str, future: asyncio.Future) -> None:
    """Consume the outcome of an operation that already lost its timeout race."""
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.debug(f"Discarded late failure of {operation_key} after timeout: {error}")
    else:
        logger.debug(f"Discarded late result of {operation_key} after timeout")


class ErrorHandlingService:
    """Executes operations with classification, retry, fallback and timeouts.

    Composes a ``LoggingService`` and an ``ErrorClassifier``. All state (the
    retry budget and the telemetry buffer) belongs to this instance, so
    independent services never share counters.

    Example:
        service = ErrorHandlingService(sink=MemoryLogSink())
        commits = await service.execute_with_error_handling(
            monitor.get_commits,
            ErrorContext("GitActivityMonitor", "getCommits"),
        )
    """

    def __init__(
        self,
        sink: Optional[LogSink] = None,
        notifier: Optional[NotificationSink] = None,
        config: Optional[ResilienceConfig] = None,
        strategy: Optional[BaseStrategy] = None
    ):
        self.config = config or ResilienceConfig()
        self._logging = LoggingService(
            sink or LoggerLogSink(),
            level=self.config.log_level,
            telemetry_capacity=self.config.telemetry_capacity
        )
        self._classifier = ErrorClassifier(
            self._logging,
            notifier or LoggerNotificationSink(),
            max_attempts=self.config.max_retry_attempts
        )
        self._strategy = strategy or ExponentialBackoffStrategy(
            initial_delay=self.config.retry_initial_delay,
            backoff_factor=self.config.retry_backoff_factor,
            max_delay=self.config.retry_max_delay,
            jitter=self.config.retry_jitter
        )
        self._performance = PerformanceMonitor(self._logging, self.config.slow_operation_threshold_ms)

    def get_logging_service(self) -> LoggingService:
        return self._logging

    def get_classifier(self) -> ErrorClassifier:
        return self._classifier

    @property
    def performance_monitor(self) -> PerformanceMonitor:
        return self._performance

    def handle_error(
        self,
        error: BaseException,
        context: ErrorContext,
        category: Optional[ErrorCategory] = None
    ) -> ErrorHandlingResult:
        """Classify a failure, inferring its category when none is given."""
        if category is None:
            category = infer_category(error, context)
        return self._classifier.classify(error, context, category)

    async def execute_with_error_handling(
        self,
        operation: Operation,
        context: ErrorContext,
        fallback_value: Any = MISSING,
        category: Optional[ErrorCategory] = None
    ) -> Any:
        """Run ``operation``, retrying while the classifier allows it.

        When the failure is not retried, the result is ``fallback_value`` if
        one was passed, else the classifier's fallback data, else the
        original exception is raised unchanged.
        """
        attempt = 0
        while True:
            try:
                result = await _invoke(operation)
            except Exception as error:
                outcome = self.handle_error(error, context, category)
                if (
                    outcome.recovery_action is RecoveryAction.RETRY
                    and self._classifier.should_retry(context.key, error)
                ):
                    delay = self._strategy.calculate_delay(attempt)
                    attempt += 1
                    self._logging.debug(
                        context.component,
                        f"Retrying {context.operation} (retry {attempt}/{self._classifier.max_attempts})",
                        {"delaySeconds": round(delay, 3), "strategy": self._strategy.name}
                    )
                    if delay > 0:
                        await asyncio.sleep(delay)
                    continue
                return self._resolve_fallback(error, outcome, context, fallback_value)

            self._classifier.reset_retry_counter(context.key)
            return result

    async def execute_with_timeout(
        self,
        operation: Operation,
        timeout_ms: float,
        context: ErrorContext,
        fallback_value: Any = MISSING
    ) -> Any:
        """Race ``operation`` against a ``timeout_ms`` timer.

        The operation is not cancelled when the timer wins; its eventual
        outcome is consumed and ignored. Failures and timeouts resolve to
        ``fallback_value`` when given, otherwise they are raised.
        """
        future = _schedule(operation)
        try:
            done, _ = await asyncio.wait({future}, timeout=max(timeout_ms, 0) / 1000)
        except asyncio.CancelledError:
            future.add_done_callback(functools.partial(_discard_late_result, context.key))
            raise

        if future in done:
            try:
                return future.result()
            except Exception as error:
                outcome = self.handle_error(error, context)
                return self._resolve_fallback(error, outcome, context, fallback_value, use_fallback_data=False)

        future.add_done_callback(functools.partial(_discard_late_result, context.key))
        timeout_error = OperationTimeoutError(
            f"{context.operation} timed out after {timeout_ms}ms",
            timeout_ms
        )
        outcome = self.handle_error(timeout_error, context)
        return self._resolve_fallback(timeout_error, outcome, context, fallback_value, use_fallback_data=False)

    def handle_warning(self, component: str, message: str, context: Optional[ErrorContext] = None) -> None:
        self._logging.warn(component, message, context)

    def log_info(self, component: str, message: str, notify_user: bool = False) -> None:
        self._logging.info(component, message)
        if notify_user:
            self._classifier.show_user_info(message)

    def log_debug(self, component: str, message: str, data: Any = None) -> None:
        self._logging.debug(component, message, data)

    def set_log_level(self, level: LogLevel) -> None:
        self._logging.set_level(level)

    def get_telemetry_summary(self) -> dict[str, Any]:
        return self._logging.get_telemetry_summary()

    def show_logs(self) -> None:
        self._logging.show()

    def dispose(self) -> None:
        """Release the sink and drop telemetry, retry counters and metrics."""
        self._performance.dispose()
        self._classifier.dispose()
        self._logging.dispose()

    def _resolve_fallback(
        self,
        error: Exception,
        outcome: ErrorHandlingResult,
        context: ErrorContext,
        fallback_value: Any,
        use_fallback_data: bool = True
    ) -> Any:
        if fallback_value is not MISSING:
            self._logging.info(context.component, f"Using provided fallback value for {context.operation}")
            return fallback_value

        if use_fallback_data and outcome.fallback_data is not None:
            self._logging.info(
                context.component,
                f"Using {outcome.recovery_action.value} fallback data for {context.operation}"
            )
            return outcome.fallback_data

        raise error
