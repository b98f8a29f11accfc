"""Category-aware error classifier and retry gate."""
import logging
from collections.abc import Callable
from typing import Any

from ..logging_service import LoggingService
from ..types import (
    ErrorCategory,
    ErrorContext,
    ErrorHandlingResult,
    NotificationSink,
    RecoveryAction,
)
from . import patterns
from .patterns import COMPONENT_CATEGORIES, MESSAGE_CATEGORY_HINTS, NON_RETRYABLE_PATTERNS

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3

Handler = Callable[[BaseException, ErrorContext], ErrorHandlingResult]


def infer_category(error: BaseException, context: ErrorContext) -> ErrorCategory:
    """Infer a category from the component name, then from the message.

    An exact component-name match always wins over message hints; message
    hints are checked in the order of ``MESSAGE_CATEGORY_HINTS``.
    """
    category = COMPONENT_CATEGORIES.get(context.component)
    if category is not None:
        return category

    message = str(error)
    for hinted, hints in MESSAGE_CATEGORY_HINTS:
        if any(hint.search(message) for hint in hints):
            return hinted

    return ErrorCategory.UNKNOWN


class ErrorClassifier:
    """Maps raw failures to recovery decisions and owns the retry budget.

    Every classification is recorded through the logging service before the
    decision is returned. Retry counters are keyed by ``component:operation``
    and live until reset or until the classifier is disposed.
    """

    def __init__(
        self,
        logging_service: LoggingService,
        notifier: NotificationSink,
        max_attempts: int = MAX_ATTEMPTS
    ):
        self._logging = logging_service
        self._notifier = notifier
        self.max_attempts = max_attempts
        self._retry_attempts: dict[str, int] = {}
        self._handlers: dict[ErrorCategory, Handler] = {
            ErrorCategory.STORAGE: self.handle_storage_error,
            ErrorCategory.GIT: self.handle_git_error,
            ErrorCategory.AI_SERVICE: self.handle_ai_service_error,
            ErrorCategory.TERMINAL: self.handle_terminal_error,
            ErrorCategory.UI: self.handle_ui_error,
            ErrorCategory.NETWORK: self.handle_network_error,
            ErrorCategory.UNKNOWN: self.handle_unknown_error,
        }

    def classify(
        self,
        error: BaseException,
        context: ErrorContext,
        category: ErrorCategory
    ) -> ErrorHandlingResult:
        """Dispatch to the handler registered for ``category``."""
        result = self._handlers[category](error, context)
        logger.debug(
            f"Classified {type(error).__name__} from {context.key} as {category.value} "
            f"-> {result.recovery_action.value} (retryable={result.retryable})"
        )
        return result

    def handle_storage_error(self, error: BaseException, context: ErrorContext) -> ErrorHandlingResult:
        self._logging.error(context.component, f"Storage error during {context.operation}", error, context)

        if patterns.FILE_NOT_FOUND.matches(error):
            return ErrorHandlingResult(
                handled=True,
                recovery_action=RecoveryAction.FALLBACK,
                user_message="Session data file not found. Starting with a fresh session.",
                retryable=False
            )

        if patterns.PERMISSION_DENIED.matches(error):
            return ErrorHandlingResult(
                handled=True,
                recovery_action=RecoveryAction.USER_ACTION_REQUIRED,
                user_message="Permission denied accessing session data. Please check file permissions.",
                retryable=False
            )

        if patterns.NO_SPACE.matches(error):
            # Retryable once the user has freed space
            return ErrorHandlingResult(
                handled=True,
                recovery_action=RecoveryAction.USER_ACTION_REQUIRED,
                user_message="Insufficient disk space to save session data. Please free up some space.",
                retryable=True
            )

        return ErrorHandlingResult(
            handled=True,
            recovery_action=RecoveryAction.RETRY,
            user_message="Failed to access session data. Retrying...",
            retryable=True
        )

    def handle_git_error(self, error: BaseException, context: ErrorContext) -> ErrorHandlingResult:
        self._logging.error(context.component, f"Git error during {context.operation}", error, context)

        if patterns.NOT_A_REPOSITORY.matches(error):
            return ErrorHandlingResult(
                handled=True,
                recovery_action=RecoveryAction.DISABLE_FEATURE,
                user_message="Git repository not detected. Commit tracking is disabled for this workspace.",
                retryable=False,
                fallback_data={"gitCommits": []}
            )

        if patterns.GIT_MISSING.matches(error):
            return ErrorHandlingResult(
                handled=True,
                recovery_action=RecoveryAction.DISABLE_FEATURE,
                user_message="Git command not found. Please install Git to enable commit tracking.",
                retryable=False,
                fallback_data={"gitCommits": []}
            )

        if patterns.TIMEOUT.matches(error):
            return ErrorHandlingResult(
                handled=True,
                recovery_action=RecoveryAction.RETRY,
                user_message="Git operation timed out. Retrying...",
                retryable=True
            )

        return ErrorHandlingResult(
            handled=True,
            recovery_action=RecoveryAction.FALLBACK,
            user_message="Git activity could not be read. Showing the session without commits.",
            retryable=False,
            fallback_data={"gitCommits": []}
        )

    def handle_ai_service_error(self, error: BaseException, context: ErrorContext) -> ErrorHandlingResult:
        self._logging.error(context.component, f"AI service error during {context.operation}", error, context)

        if patterns.AUTHENTICATION.matches(error):
            return ErrorHandlingResult(
                handled=True,
                recovery_action=RecoveryAction.FALLBACK,
                user_message="AI service authentication failed. Please check your API key. Using basic summary instead.",
                retryable=False
            )

        if patterns.RATE_LIMIT.matches(error):
            return ErrorHandlingResult(
                handled=True,
                recovery_action=RecoveryAction.FALLBACK,
                user_message="AI service rate limit reached. Using basic summary for now.",
                retryable=True
            )

        if patterns.NETWORK.matches(error) or patterns.TIMEOUT.matches(error):
            return ErrorHandlingResult(
                handled=True,
                recovery_action=RecoveryAction.RETRY,
                user_message="AI service temporarily unavailable. Retrying...",
                retryable=True
            )

        return ErrorHandlingResult(
            handled=True,
            recovery_action=RecoveryAction.FALLBACK,
            user_message="AI summary unavailable. Using basic summary instead.",
            retryable=False
        )

    def handle_terminal_error(self, error: BaseException, context: ErrorContext) -> ErrorHandlingResult:
        self._logging.error(context.component, f"Terminal error during {context.operation}", error, context)

        if patterns.PERMISSION_DENIED.matches(error):
            return ErrorHandlingResult(
                handled=True,
                recovery_action=RecoveryAction.DISABLE_FEATURE,
                user_message="Terminal access denied. Terminal error tracking has been disabled.",
                retryable=False,
                fallback_data={"terminalErrors": []}
            )

        return ErrorHandlingResult(
            handled=True,
            recovery_action=RecoveryAction.FALLBACK,
            user_message="Terminal monitoring encountered an error. Terminal errors will not be shown.",
            retryable=False,
            fallback_data={"terminalErrors": []}
        )

    def handle_ui_error(self, error: BaseException, context: ErrorContext) -> ErrorHandlingResult:
        self._logging.error(context.component, f"UI error during {context.operation}", error, context)

        return ErrorHandlingResult(
            handled=True,
            recovery_action=RecoveryAction.RETRY,
            user_message="UI panel failed to load. Retrying...",
            retryable=True
        )

    def handle_network_error(self, error: BaseException, context: ErrorContext) -> ErrorHandlingResult:
        self._logging.error(context.component, f"Network error during {context.operation}", error, context)

        return ErrorHandlingResult(
            handled=True,
            recovery_action=RecoveryAction.RETRY,
            user_message="Network request failed. Retrying...",
            retryable=True
        )

    def handle_unknown_error(self, error: BaseException, context: ErrorContext) -> ErrorHandlingResult:
        self._logging.error(context.component, f"Unexpected error during {context.operation}", error, context)

        return ErrorHandlingResult(
            handled=True,
            recovery_action=RecoveryAction.NONE,
            user_message=f"An unexpected error occurred in {context.component}.",
            retryable=False
        )

    def should_retry(self, operation_key: str, error: BaseException) -> bool:
        """Consume one unit of retry budget for ``operation_key``.

        Permission-denied and not-found failures are refused without
        touching the counter.
        """
        if any(pattern.matches(error) for pattern in NON_RETRYABLE_PATTERNS):
            logger.debug(f"Not retrying {operation_key}: non-retryable failure")
            return False

        attempts = self._retry_attempts.get(operation_key, 0)
        if attempts >= self.max_attempts:
            logger.debug(f"Retry budget exhausted for {operation_key} ({attempts}/{self.max_attempts})")
            return False

        self._retry_attempts[operation_key] = attempts + 1
        return True

    def reset_retry_counter(self, operation_key: str) -> None:
        self._retry_attempts.pop(operation_key, None)

    def get_retry_count(self, operation_key: str) -> int:
        return self._retry_attempts.get(operation_key, 0)

    def show_user_error(self, message: str, actions: list[str] | None = None) -> Any:
        return self._notifier.show_error(message, *(actions or []))

    def show_user_warning(self, message: str) -> Any:
        return self._notifier.show_warning(message)

    def show_user_info(self, message: str) -> Any:
        return self._notifier.show_information(message)

    def dispose(self) -> None:
        """Drop all retry counters."""
        self._retry_attempts.clear()
