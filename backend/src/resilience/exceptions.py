"""
Exceptions for the resilience core.
"""
from .types import ErrorCategory


class ResilienceError(Exception):
    """Base exception for the resilience core."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN):
        super().__init__(message)
        self.category = category


class OperationTimeoutError(ResilienceError):
    """Raised into the failure path when an operation loses the timeout race."""

    def __init__(self, message: str, timeout_ms: float, category: ErrorCategory = ErrorCategory.UNKNOWN):
        super().__init__(message, category)
        self.timeout_ms = timeout_ms
