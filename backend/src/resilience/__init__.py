"""
Resilience core: failure classification, recovery execution and telemetry.
"""
from .classification import MAX_ATTEMPTS, ErrorClassifier, infer_category
from .config import ResilienceConfig
from .decorator import resilient
from .exceptions import OperationTimeoutError, ResilienceError
from .logging_service import LoggingService
from .performance import OperationMetrics, PerformanceMonitor
from .service import ErrorHandlingService
from .sinks import LoggerLogSink, LoggerNotificationSink, MemoryLogSink
from .types import (
    MISSING,
    ErrorCategory,
    ErrorContext,
    ErrorHandlingResult,
    LogLevel,
    LogSink,
    NotificationSink,
    RecoveryAction,
    TelemetryEntry,
)


__all__ = [
    # Orchestration
    'ErrorHandlingService',
    'resilient',

    # Classification
    'ErrorClassifier',
    'infer_category',
    'MAX_ATTEMPTS',

    # Logging and telemetry
    'LoggingService',
    'PerformanceMonitor',
    'OperationMetrics',
    'TelemetryEntry',
    'LogLevel',

    # Types
    'ErrorCategory',
    'ErrorContext',
    'ErrorHandlingResult',
    'RecoveryAction',
    'MISSING',
    'LogSink',
    'NotificationSink',

    # Sinks
    'MemoryLogSink',
    'LoggerLogSink',
    'LoggerNotificationSink',

    # Configuration and exceptions
    'ResilienceConfig',
    'ResilienceError',
    'OperationTimeoutError',
]
