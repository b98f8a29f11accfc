"""
Configuration for the resilience core.
"""
import os
from dataclasses import dataclass

from .types import LogLevel


@dataclass
class ResilienceConfig:
    """Tunables for logging, telemetry and retry behavior."""
    log_level: LogLevel = LogLevel.INFO
    max_retry_attempts: int = 3
    telemetry_capacity: int = 1000
    retry_initial_delay: float = 0.1
    retry_backoff_factor: float = 2.0
    retry_max_delay: float = 2.0
    retry_jitter: bool = False
    slow_operation_threshold_ms: float = 100.0

    def __post_init__(self):
        if self.max_retry_attempts < 0:
            raise ValueError("max_retry_attempts must be >= 0")
        if self.telemetry_capacity < 1:
            raise ValueError("telemetry_capacity must be >= 1")
        if self.retry_initial_delay < 0 or self.retry_max_delay < 0:
            raise ValueError("retry delays must be >= 0")

    @classmethod
    def from_env(cls) -> 'ResilienceConfig':
        """Build a config from SESSION_RECAP_* environment variables."""
        config = cls()

        level = os.environ.get("SESSION_RECAP_LOG_LEVEL")
        if level:
            config.log_level = LogLevel.from_name(level)

        max_retries = os.environ.get("SESSION_RECAP_MAX_RETRIES")
        if max_retries:
            config.max_retry_attempts = int(max_retries)

        capacity = os.environ.get("SESSION_RECAP_TELEMETRY_CAPACITY")
        if capacity:
            config.telemetry_capacity = int(capacity)

        delay = os.environ.get("SESSION_RECAP_RETRY_DELAY")
        if delay:
            config.retry_initial_delay = float(delay)

        # Re-run validation on the overridden values
        config.__post_init__()
        return config
