"""
Tests for resilience configuration.
"""
import pytest

from backend.src.resilience import LogLevel, ResilienceConfig


class TestResilienceConfig:
    """Test defaults, validation and environment overrides."""

    def test_defaults(self):
        config = ResilienceConfig()

        assert config.log_level == LogLevel.INFO
        assert config.max_retry_attempts == 3
        assert config.telemetry_capacity == 1000
        assert config.retry_initial_delay == 0.1
        assert config.retry_jitter is False

    @pytest.mark.parametrize("kwargs", [
        {"max_retry_attempts": -1},
        {"telemetry_capacity": 0},
        {"retry_initial_delay": -0.5},
        {"retry_max_delay": -1.0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            ResilienceConfig(**kwargs)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SESSION_RECAP_LOG_LEVEL", "debug")
        monkeypatch.setenv("SESSION_RECAP_MAX_RETRIES", "5")
        monkeypatch.setenv("SESSION_RECAP_TELEMETRY_CAPACITY", "50")
        monkeypatch.setenv("SESSION_RECAP_RETRY_DELAY", "0")

        config = ResilienceConfig.from_env()

        assert config.log_level == LogLevel.DEBUG
        assert config.max_retry_attempts == 5
        assert config.telemetry_capacity == 50
        assert config.retry_initial_delay == 0.0

    def test_from_env_without_overrides(self, monkeypatch):
        for name in (
            "SESSION_RECAP_LOG_LEVEL",
            "SESSION_RECAP_MAX_RETRIES",
            "SESSION_RECAP_TELEMETRY_CAPACITY",
            "SESSION_RECAP_RETRY_DELAY",
        ):
            monkeypatch.delenv(name, raising=False)

        assert ResilienceConfig.from_env() == ResilienceConfig()

    def test_from_env_rejects_invalid_values(self, monkeypatch):
        monkeypatch.setenv("SESSION_RECAP_TELEMETRY_CAPACITY", "0")
        with pytest.raises(ValueError):
            ResilienceConfig.from_env()

    def test_from_env_rejects_unknown_level(self, monkeypatch):
        monkeypatch.setenv("SESSION_RECAP_LOG_LEVEL", "verbose")
        with pytest.raises(ValueError):
            ResilienceConfig.from_env()
