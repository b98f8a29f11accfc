"""
Tests for retry delay strategies.
"""
from backend.src.resilience.strategies import (
    BaseStrategy,
    ExponentialBackoffStrategy,
    FixedDelayStrategy,
)


class TestExponentialBackoffStrategy:
    """Test cases for ExponentialBackoffStrategy."""

    def test_exponential_delay_calculation(self):
        strategy = ExponentialBackoffStrategy(
            initial_delay=1.0,
            backoff_factor=2.0,
            max_delay=10.0,
            jitter=False
        )

        assert strategy.calculate_delay(0) == 1.0  # 1 * 2^0
        assert strategy.calculate_delay(1) == 2.0  # 1 * 2^1
        assert strategy.calculate_delay(2) == 4.0  # 1 * 2^2
        assert strategy.calculate_delay(3) == 8.0  # 1 * 2^3
        assert strategy.calculate_delay(4) == 10.0  # capped at max_delay

    def test_defaults(self):
        strategy = ExponentialBackoffStrategy()

        assert strategy.calculate_delay(0) == 0.1
        assert strategy.calculate_delay(10) == 2.0

    def test_zero_initial_delay_retries_immediately(self):
        strategy = ExponentialBackoffStrategy(initial_delay=0.0, jitter=True)
        assert [strategy.calculate_delay(i) for i in range(3)] == [0.0, 0.0, 0.0]

    def test_jitter(self):
        """Test that jitter adds randomness within its range."""
        strategy = ExponentialBackoffStrategy(
            initial_delay=10.0,
            backoff_factor=1.0,
            max_delay=20.0,
            jitter=True,
            jitter_range=0.5
        )

        delays = [strategy.calculate_delay(0) for _ in range(20)]

        assert len(set(delays)) > 1
        for delay in delays:
            assert 5.0 <= delay <= 15.0  # 10.0 +/- 50%

    def test_jitter_never_exceeds_max_delay(self):
        strategy = ExponentialBackoffStrategy(
            initial_delay=1.0,
            max_delay=1.0,
            jitter=True,
            jitter_range=0.5
        )

        for _ in range(20):
            assert 0.0 <= strategy.calculate_delay(5) <= 1.0

    def test_name(self):
        strategy = ExponentialBackoffStrategy(initial_delay=0.5, backoff_factor=3.0)
        assert strategy.name == "ExponentialBackoff(initial=0.5, factor=3.0)"


class TestFixedDelayStrategy:
    """Test cases for FixedDelayStrategy."""

    def test_fixed_delay(self):
        strategy = FixedDelayStrategy(delay=5.0)

        assert strategy.calculate_delay(0) == 5.0
        assert strategy.calculate_delay(10) == 5.0

    def test_default_is_immediate(self):
        assert FixedDelayStrategy().calculate_delay(3) == 0.0

    def test_name(self):
        assert FixedDelayStrategy(delay=0.25).name == "FixedDelay(0.25s)"

    def test_is_a_strategy(self):
        assert isinstance(FixedDelayStrategy(), BaseStrategy)
