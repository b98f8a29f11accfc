"""
Fixed delay strategy.
"""
from .base import BaseStrategy


class FixedDelayStrategy(BaseStrategy):
    """Waits the same amount of time before every retry. A delay of 0 retries immediately."""

    def __init__(self, delay: float = 0.0):
        super().__init__(max_delay=delay)
        self.delay = delay

    def calculate_delay(self, attempt: int) -> float:
        return self.delay

    @property
    def name(self) -> str:
        return f"FixedDelay({self.delay}s)"
