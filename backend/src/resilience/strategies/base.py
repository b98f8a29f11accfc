"""
Base class for backoff strategies.
"""
from abc import ABC, abstractmethod


class BaseStrategy(ABC):
    """Computes the pause between two attempts of the same operation."""

    def __init__(self, max_delay: float = 60.0):
        self.max_delay = max_delay

    @abstractmethod
    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay before the next attempt.

        Args:
            attempt: Number of retries already performed (0-indexed)

        Returns:
            Delay in seconds
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy name for logging."""
        pass
