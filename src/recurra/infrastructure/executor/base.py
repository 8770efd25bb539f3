"""Base pull executor interface"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from recurra.domain.models.pull import PullRequest, PullResult


class PullExecutor(ABC):
    """Abstract base class for pull executors"""

    def __init__(self, config: Dict[str, Any]):
        """Initialize executor with configuration

        Args:
            config: Executor configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        self.config = config
        self._validate_config(config)

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate executor configuration

        Args:
            config: Configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        # Override in subclasses for specific validation
        pass

    @abstractmethod
    async def execute(self, request: PullRequest) -> PullResult:
        """Perform a single pull attempt

        Args:
            request: What to pull and from where

        Returns:
            Amount actually received

        Raises:
            PaymentError: If the attempt failed, with the partial amount received
        """
        pass
