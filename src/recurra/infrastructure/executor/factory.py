"""Factory for creating pull executors"""

import logging
from typing import Any, Dict

from recurra.infrastructure.executor.base import PullExecutor
from recurra.infrastructure.executor.http import HttpPullExecutor
from recurra.infrastructure.executor.mock import MockPullExecutor

logger = logging.getLogger(__name__)


class PullExecutorFactory:
    """Factory for creating pull executor instances"""

    EXECUTORS = {
        "mock": MockPullExecutor,
        "http": HttpPullExecutor,
    }

    @classmethod
    def create(cls, executor_type: str, config: Dict[str, Any] = None) -> PullExecutor:
        """Create pull executor instance

        Args:
            executor_type: Type of executor (mock, http)
            config: Executor configuration

        Returns:
            PullExecutor instance

        Raises:
            ValueError: If executor type is not supported
        """
        if config is None:
            config = {}

        executor_type_lower = executor_type.lower()

        if executor_type_lower not in cls.EXECUTORS:
            available = ", ".join(cls.EXECUTORS.keys())
            raise ValueError(
                f"Unknown pull executor: {executor_type}. "
                f"Available executors: {available}"
            )

        executor_class = cls.EXECUTORS[executor_type_lower]
        logger.info(f"Creating {executor_type_lower} executor")
        return executor_class(config)
