"""Pull executors"""

from recurra.infrastructure.executor.base import PullExecutor
from recurra.infrastructure.executor.http import HttpPullExecutor
from recurra.infrastructure.executor.mock import MockPullExecutor

__all__ = ["PullExecutor", "HttpPullExecutor", "MockPullExecutor"]
