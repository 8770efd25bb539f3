"""Configuration models with Pydantic validation."""

from recurra.domain.config.app import AppConfig
from recurra.domain.config.executor import ExecutorConfig
from recurra.domain.config.pull import (
    RecurringPullEntry,
    RecurringPullSnapshot,
    RecurringPullSpec,
    RetryPolicy,
)
from recurra.domain.config.retry import RetryConfig

__all__ = [
    "AppConfig",
    "ExecutorConfig",
    "RetryConfig",
    "RecurringPullSpec",
    "RecurringPullEntry",
    "RecurringPullSnapshot",
    "RetryPolicy",
]
