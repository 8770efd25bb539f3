"""Main application configuration model."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recurra.domain.config.executor import ExecutorConfig
from recurra.domain.config.pull import RecurringPullEntry
from recurra.domain.config.retry import RetryConfig


class AppConfig(BaseModel):
    """Main application configuration.

    Root model aggregating all configuration sections. Validation is performed
    at load time to fail fast on configuration errors.

    Attributes:
        executor: Pull executor configuration
        retry: HTTP transport retry configuration
        pulls: Recurring pulls to schedule
    """

    executor: ExecutorConfig = Field(default_factory=ExecutorConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    pulls: List[RecurringPullEntry] = Field(default_factory=list)

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "executor": {
                    "type": "http",
                    "timeout": 30.0,
                    "auth_token": None,
                },
                "retry": {
                    "max_attempts": 3,
                    "initial_delay": 1.0,
                    "backoff_multiplier": 2.0,
                    "jitter": 0.1,
                },
                "pulls": [
                    {
                        "id": "rent",
                        "pointer": "$wallet.example/alice",
                        "amount": "1200",
                        "interval": "P1M",
                        "cycles": 12,
                        "retry": {"attempts": 3, "interval": "P1D"},
                    }
                ],
            }
        },
    )

    @field_validator("pulls")
    @classmethod
    def check_unique_ids(cls, pulls: List[RecurringPullEntry]) -> List[RecurringPullEntry]:
        seen = set()
        for pull in pulls:
            if pull.id in seen:
                raise ValueError(f"duplicate pull id: {pull.id}")
            seen.add(pull.id)
        return pulls
