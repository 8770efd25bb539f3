"""Recurring pull specification models."""

from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recurra.domain.duration import resolve_duration

Duration = Union[str, int, float]


def _positive_duration(value: Duration) -> Duration:
    # Raises DurationError (a ValueError) which pydantic reports per field
    if resolve_duration(value) <= 0:
        raise ValueError("duration must be greater than zero")
    return value


class RetryPolicy(BaseModel):
    """Per-cycle retry policy.

    Attributes:
        attempts: Number of re-attempts after a cycle's attempt fails
        interval: Time between re-attempts
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    attempts: int = Field(..., gt=0)
    interval: Duration

    @field_validator("interval")
    @classmethod
    def check_interval(cls, value: Duration) -> Duration:
        return _positive_duration(value)


class RecurringPullSpec(BaseModel):
    """Description of a recurring pull payment.

    Attributes:
        pointer: Payment pointer or URL of the payer's endpoint
        amount: Amount to pull per cycle
        timeout: Optional per-attempt timeout
        interval: Time between cycles
        cycles: Total number of cycles (None = unbounded)
        retry: Optional retry policy for failed cycles
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    pointer: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    timeout: Optional[Duration] = None
    interval: Duration
    # Range is checked when the pull is started
    cycles: Optional[int] = None
    retry: Optional[RetryPolicy] = None

    @field_validator("interval")
    @classmethod
    def check_interval(cls, value: Duration) -> Duration:
        return _positive_duration(value)

    @field_validator("timeout")
    @classmethod
    def check_timeout(cls, value: Optional[Duration]) -> Optional[Duration]:
        if value is not None:
            _positive_duration(value)
        return value


class RecurringPullEntry(RecurringPullSpec):
    """A recurring pull as listed in the configuration file."""

    id: str = Field(..., min_length=1)

    def to_spec(self) -> RecurringPullSpec:
        """Strip the id and return the bare specification"""
        return RecurringPullSpec(**self.model_dump(exclude={"id"}))


class RecurringPullSnapshot(RecurringPullSpec):
    """Read-only view of an active recurring pull.

    Attributes:
        cycle: Number of cycles run so far (the first attempt counts as 1)
    """

    cycle: int = Field(..., ge=1)
