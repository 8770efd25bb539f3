"""Domain exceptions"""

from decimal import Decimal
from typing import Optional


class RecurraError(Exception):
    """Base class for recurring pull errors."""

    pass


class AlreadyExists(RecurraError):
    """A recurring pull with the same id is already active."""

    def __init__(self, pull_id: str):
        self.pull_id = pull_id
        super().__init__(f"Recurring pull payment already exists: {pull_id}")


class InvalidCycleCount(RecurraError):
    """A bounded recurring pull was requested with fewer than 2 cycles."""

    def __init__(self, cycles: int):
        self.cycles = cycles
        super().__init__(f"Recurring pull payment cannot have less than 2 cycles (got {cycles})")


class PaymentError(RecurraError):
    """A single pull attempt failed.

    Attributes:
        total_received: Amount received before the failure (None if unknown)
    """

    def __init__(self, message: str, total_received: Optional[Decimal] = None):
        self.total_received = total_received
        super().__init__(message)


class DurationError(ValueError):
    """A duration specification could not be resolved to milliseconds."""

    pass
