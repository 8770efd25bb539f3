"""Notification payloads emitted during a recurring pull's lifecycle"""

from dataclasses import dataclass

PAID = "paid"
FAILED = "failed"
END = "end"

TOPICS = (PAID, FAILED, END)


@dataclass(frozen=True)
class PaidEvent:
    """An attempt succeeded"""

    id: str
    total_received: str  # Decimal rendered as string


@dataclass(frozen=True)
class FailedEvent:
    """An attempt failed"""

    id: str
    partial_amount: str  # "0" when nothing is known to be received


@dataclass(frozen=True)
class EndEvent:
    """No further cycles will run for this id"""

    id: str
