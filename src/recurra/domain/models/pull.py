"""Pull request/result models - the executor boundary"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class PullRequest:
    """A single pull attempt to perform"""

    pointer: str  # Payment pointer or URL
    amount: Decimal  # Amount to pull
    timeout_ms: Optional[float] = None  # Per-attempt timeout, None = executor default


@dataclass(frozen=True)
class PullResult:
    """Outcome of a successful pull attempt"""

    total_received: Decimal
