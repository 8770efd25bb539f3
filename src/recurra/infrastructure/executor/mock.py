"""Mock pull executor for testing and dry runs"""

import asyncio
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from recurra.domain.errors import PaymentError
from recurra.domain.models.pull import PullRequest, PullResult
from recurra.infrastructure.executor.base import PullExecutor


class MockPullExecutor(PullExecutor):
    """Mock executor that succeeds or fails following a fixed pattern"""

    def __init__(self, config: Dict[str, Any] = None):
        """Initialize mock executor

        Args:
            config: Optional configuration with:
                - delay: Simulated latency in seconds (default: 0)
                - outcomes: List of booleans, repeated; True = success (default: always succeed)
                - partial_amount: Amount reported as received on failure (default: 0)
        """
        if config is None:
            config = {}
        super().__init__(config)
        self.delay = config.get("delay", 0)
        self.outcomes: List[bool] = list(config.get("outcomes") or [])
        self.partial_amount = Decimal(str(config.get("partial_amount", 0)))
        self.calls: List[PullRequest] = []

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate mock executor configuration"""
        if "delay" in config and not isinstance(config["delay"], (int, float)):
            raise ValueError("delay must be a number")
        if "delay" in config and config["delay"] < 0:
            raise ValueError("delay must be non-negative")
        outcomes = config.get("outcomes")
        if outcomes and not all(isinstance(o, bool) for o in outcomes):
            raise ValueError("outcomes must be a list of booleans")
        if "partial_amount" in config:
            try:
                Decimal(str(config["partial_amount"]))
            except InvalidOperation as e:
                raise ValueError("partial_amount must be a decimal") from e

    async def execute(self, request: PullRequest) -> PullResult:
        """Pretend to pull the requested amount

        Args:
            request: Pull request (recorded in ``calls``)

        Returns:
            The full requested amount on success

        Raises:
            PaymentError: When the pattern says this attempt fails
        """
        attempt = len(self.calls)
        self.calls.append(request)

        if self.delay:
            await asyncio.sleep(self.delay)

        if self.outcomes and not self.outcomes[attempt % len(self.outcomes)]:
            raise PaymentError(
                f"Mock pull from {request.pointer} failed",
                total_received=self.partial_amount,
            )
        return PullResult(total_received=request.amount)
