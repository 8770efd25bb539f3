"""Pull executor configuration model."""

from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ExecutorConfig(BaseModel):
    """Configuration for the pull executor.

    Attributes:
        type: Executor implementation
        timeout: Default request timeout in seconds (http)
        auth_token: Bearer token sent to the payer's endpoint (http)
        delay: Simulated latency in seconds (mock)
        outcomes: Success/failure pattern, repeated (mock)
        partial_amount: Amount reported as received on failure (mock)
    """

    type: Literal["mock", "http"] = "mock"
    timeout: float = Field(30.0, gt=0.0)
    auth_token: Optional[str] = None
    delay: float = Field(0.0, ge=0.0)
    outcomes: List[bool] = Field(default_factory=list)
    partial_amount: Decimal = Field(Decimal("0"), ge=0)
