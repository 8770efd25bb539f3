"""Runtime state of active recurring pulls"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional, Union

from recurra.domain.config.pull import RecurringPullSnapshot, RecurringPullSpec

if TYPE_CHECKING:
    from recurra.infrastructure.timer import Timer

# Cycle target of a pull without a cycle limit
UNBOUNDED = math.inf


@dataclass
class RetryState:
    """Retry loop of one failed cycle"""

    attempts_remaining: int
    timer: Optional[Timer] = None


@dataclass
class ActiveRecurringPull:
    """Mutable record of a recurring pull"""

    id: str
    spec: RecurringPullSpec
    cycle: int = 1  # The first attempt has already run
    cycles_target: Union[int, float] = UNBOUNDED
    main_timer: Optional[Timer] = None
    retries: Dict[int, RetryState] = field(default_factory=dict)
    ended: bool = False  # "end" already emitted
    closed: bool = False  # Removed from the registry
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    finished: asyncio.Event = field(default_factory=asyncio.Event)

    @classmethod
    def from_spec(cls, pull_id: str, spec: RecurringPullSpec) -> ActiveRecurringPull:
        target = UNBOUNDED if spec.cycles is None else spec.cycles
        return cls(id=pull_id, spec=spec, cycles_target=target)

    @property
    def reached_target(self) -> bool:
        """Check if the final cycle has been run"""
        return self.cycle >= self.cycles_target

    @property
    def is_settled(self) -> bool:
        """Check if the final cycle finished and no retry loop is outstanding"""
        return self.ended and not self.retries

    def snapshot(self) -> RecurringPullSnapshot:
        return RecurringPullSnapshot(**self.spec.model_dump(), cycle=self.cycle)
