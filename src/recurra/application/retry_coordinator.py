"""Bounded retry loops for failed cycles"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from recurra.domain.models.state import ActiveRecurringPull, RetryState

if TYPE_CHECKING:
    from recurra.application.registry import RecurringPullRegistry

logger = logging.getLogger(__name__)


class RetryCoordinator:
    """Re-attempts a failed cycle until it succeeds or attempts run out.

    Each failed cycle gets its own entry in the record's ``retries`` map and its
    own timer; loops for different cycles run independently.
    """

    def __init__(self, registry: RecurringPullRegistry):
        self.registry = registry

    def schedule(self, record: ActiveRecurringPull, cycle: int) -> None:
        """Start the retry loop for a failed cycle

        Without a retry policy the cycle simply stays failed.
        """
        policy = record.spec.retry
        if policy is None:
            logger.debug(f"Cycle {cycle} failed, no retry policy. id={record.id}")
            return
        if record.closed or cycle in record.retries:
            return

        interval_ms = self.registry.resolve_duration(policy.interval)
        state = RetryState(attempts_remaining=policy.attempts)
        state.timer = self.registry.timer_factory(interval_ms, lambda: self.tick(record, cycle))
        record.retries[cycle] = state
        state.timer.start()
        logger.debug(
            f"Cycle {cycle} failed, retrying up to {policy.attempts} times "
            f"every {interval_ms:g} ms. id={record.id}"
        )

    async def tick(self, record: ActiveRecurringPull, cycle: int) -> None:
        """Run one retry attempt for a cycle"""
        async with record.lock:
            state = record.retries.get(cycle)
            if record.closed or state is None:
                # Resolved or stopped while this tick waited for the lock
                return

            succeeded = await self.registry.attempt(record)
            if record.closed:
                return

            if succeeded:
                logger.info(f"Cycle {cycle} recovered on retry. id={record.id}")
            else:
                state.attempts_remaining -= 1
                if state.attempts_remaining > 0:
                    return
                logger.warning(f"Giving up on cycle {cycle}, retries exhausted. id={record.id}")

            state.timer.cancel()
            del record.retries[cycle]

        self.registry.settle(record)
