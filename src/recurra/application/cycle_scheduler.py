"""Main per-id cycle loop"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from recurra.domain.models.events import END, EndEvent
from recurra.domain.models.state import ActiveRecurringPull

if TYPE_CHECKING:
    from recurra.application.registry import RecurringPullRegistry
    from recurra.application.retry_coordinator import RetryCoordinator

logger = logging.getLogger(__name__)


class CycleScheduler:
    """Advances a recurring pull by one cycle every interval"""

    def __init__(self, registry: RecurringPullRegistry, retry_coordinator: RetryCoordinator):
        self.registry = registry
        self.retry_coordinator = retry_coordinator

    def arm(self, record: ActiveRecurringPull, interval_ms: float) -> None:
        """Arm the main timer of a freshly registered record"""
        timer = self.registry.timer_factory(interval_ms, lambda: self.tick(record))
        record.main_timer = timer
        timer.start()
        logger.debug(f"Cycle timer armed every {interval_ms:g} ms. id={record.id}")

    async def tick(self, record: ActiveRecurringPull) -> None:
        """Run the next cycle

        The last cycle cancels the main timer before its attempt, emits "end"
        after it, and hands the record back to the registry, which removes it
        as soon as no retry loop is outstanding.
        """
        if record.closed or record.reached_target:
            return

        record.cycle += 1
        cycle = record.cycle
        final = record.reached_target
        if final and record.main_timer is not None:
            record.main_timer.cancel()

        logger.debug(f"Cycle {cycle}/{record.cycles_target}. id={record.id}")
        async with record.lock:
            succeeded = await self.registry.attempt(record)

        if record.closed:
            # Stopped while the attempt was in flight
            return

        if not succeeded:
            self.retry_coordinator.schedule(record, cycle)

        if final:
            record.ended = True
            self.registry.notifications.emit(END, EndEvent(id=record.id))
            self.registry.settle(record)
