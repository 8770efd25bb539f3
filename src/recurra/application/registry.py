"""Registry of active recurring pull payments"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Set

from recurra.application.cycle_scheduler import CycleScheduler
from recurra.application.retry_coordinator import RetryCoordinator
from recurra.domain.config.pull import RecurringPullSnapshot, RecurringPullSpec
from recurra.domain.duration import DurationSpec, resolve_duration
from recurra.domain.errors import AlreadyExists, InvalidCycleCount, PaymentError
from recurra.domain.models.events import END, FAILED, PAID, EndEvent, FailedEvent, PaidEvent
from recurra.domain.models.pull import PullRequest
from recurra.domain.models.state import ActiveRecurringPull
from recurra.infrastructure.executor.base import PullExecutor
from recurra.infrastructure.notifications import NotificationChannel
from recurra.infrastructure.timer import PeriodicTimer, Timer, TimerCallback

logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, TimerCallback], Timer]
DurationResolver = Callable[[DurationSpec], float]


class RecurringPullRegistry:
    """Store of active recurring pulls, keyed by id.

    Owns creation, lookup and teardown of records. The cycle scheduler and the
    retry coordinator mutate the records it holds and report back through
    ``settle`` when a record may have run its course.

    All methods must be called from the event loop that runs the timers.
    """

    def __init__(
        self,
        executor: PullExecutor,
        notifications: Optional[NotificationChannel] = None,
        timer_factory: TimerFactory = PeriodicTimer,
        duration_resolver: DurationResolver = resolve_duration,
    ):
        """Initialize registry

        Args:
            executor: Performs individual pull attempts
            notifications: Channel for paid/failed/end events (creates one if None)
            timer_factory: Builds periodic timers from (interval_ms, callback)
            duration_resolver: Converts interval/timeout specs to milliseconds
        """
        self.executor = executor
        self.notifications = notifications or NotificationChannel()
        self.timer_factory = timer_factory
        self.resolve_duration = duration_resolver
        self._pulls: Dict[str, ActiveRecurringPull] = {}
        # Ids whose first attempt is in flight
        self._starting: Set[str] = set()
        self.retry_coordinator = RetryCoordinator(self)
        self.scheduler = CycleScheduler(self, self.retry_coordinator)

    def __contains__(self, pull_id: str) -> bool:
        return pull_id in self._pulls

    def __len__(self) -> int:
        return len(self._pulls)

    def active_ids(self) -> List[str]:
        return list(self._pulls)

    async def start(self, pull_id: str, spec: RecurringPullSpec) -> bool:
        """Start a recurring pull

        The first attempt runs immediately. Only if it succeeds is the pull
        registered and its cycle timer armed.

        Args:
            pull_id: Unique id of the recurring pull
            spec: What to pull, how often and how many times

        Returns:
            True if the first attempt succeeded and the pull is now active

        Raises:
            AlreadyExists: If the id is already active or being started
            InvalidCycleCount: If spec.cycles is set and less than 2
        """
        if pull_id in self._pulls or pull_id in self._starting:
            logger.debug(f"Recurring pull payment already exists. id={pull_id}")
            raise AlreadyExists(pull_id)

        if spec.cycles is not None and spec.cycles < 2:
            raise InvalidCycleCount(spec.cycles)

        interval_ms = self.resolve_duration(spec.interval)
        record = ActiveRecurringPull.from_spec(pull_id, spec)

        logger.info(f"Start recurring payment. id={pull_id}")
        self._starting.add(pull_id)
        try:
            async with record.lock:
                succeeded = await self.attempt(record)
        finally:
            self._starting.discard(pull_id)

        if not succeeded:
            logger.info(f"First payment failed, recurring payment not scheduled. id={pull_id}")
            record.closed = True
            record.finished.set()
            return False

        self._pulls[pull_id] = record
        self.scheduler.arm(record, interval_ms)
        return True

    def stop(self, pull_id: str) -> None:
        """Stop a recurring pull, cancelling all of its timers

        Emits "end" unless the pull already announced its final cycle, so a
        pull never reports "end" twice.
        Unknown ids are ignored.
        """
        record = self._pulls.pop(pull_id, None)
        if record is None:
            logger.debug(f"No active recurring payment to stop. id={pull_id}")
            return

        logger.info(f"Stop recurring payment. id={pull_id}")
        self._teardown(record)
        if not record.ended:
            record.ended = True
            self.notifications.emit(END, EndEvent(id=pull_id))

    def stop_all(self) -> None:
        """Stop every active recurring pull"""
        for pull_id in self.active_ids():
            self.stop(pull_id)

    def get(self, pull_id: str) -> Optional[RecurringPullSnapshot]:
        """Get a snapshot of an active recurring pull, or None if unknown"""
        record = self._pulls.get(pull_id)
        if record is None:
            return None
        return record.snapshot()

    def lookup(self, pull_id: str) -> Optional[ActiveRecurringPull]:
        """Get the live record of an active recurring pull"""
        return self._pulls.get(pull_id)

    async def wait(self, pull_id: str) -> None:
        """Wait until a recurring pull is no longer active"""
        record = self._pulls.get(pull_id)
        if record is not None:
            await record.finished.wait()

    async def attempt(self, record: ActiveRecurringPull) -> bool:
        """Run one pull attempt for a record and report the outcome

        Emits "paid" or "failed". Never raises for a failed payment.

        Returns:
            True if the pull succeeded
        """
        if record.closed:
            return False

        spec = record.spec
        timeout_ms = self.resolve_duration(spec.timeout) if spec.timeout is not None else None
        request = PullRequest(pointer=spec.pointer, amount=spec.amount, timeout_ms=timeout_ms)

        try:
            result = await self.executor.execute(request)
        except PaymentError as e:
            logger.debug(f"Payment failed. id={record.id}: {e}")
            partial = e.total_received if e.total_received is not None else 0
            self.notifications.emit(FAILED, FailedEvent(id=record.id, partial_amount=str(partial)))
            return False
        except Exception as e:
            logger.debug(f"Payment failed. id={record.id}: {e!r}")
            self.notifications.emit(FAILED, FailedEvent(id=record.id, partial_amount="0"))
            return False

        logger.info(f"Payment succeeded. id={record.id}")
        self.notifications.emit(PAID, PaidEvent(id=record.id, total_received=str(result.total_received)))
        return True

    def settle(self, record: ActiveRecurringPull) -> None:
        """Remove a record once its final cycle ran and no retries remain"""
        if record.closed or not record.is_settled:
            return
        logger.info(f"Recurring payment completed. id={record.id}")
        if self._pulls.get(record.id) is record:
            del self._pulls[record.id]
        self._teardown(record)

    def _teardown(self, record: ActiveRecurringPull) -> None:
        if record.main_timer is not None:
            record.main_timer.cancel()
        for retry in record.retries.values():
            if retry.timer is not None:
                retry.timer.cancel()
        record.retries.clear()
        record.closed = True
        record.finished.set()
