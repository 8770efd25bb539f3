"""Shared test helpers"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import List, Optional, Tuple

import pytest

from recurra.application.registry import RecurringPullRegistry
from recurra.domain.config import RecurringPullSpec
from recurra.domain.errors import PaymentError
from recurra.domain.models.events import TOPICS
from recurra.domain.models.pull import PullRequest, PullResult
from recurra.infrastructure.executor.base import PullExecutor
from recurra.infrastructure.notifications import NotificationChannel
from recurra.infrastructure.timer import Timer


class ManualTimer(Timer):
    """Timer that only fires when the test says so"""

    def __init__(self, interval_ms, callback):
        super().__init__(interval_ms, callback)
        self.started = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    async def fire(self) -> bool:
        """Run the callback once, unless cancelled"""
        assert self.started, "timer fired before start()"
        if self.cancelled:
            return False
        await self.callback()
        return True


class ManualClock:
    """Timer factory that keeps every timer it creates"""

    def __init__(self):
        self.timers: List[ManualTimer] = []

    def __call__(self, interval_ms, callback) -> ManualTimer:
        timer = ManualTimer(interval_ms, callback)
        self.timers.append(timer)
        return timer

    @property
    def live(self) -> List[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]


class ScriptedExecutor(PullExecutor):
    """Executor replaying a list of outcomes, then succeeding

    Outcomes are ``True`` (receive the full amount), a ``Decimal`` (receive that),
    or an exception instance to raise.
    """

    def __init__(self, outcomes=None):
        super().__init__({})
        self.outcomes = list(outcomes or [])
        self.calls: List[PullRequest] = []
        self.gate: Optional[asyncio.Event] = None
        self.in_flight = 0
        self.max_in_flight = 0

    async def execute(self, request: PullRequest) -> PullResult:
        self.calls.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            outcome = self.outcomes.pop(0) if self.outcomes else True
            if isinstance(outcome, BaseException):
                raise outcome
            if outcome is True:
                return PullResult(total_received=request.amount)
            return PullResult(total_received=Decimal(outcome))
        finally:
            self.in_flight -= 1


def fail(partial: Optional[str] = None) -> PaymentError:
    return PaymentError("declined", total_received=Decimal(partial) if partial is not None else None)


class EventRecorder:
    """Collects every event emitted on a channel"""

    def __init__(self, channel: NotificationChannel):
        self.events: List[Tuple[str, object]] = []
        for topic in TOPICS:
            channel.subscribe(topic, lambda event, topic=topic: self.events.append((topic, event)))

    def topics(self) -> List[str]:
        return [topic for topic, _ in self.events]

    def of(self, topic: str) -> list:
        return [event for t, event in self.events if t == topic]


def make_spec(**overrides) -> RecurringPullSpec:
    values = {
        "pointer": "$wallet.example/alice",
        "amount": "10",
        "interval": "PT1S",
        "cycles": 3,
    }
    values.update(overrides)
    return RecurringPullSpec(**values)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def executor():
    return ScriptedExecutor()


@pytest.fixture
def registry(executor, clock):
    return RecurringPullRegistry(executor, timer_factory=clock)


@pytest.fixture
def recorder(registry):
    return EventRecorder(registry.notifications)
