"""Periodic timers on the asyncio event loop.

A timer re-arms itself with ``loop.call_later`` on every expiry and spawns its
callback as a separate task, so a callback that is still awaiting does not
delay the next tick. Delays of any length are accepted.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Awaitable[Any]]


class Timer(ABC):
    """Abstract periodic timer"""

    def __init__(self, interval_ms: float, callback: TimerCallback):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.interval_ms = interval_ms
        self.callback = callback
        self.cancelled = False

    @abstractmethod
    def start(self) -> None:
        """Arm the timer"""
        pass

    @abstractmethod
    def cancel(self) -> None:
        """Stop all future expiries. Safe to call more than once."""
        pass


class PeriodicTimer(Timer):
    """Interval timer driven by the running event loop"""

    def __init__(self, interval_ms: float, callback: TimerCallback):
        super().__init__(interval_ms, callback)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    def start(self) -> None:
        if self.cancelled:
            raise RuntimeError("Cannot start a cancelled timer")
        if self._handle is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._arm()

    def _arm(self) -> None:
        self._handle = self._loop.call_later(self.interval_ms / 1000.0, self._expire)

    def _expire(self) -> None:
        if self.cancelled:
            return
        self._arm()
        task = self._loop.create_task(self._run())
        # Keep a strong reference until the callback completes
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self) -> None:
        if self.cancelled:
            return
        try:
            await self.callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Timer callback failed")

    def cancel(self) -> None:
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def pending(self) -> int:
        """Number of callbacks still running"""
        return len(self._tasks)
