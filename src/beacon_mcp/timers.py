"""Cancellable one-shot timers used for aggregate decay."""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Callable, Protocol

TimerCallback = Callable[[], None]

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    """Handle returned by :meth:`Scheduler.arm`."""

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Minimal cooperative scheduler API used by aggregates."""

    def arm(self, delay_ms: int, callback: TimerCallback) -> TimerHandle:
        ...


class _InertTimer:
    """Handle for a timer that could not be armed."""

    def cancel(self) -> None:
        return None


class AsyncioScheduler:
    """Arm timers on an asyncio event loop.

    The loop is taken from the constructor argument, else the loop running
    when the scheduler is built, else the loop running at ``arm`` time.
    Arming with no loop available logs a warning and returns an inert
    handle, so the timer never fires.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
        self._loop = loop

    def arm(self, delay_ms: int, callback: TimerCallback) -> TimerHandle:
        loop = self._loop
        if loop is None or loop.is_closed():
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.warning("No running event loop; timer of %sms not armed", delay_ms)
                return _InertTimer()
            self._loop = loop
        return loop.call_later(delay_ms / 1000, callback)


class ManualTimer:
    """Timer handle of :class:`ManualScheduler`."""

    __slots__ = ("deadline", "callback", "cancelled")

    def __init__(self, deadline: int, callback: TimerCallback) -> None:
        self.deadline = deadline
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler driven by :meth:`advance`, for tests and replays."""

    def __init__(self) -> None:
        self._now = 0
        self._queue: list[tuple[int, int, ManualTimer]] = []
        self._sequence = itertools.count()

    @property
    def now(self) -> int:
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def arm(self, delay_ms: int, callback: TimerCallback) -> ManualTimer:
        timer = ManualTimer(self._now + max(delay_ms, 0), callback)
        heapq.heappush(self._queue, (timer.deadline, next(self._sequence), timer))
        return timer

    def advance(self, delay_ms: int) -> int:
        """Move the clock forward, firing due timers in deadline order.

        Timers armed by fired callbacks also fire if they fall due within the
        window. Returns the number of callbacks run.
        """

        target = self._now + delay_ms
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            deadline, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = deadline
            timer.cancelled = True
            timer.callback()
            fired += 1
        self._now = target
        return fired


class DecayTimer:
    """Owns at most one outstanding timer on behalf of an aggregate."""

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._handle: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def arm(self, delay_ms: int, callback: TimerCallback) -> None:
        """Cancel any outstanding timer, then schedule ``callback``."""

        self.cancel()

        def _fire() -> None:
            if self._handle is handle:
                self._handle = None
            callback()

        handle = self._scheduler.arm(delay_ms, _fire)
        self._handle = handle

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


__all__ = [
    "AsyncioScheduler",
    "DecayTimer",
    "ManualScheduler",
    "ManualTimer",
    "Scheduler",
    "TimerCallback",
    "TimerHandle",
]
