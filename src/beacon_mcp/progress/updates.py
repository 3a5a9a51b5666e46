"""Broadcast channel announcing that new progress is available."""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

Subscriber = Callable[[], None]


class UpdateSignal:
    """Level-triggered "an update occurred" broadcast.

    Emissions made while subscribers are running are queued and delivered
    in FIFO order once the current delivery returns, so subscribers never
    re-enter themselves. A subscriber that raises is logged and the
    remaining subscribers and queued emissions still run.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._pending = 0
        self._delivering = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""

        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def emit(self) -> None:
        self._pending += 1
        if self._delivering:
            return

        self._delivering = True
        try:
            while self._pending:
                self._pending -= 1
                for callback in list(self._subscribers):
                    self._deliver(callback)
        finally:
            self._delivering = False

    def _deliver(self, callback: Subscriber) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Progress update subscriber %r failed", callback)


__all__ = ["Subscriber", "UpdateSignal"]
