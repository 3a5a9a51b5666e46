"""Task aggregate: the display state of one unit of work."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Hashable

from ..config import TaskOptions
from ..formatting import format_task
from ..progress.digest import ProgressSnapshot
from ..progress.messages import Token
from ..timers import DecayTimer, Scheduler
from .graph import DestroyHook, Node

logger = logging.getLogger(__name__)


class TaskState(str, Enum):
    ACTIVE = "active"
    COMPLETE = "complete"
    DESTROYED = "destroyed"


@dataclass(slots=True, frozen=True)
class TaskOutput:
    complete: bool
    message: str


class TaskAggregate(Node):
    """Consumes progress snapshots for one token and decays after completion.

    ``update_task`` always cancels a pending decay first, so a task that
    completes and then begins again before its timer fires stays alive.
    """

    def __init__(
        self,
        token: Token,
        *,
        options: TaskOptions,
        scheduler: Scheduler,
        on_destroy: DestroyHook | None = None,
    ) -> None:
        super().__init__(on_destroy=on_destroy)
        self.token = token
        self.title: str | None = None
        self.message: str | None = None
        self.percentage: float | None = None
        self.complete = False
        self._options = options
        self._decay = DecayTimer(scheduler)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: ProgressSnapshot,
        *,
        options: TaskOptions,
        scheduler: Scheduler,
        on_destroy: DestroyHook | None = None,
    ) -> "TaskAggregate":
        """Construct a task already initialized with ``snapshot``."""

        task = cls(snapshot.token, options=options, scheduler=scheduler, on_destroy=on_destroy)
        task.update_task(snapshot)
        return task

    @property
    def state(self) -> TaskState:
        if self.destroyed:
            return TaskState.DESTROYED
        return TaskState.COMPLETE if self.complete else TaskState.ACTIVE

    @property
    def decay_pending(self) -> bool:
        return self._decay.pending

    def update_task(self, snapshot: ProgressSnapshot) -> None:
        if self.destroyed:
            return
        self._decay.cancel()

        if not snapshot.done:
            self.complete = False
            self.title = snapshot.title or self.title
            if snapshot.percentage is not None:
                self.percentage = snapshot.percentage
            self.message = snapshot.message or self.message or self._options.begin_message
        else:
            self.complete = True
            self.title = snapshot.title or self.title
            if self.percentage is not None or snapshot.percentage is not None:
                self.percentage = 100
            self.message = snapshot.message or self._options.end_message
            self._decay.arm(self._options.decay_ms, self.request_destroy)

        self.request_render()

    def render(self, inputs: dict[Hashable, Any]) -> TaskOutput:
        return TaskOutput(complete=self.complete, message=self._format())

    def request_destroy(self) -> None:
        self._decay.cancel()
        super().request_destroy()

    def _format(self) -> str:
        formatter = self._options.format_fn
        try:
            return str(formatter(self.title, self.message, self.percentage))
        except Exception:
            logger.exception("Task formatter failed; falling back to default format")
            return format_task(self.title, self.message, self.percentage)


__all__ = ["TaskAggregate", "TaskOutput", "TaskState"]
