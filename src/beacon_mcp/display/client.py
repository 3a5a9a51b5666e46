"""Client aggregate: composes the tasks of one worker."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Hashable

from ..config import ClientOptions
from ..progress.messages import Token
from ..timers import DecayTimer, Scheduler
from .graph import DestroyHook, Node
from .task import TaskAggregate, TaskOutput

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ClientOutput:
    title: str
    complete: bool
    body: str

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "complete": self.complete, "body": self.body}


class ClientAggregate(Node):
    """Per-worker view over its live tasks.

    Complete when every inbound task is complete, which holds vacuously with
    no tasks. While complete, a decay timer is armed on every render; any
    incomplete render cancels it.
    """

    def __init__(
        self,
        name: str,
        *,
        options: ClientOptions,
        scheduler: Scheduler,
        on_destroy: DestroyHook | None = None,
    ) -> None:
        super().__init__(on_destroy=on_destroy)
        self.name = name
        self.complete = True
        self._options = options
        self._decay = DecayTimer(scheduler)

    @property
    def decay_pending(self) -> bool:
        return self._decay.pending

    def task(self, token: Token) -> TaskAggregate | None:
        node = self.inbound.get(token)
        return node if isinstance(node, TaskAggregate) else None

    def tasks(self) -> list[TaskAggregate]:
        return [node for node in self.inbound.values() if isinstance(node, TaskAggregate)]

    def render(self, inputs: dict[Hashable, Any]) -> ClientOutput:
        messages: list[str] = []
        complete = True
        for output in inputs.values():
            if not isinstance(output, TaskOutput):
                continue
            messages.append(output.message)
            complete = complete and output.complete

        self.complete = complete
        self._decay.cancel()
        if complete:
            self._decay.arm(self._options.decay_ms, self.request_destroy)

        return ClientOutput(title=self.name, complete=complete, body="\n".join(messages))

    def request_destroy(self) -> None:
        self._decay.cancel()
        super().request_destroy()


__all__ = ["ClientAggregate", "ClientOutput"]
