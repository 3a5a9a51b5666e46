"""In-memory table of in-flight progress operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Hashable

from .messages import Begin, End, Opaque, ProgressKind, ProgressMessage, Report, Token

logger = logging.getLogger(__name__)

WorkerId = Hashable


@dataclass(slots=True)
class ProgressEntry:
    """Latest known state of one ``(worker, token)`` operation."""

    title: str | None = None
    message: str | None = None
    percentage: float | None = None
    done: bool = False
    kind: ProgressKind = ProgressKind.UNSPECIFIED
    extra: dict[str, Any] = field(default_factory=dict)


class ProgressStore:
    """Progress entries keyed by worker id, then by token.

    Per-worker tables keep insertion order, so digestion emits entries in
    the order their tokens were first seen. Only the notification receiver
    calls :meth:`apply`; only digestion calls :meth:`remove`.
    """

    def __init__(self) -> None:
        self._entries: dict[WorkerId, dict[Token, ProgressEntry]] = {}

    def __len__(self) -> int:
        return sum(len(table) for table in self._entries.values())

    def apply(
        self,
        worker_id: WorkerId,
        token: Token,
        message: ProgressMessage,
        *,
        worker_name: str | None = None,
    ) -> bool:
        """Merge ``message`` into the entry for ``token``.

        Returns ``False`` when the message referenced an unknown token and was
        dropped.
        """

        label = worker_name or f"id={worker_id}"

        if isinstance(message, Begin):
            self._entries.setdefault(worker_id, {})[token] = ProgressEntry(
                title=message.title,
                message=message.message,
                percentage=message.percentage,
                kind=ProgressKind.BEGIN,
            )
            return True

        if isinstance(message, Opaque):
            self._entries.setdefault(worker_id, {})[token] = ProgressEntry(
                title=message.title,
                message=message.message,
                percentage=message.percentage,
                done=True,
                kind=ProgressKind.UNSPECIFIED,
                extra=dict(message.fields),
            )
            return True

        entry = self.get(worker_id, token)
        kind = ProgressKind.REPORT if isinstance(message, Report) else ProgressKind.END
        if entry is None:
            logger.error(
                "Worker[%s] received `%s` message with no corresponding `begin`",
                label,
                kind.value,
                extra={"worker_id": worker_id, "token": token},
            )
            return False

        if isinstance(message, Report):
            # A report may carry only one of the two fields.
            if message.message is not None:
                entry.message = message.message
            if message.percentage is not None:
                entry.percentage = message.percentage
        elif isinstance(message, End):
            entry.message = message.message
            entry.done = True
        entry.kind = kind
        return True

    def entries(self, worker_id: WorkerId) -> list[tuple[Token, ProgressEntry]]:
        """Return ``(token, entry)`` pairs for ``worker_id`` in insertion order."""

        return list(self._entries.get(worker_id, {}).items())

    def get(self, worker_id: WorkerId, token: Token) -> ProgressEntry | None:
        return self._entries.get(worker_id, {}).get(token)

    def remove(self, worker_id: WorkerId, token: Token) -> None:
        table = self._entries.get(worker_id)
        if table is None:
            return
        table.pop(token, None)
        if not table:
            del self._entries[worker_id]

    def drop_worker(self, worker_id: WorkerId) -> int:
        """Forget every entry owned by ``worker_id``; returns how many were dropped."""

        return len(self._entries.pop(worker_id, {}))


__all__ = ["ProgressEntry", "ProgressStore", "WorkerId"]
