"""Digestion of the progress store into per-worker snapshots."""

from __future__ import annotations

from dataclasses import dataclass

from .messages import Token
from .store import ProgressStore, WorkerId
from .workers import WorkerRegistry


@dataclass(slots=True, frozen=True)
class ProgressSnapshot:
    """Point-in-time copy of one progress entry, tagged with its worker name."""

    name: str
    token: Token
    title: str | None
    message: str | None
    percentage: float | None
    done: bool
    progress: bool = True

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "token": self.token,
            "title": self.title,
            "message": self.message,
            "percentage": self.percentage,
            "done": self.done,
            "progress": self.progress,
        }


def digest_progress_messages(
    store: ProgressStore,
    workers: WorkerRegistry,
    readonly: bool = False,
) -> dict[str, list[ProgressSnapshot]]:
    """Read progress entries of every attached worker, indexed by worker name.

    Every attached worker gets a list, empty if it has nothing in flight.
    Unless ``readonly`` is set, finished entries are removed from ``store``
    once all workers have been enumerated. A read-only digest leaves the
    store untouched.
    """

    digested: dict[str, list[ProgressSnapshot]] = {}
    finished: list[tuple[WorkerId, Token]] = []

    for worker in workers.active():
        snapshots = digested.setdefault(worker.name, [])
        for token, entry in store.entries(worker.worker_id):
            snapshots.append(
                ProgressSnapshot(
                    name=worker.name,
                    token=token,
                    title=entry.title,
                    message=entry.message,
                    percentage=entry.percentage,
                    done=entry.done,
                )
            )
            if not readonly and entry.done:
                finished.append((worker.worker_id, token))

    for worker_id, token in finished:
        store.remove(worker_id, token)

    return digested


__all__ = ["ProgressSnapshot", "digest_progress_messages"]
