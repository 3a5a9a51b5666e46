"""Registry of workers currently able to report progress."""

from __future__ import annotations

from dataclasses import dataclass

from .store import WorkerId


@dataclass(slots=True, frozen=True)
class Worker:
    worker_id: WorkerId
    name: str


class WorkerRegistry:
    """Tracks attached workers in attach order."""

    def __init__(self) -> None:
        self._workers: dict[WorkerId, Worker] = {}

    def __contains__(self, worker_id: object) -> bool:
        return worker_id in self._workers

    def __len__(self) -> int:
        return len(self._workers)

    def attach(self, worker_id: WorkerId, name: str) -> Worker:
        """Register a worker, replacing the name of an already attached id."""

        worker = Worker(worker_id=worker_id, name=name)
        self._workers[worker_id] = worker
        return worker

    def detach(self, worker_id: WorkerId) -> Worker | None:
        return self._workers.pop(worker_id, None)

    def resolve_worker(self, worker_id: WorkerId) -> Worker | None:
        """Return the worker for ``worker_id`` or ``None`` if it has shut down."""

        return self._workers.get(worker_id)

    def active(self) -> list[Worker]:
        return list(self._workers.values())


__all__ = ["Worker", "WorkerRegistry"]
