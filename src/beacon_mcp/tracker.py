"""Wiring of the progress pipeline into a single process-scoped object."""

from __future__ import annotations

import logging
from typing import Any

from .config import BeaconSettings, get_settings
from .dispatch import ClientHook, ProgressDispatcher
from .display import ClientOutput
from .progress import (
    ProgressReceiver,
    ProgressSnapshot,
    ProgressStore,
    UpdateSignal,
    Worker,
    WorkerRegistry,
    digest_progress_messages,
)
from .progress.store import WorkerId
from .timers import AsyncioScheduler, Scheduler

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Owns the store, worker registry, update signal and dispatcher.

    When ``settings.enabled`` is false, notifications are still recorded
    and unfinished progress can be digested, but no aggregates are built:
    finished entries are drained on every update instead.
    """

    def __init__(
        self,
        settings: BeaconSettings | None = None,
        scheduler: Scheduler | None = None,
        *,
        on_client_created: ClientHook | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.scheduler = scheduler or AsyncioScheduler()
        self.store = ProgressStore()
        self.workers = WorkerRegistry()
        self.signal = UpdateSignal()
        self.receiver = ProgressReceiver(self.store, self.workers, self.signal)
        self.dispatcher = ProgressDispatcher(
            self.store,
            self.workers,
            self.settings,
            self.scheduler,
            on_client_created=on_client_created,
        )
        if self.settings.enabled:
            self._unsubscribe = self.signal.subscribe(self.dispatcher.handle_update)
        else:
            self._unsubscribe = self.signal.subscribe(self._drain_finished)

    @property
    def subscribed(self) -> bool:
        """Whether updates are routed into aggregates."""

        return self.settings.enabled and self._unsubscribe is not None

    def _drain_finished(self) -> None:
        digest_progress_messages(self.store, self.workers, readonly=False)

    def attach_worker(self, worker_id: WorkerId, name: str) -> Worker:
        worker = self.workers.attach(worker_id, name)
        logger.info("Worker attached", extra={"worker_id": worker_id, "worker": name})
        return worker

    def detach_worker(self, worker_id: WorkerId) -> Worker | None:
        """Detach a worker, forget its in-flight progress and retire its client."""

        worker = self.workers.detach(worker_id)
        if worker is None:
            return None
        dropped = self.store.drop_worker(worker_id)
        if all(other.name != worker.name for other in self.workers.active()):
            self.dispatcher.retire_client(worker.name)
        logger.info(
            "Worker detached",
            extra={"worker_id": worker_id, "worker": worker.name, "dropped_entries": dropped},
        )
        return worker

    def on_notification(self, worker_id: WorkerId, payload: Any) -> bool:
        return self.receiver.on_notification(worker_id, payload)

    def digest(self, readonly: bool = True) -> dict[str, list[ProgressSnapshot]]:
        return digest_progress_messages(self.store, self.workers, readonly=readonly)

    def clients(self) -> dict[str, ClientOutput]:
        """Return the current output of every live client aggregate."""

        return {
            name: client.output
            for name, client in self.dispatcher.clients.items()
            if isinstance(client.output, ClientOutput)
        }

    def close(self) -> None:
        """Stop routing updates and destroy every live aggregate."""

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for name in self.dispatcher.clients:
            self.dispatcher.retire_client(name)


__all__ = ["ProgressTracker"]
