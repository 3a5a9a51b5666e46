"""Feeds digested progress into client and task aggregates."""

from __future__ import annotations

import logging
from typing import Callable

from .config import BeaconSettings
from .display import ClientAggregate, TaskAggregate
from .display.graph import Node
from .progress import ProgressStore, WorkerRegistry, digest_progress_messages
from .progress.digest import ProgressSnapshot
from .timers import Scheduler

logger = logging.getLogger(__name__)

ClientHook = Callable[[ClientAggregate], None]


class ProgressDispatcher:
    """Runs a destructive digest on every update and routes the snapshots.

    The dispatcher owns the registry of live client aggregates, keyed by
    worker name. Tasks are joined across digests by their progress token.
    """

    def __init__(
        self,
        store: ProgressStore,
        workers: WorkerRegistry,
        settings: BeaconSettings,
        scheduler: Scheduler,
        *,
        on_client_created: ClientHook | None = None,
    ) -> None:
        self._store = store
        self._workers = workers
        self._settings = settings
        self._scheduler = scheduler
        self._on_client_created = on_client_created
        self._clients: dict[str, ClientAggregate] = {}

    @property
    def clients(self) -> dict[str, ClientAggregate]:
        return dict(self._clients)

    def handle_update(self) -> None:
        digested = digest_progress_messages(self._store, self._workers, readonly=False)
        for name, snapshots in digested.items():
            if not snapshots:
                continue
            client = self._clients.get(name) or self._create_client(name)
            for snapshot in snapshots:
                self._route(client, snapshot)

    def retire_client(self, name: str) -> bool:
        """Destroy the client aggregate for ``name`` and all of its tasks."""

        client = self._clients.get(name)
        if client is None:
            return False
        for task in client.tasks():
            task.request_destroy()
        client.request_destroy()
        return True

    def _create_client(self, name: str) -> ClientAggregate:
        client = ClientAggregate(
            name,
            options=self._settings.client,
            scheduler=self._scheduler,
            on_destroy=self._forget_client,
        )
        self._clients[name] = client
        logger.debug("Client aggregate created", extra={"worker": name})
        client.request_render()
        if self._on_client_created is not None:
            try:
                self._on_client_created(client)
            except Exception:
                logger.exception("Client created hook failed", extra={"worker": name})
        return client

    def _route(self, client: ClientAggregate, snapshot: ProgressSnapshot) -> None:
        task = client.task(snapshot.token)
        if task is not None:
            task.update_task(snapshot)
            return

        task = TaskAggregate.from_snapshot(
            snapshot,
            options=self._settings.task,
            scheduler=self._scheduler,
        )
        client.insert(task, key=snapshot.token)
        logger.debug(
            "Task aggregate created",
            extra={"worker": client.name, "token": snapshot.token, "done": snapshot.done},
        )

    def _forget_client(self, node: Node) -> None:
        if not isinstance(node, ClientAggregate):
            return
        if self._clients.get(node.name) is node:
            del self._clients[node.name]
            logger.debug("Client aggregate destroyed", extra={"worker": node.name})


__all__ = ["ClientHook", "ProgressDispatcher"]
