"""Inbound transport callback for progress notifications."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from .messages import ProgressParams, normalize_value
from .store import ProgressStore, WorkerId
from .updates import UpdateSignal
from .workers import WorkerRegistry

logger = logging.getLogger(__name__)


class ProgressReceiver:
    """Normalizes notifications into the progress store and announces updates."""

    def __init__(self, store: ProgressStore, workers: WorkerRegistry, signal: UpdateSignal) -> None:
        self._store = store
        self._workers = workers
        self._signal = signal

    def on_notification(self, worker_id: WorkerId, payload: Any) -> bool:
        """Handle one ``{token, value}`` notification sent by ``worker_id``.

        Returns whether the notification was recorded. Diagnostics are logged
        for vanished workers, malformed envelopes and unknown tokens; nothing
        is raised to the transport.
        """

        worker = self._workers.resolve_worker(worker_id)
        token = payload.get("token") if isinstance(payload, dict) else None
        if worker is None:
            logger.error(
                "Worker[id=%s] has shut down after sending the message",
                worker_id,
                extra={"worker_id": worker_id, "token": token},
            )
            return False

        try:
            params = ProgressParams.model_validate(payload)
        except ValidationError as exc:
            logger.error(
                "Worker[%s] sent a malformed progress notification",
                worker.name,
                extra={"worker_id": worker_id, "token": token, "error": str(exc)},
            )
            return False

        message = normalize_value(params.value)
        recorded = self._store.apply(worker_id, params.token, message, worker_name=worker.name)
        logger.debug(
            "Progress notification received",
            extra={
                "worker": worker.name,
                "token": params.token,
                "shape": type(message).__name__,
                "recorded": recorded,
            },
        )
        self._signal.emit()
        return recorded


__all__ = ["ProgressReceiver"]
