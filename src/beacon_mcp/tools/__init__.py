"""Tool registration for Beacon MCP."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastmcp import FastMCP

from ..tracker import ProgressTracker

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ToolHandles:
    attach_worker: Any
    detach_worker: Any
    report_progress: Any
    progress_status: Any
    tracker: ProgressTracker


def build_status(tracker: ProgressTracker) -> dict[str, Any]:
    """Summarize workers, in-flight progress and live client outputs.

    The digest is read-only; only the dispatcher drains the store.
    """

    digested = tracker.digest(readonly=True)
    return {
        "enabled": tracker.settings.enabled,
        "workers": [
            {"worker_id": worker.worker_id, "name": worker.name}
            for worker in tracker.workers.active()
        ],
        "progress": {
            name: [snapshot.to_dict() for snapshot in snapshots]
            for name, snapshots in digested.items()
        },
        "clients": {name: output.to_dict() for name, output in tracker.clients().items()},
    }


def register_tools(server: FastMCP, *, tracker: ProgressTracker) -> ToolHandles:
    """Register Beacon's MCP tools on the server."""

    async def _attach_worker(worker_id: str | int, name: str) -> dict[str, Any]:
        normalized = name.strip()
        if not normalized:
            raise ValueError("Worker name must not be empty")
        worker = tracker.attach_worker(worker_id, normalized)
        return {"worker_id": worker.worker_id, "name": worker.name}

    async def _detach_worker(worker_id: str | int) -> dict[str, Any]:
        worker = tracker.detach_worker(worker_id)
        return {
            "worker_id": worker_id,
            "detached": worker is not None,
            "name": worker.name if worker is not None else None,
        }

    async def _report_progress(
        worker_id: str | int,
        token: str | int,
        value: Any = None,
    ) -> dict[str, Any]:
        recorded = tracker.on_notification(worker_id, {"token": token, "value": value})
        return {"worker_id": worker_id, "token": token, "recorded": recorded}

    async def _progress_status() -> dict[str, Any]:
        return build_status(tracker)

    tool_attach = server.tool(
        name="attach_worker",
        description="Register a worker so its progress notifications are accepted.",
    )(_attach_worker)

    tool_detach = server.tool(
        name="detach_worker",
        description="Detach a worker and forget its in-flight progress.",
    )(_detach_worker)

    tool_report = server.tool(
        name="report_progress",
        description=(
            "Deliver one progress notification. `value` is either a record with "
            "kind begin/report/end plus title, message and percentage, or any "
            "other value, which is treated as an already finished update."
        ),
    )(_report_progress)

    tool_status = server.tool(
        name="progress_status",
        description="Digest progress per worker and show live client summaries.",
    )(_progress_status)

    return ToolHandles(
        attach_worker=tool_attach,
        detach_worker=tool_detach,
        report_progress=tool_report,
        progress_status=tool_status,
        tracker=tracker,
    )


__all__ = ["ToolHandles", "build_status", "register_tools"]
