"""FastMCP server bootstrap for Beacon."""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from fastmcp import FastMCP

from . import __version__
from .config import BeaconSettings, get_settings
from .timers import Scheduler
from .tools import build_status, register_tools
from .tracker import ProgressTracker


def configure_logging(level: str) -> None:
    """Configure root logging for the Beacon server."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def create_server(
    settings: Optional[BeaconSettings] = None,
    tracker: ProgressTracker | None = None,
    scheduler: Scheduler | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server around a progress tracker."""

    settings = settings or get_settings()
    tracker = tracker or ProgressTracker(settings, scheduler)

    server = FastMCP(
        name="Beacon MCP",
        instructions=(
            "Beacon keeps a live, self-expiring view of what attached workers "
            "are currently doing. Attach a worker, then deliver its begin/report/end "
            "progress notifications; finished work disappears on its own."
        ),
    )

    handles = register_tools(server, tracker=tracker)

    def progress_resource() -> str:
        """Return a JSON string describing in-flight progress."""

        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "server_version": __version__,
            "log_level": settings.log_level,
            **build_status(tracker),
        }
        return json.dumps(payload, default=str)

    server.resource(
        "resource://beacon/progress",
        name="beacon_progress",
        description="Current in-flight progress and live client summaries.",
        mime_type="application/json",
        tags={"status", "progress"},
    )(progress_resource)

    setattr(server, "tracker", tracker)
    setattr(server, "tool_handles", handles)
    setattr(server, "progress_resource", progress_resource)
    return server


def main() -> None:
    """Entry point for running the Beacon MCP server via CLI."""

    settings = get_settings()
    configure_logging(settings.log_level)

    server = create_server(settings)
    logging.getLogger(__name__).info(
        "Launching Beacon MCP server",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "enabled": settings.enabled,
            "client_decay_ms": settings.client.decay_ms,
            "task_decay_ms": settings.task.decay_ms,
        },
    )
    server.run()


if __name__ == "__main__":
    main()
