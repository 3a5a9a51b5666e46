from __future__ import annotations

import asyncio
import json

import pytest

from beacon_mcp.config import BeaconSettings
from beacon_mcp.server import create_server
from beacon_mcp.timers import ManualScheduler
from beacon_mcp.tools import register_tools
from beacon_mcp.tracker import ProgressTracker


class StubTool:
    def __init__(self, fn, name):
        self.fn = fn
        self.name = name


class StubServer:
    def __init__(self) -> None:
        self._tools: dict[str, StubTool] = {}

    def tool(self, *args, **kwargs):
        provided_name = None
        if args and isinstance(args[0], str):
            provided_name = args[0]
        provided_name = kwargs.get("name", provided_name)

        def decorator(fn):
            tool_name = provided_name or fn.__name__
            tool = StubTool(fn, tool_name)
            self._tools[tool_name] = tool
            return tool

        return decorator


def _make_handles():
    scheduler = ManualScheduler()
    tracker = ProgressTracker(BeaconSettings(), scheduler)
    server = StubServer()
    handles = register_tools(server, tracker=tracker)  # type: ignore[arg-type]
    return server, handles, scheduler


def test_register_tools_exposes_catalog() -> None:
    server, handles, _ = _make_handles()

    assert sorted(server._tools) == [
        "attach_worker",
        "detach_worker",
        "progress_status",
        "report_progress",
    ]
    assert handles.tracker.workers.active() == []


def test_report_progress_updates_status() -> None:
    _, handles, scheduler = _make_handles()

    attached = asyncio.run(handles.attach_worker.fn(worker_id=7, name=" pyright "))
    assert attached == {"worker_id": 7, "name": "pyright"}

    result = asyncio.run(
        handles.report_progress.fn(
            worker_id=7,
            token="idx",
            value={"kind": "begin", "title": "Indexing", "percentage": 20},
        )
    )
    assert result == {"worker_id": 7, "token": "idx", "recorded": True}

    status = asyncio.run(handles.progress_status.fn())
    assert status["workers"] == [{"worker_id": 7, "name": "pyright"}]
    assert status["progress"]["pyright"][0]["title"] == "Indexing"
    assert status["clients"]["pyright"] == {
        "title": "pyright",
        "complete": False,
        "body": "Started (20%) [Indexing]",
    }

    asyncio.run(handles.report_progress.fn(worker_id=7, token="idx", value={"kind": "end"}))
    scheduler.advance(3000)
    status = asyncio.run(handles.progress_status.fn())
    assert status["clients"] == {}
    assert status["progress"] == {"pyright": []}


def test_report_progress_from_unknown_worker_is_not_recorded() -> None:
    _, handles, _ = _make_handles()

    result = asyncio.run(
        handles.report_progress.fn(worker_id="gone", token=1, value={"kind": "begin"})
    )

    assert result["recorded"] is False


def test_attach_worker_rejects_blank_name() -> None:
    _, handles, _ = _make_handles()

    with pytest.raises(ValueError):
        asyncio.run(handles.attach_worker.fn(worker_id=1, name="   "))


def test_detach_worker_reports_outcome() -> None:
    _, handles, _ = _make_handles()
    asyncio.run(handles.attach_worker.fn(worker_id=1, name="ruff"))

    first = asyncio.run(handles.detach_worker.fn(worker_id=1))
    second = asyncio.run(handles.detach_worker.fn(worker_id=1))

    assert first == {"worker_id": 1, "detached": True, "name": "ruff"}
    assert second == {"worker_id": 1, "detached": False, "name": None}


def test_create_server_exposes_progress_resource() -> None:
    scheduler = ManualScheduler()
    server = create_server(BeaconSettings(), scheduler=scheduler)
    tracker = getattr(server, "tracker")
    tracker.attach_worker(1, "pyright")
    tracker.on_notification(1, {"token": "t", "value": {"kind": "begin", "title": "Load"}})

    payload = json.loads(getattr(server, "progress_resource")())

    assert payload["enabled"] is True
    assert payload["clients"]["pyright"]["body"] == "Started [Load]"
    assert payload["progress"]["pyright"][0]["token"] == "t"
    assert "timestamp" in payload
