"""Beacon diagnostics CLI: replay recorded progress notifications."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Callable

import yaml

from beacon_mcp.config import BeaconSettings, OptionsLoadError, load_options, merge_settings
from beacon_mcp.timers import ManualScheduler
from beacon_mcp.tracker import ProgressTracker

EVENT_OPS = {"attach", "detach", "progress", "advance"}
WORKER_OPS = {"attach", "detach", "progress"}


class RecordingError(RuntimeError):
    """Raised when a recording file is missing or malformed."""


def load_recording(path: Path) -> list[dict[str, Any]]:
    """Load a YAML (or JSON) list of recorded events."""

    try:
        document = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise RecordingError(f"Unable to read recording {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise RecordingError(f"Failed to parse recording {path}: {exc}") from exc

    if document is None:
        return []
    if isinstance(document, dict):
        document = document.get("events", [])
    if not isinstance(document, list):
        raise RecordingError(f"Recording {path} must be a list of events")

    events: list[dict[str, Any]] = []
    for index, event in enumerate(document):
        if not isinstance(event, dict) or event.get("op") not in EVENT_OPS:
            raise RecordingError(
                f"Event #{index} must be a mapping with op in {sorted(EVENT_OPS)}"
            )
        if event["op"] in WORKER_OPS and event.get("worker") is None:
            raise RecordingError(f"Event #{index} ({event['op']}) is missing a worker")
        events.append(event)
    return events


def build_tracker(settings: BeaconSettings) -> tuple[ProgressTracker, ManualScheduler]:
    scheduler = ManualScheduler()
    return ProgressTracker(settings, scheduler), scheduler


def apply_event(tracker: ProgressTracker, scheduler: ManualScheduler, event: dict[str, Any]) -> None:
    op = event["op"]
    if op == "attach":
        tracker.attach_worker(event["worker"], str(event.get("name", event["worker"])))
    elif op == "detach":
        tracker.detach_worker(event["worker"])
    elif op == "progress":
        tracker.on_notification(
            event["worker"],
            {"token": event.get("token"), "value": event.get("value")},
        )
    elif op == "advance":
        scheduler.advance(int(event.get("ms", 0)))


def _clients_payload(tracker: ProgressTracker) -> dict[str, dict[str, Any]]:
    return {name: output.to_dict() for name, output in tracker.clients().items()}


def _default_client_formatter(name: str, client: dict[str, Any]) -> str:
    state = "done" if client["complete"] else "busy"
    lines = [f"{name} [{state}]"]
    lines.extend(f"  {line}" for line in client["body"].splitlines())
    return "\n".join(lines)


def _load_settings(args: argparse.Namespace) -> BeaconSettings:
    settings = BeaconSettings()
    if getattr(args, "options", None):
        settings = merge_settings(settings, load_options(Path(args.options)))
    return settings


def cmd_replay(
    args: argparse.Namespace,
    *,
    formatter: Callable[[str, dict[str, Any]], str] = _default_client_formatter,
) -> int:
    try:
        settings = _load_settings(args)
        events = load_recording(Path(args.recording))
    except (OptionsLoadError, RecordingError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    tracker, scheduler = build_tracker(settings)
    for event in events:
        apply_event(tracker, scheduler, event)

    clients = _clients_payload(tracker)
    if args.json:
        digested = tracker.digest(readonly=True)
        payload = {
            "clock_ms": scheduler.now,
            "clients": clients,
            "progress": {
                name: [snapshot.to_dict() for snapshot in snapshots]
                for name, snapshots in digested.items()
            },
        }
        print(json.dumps(payload, indent=2, default=str))
    else:
        for name, client in clients.items():
            print(formatter(name, client))
    return 0


def cmd_timeline(args: argparse.Namespace) -> int:
    try:
        settings = _load_settings(args)
        events = load_recording(Path(args.recording))
    except (OptionsLoadError, RecordingError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    tracker, scheduler = build_tracker(settings)
    timeline = []
    for index, event in enumerate(events):
        apply_event(tracker, scheduler, event)
        timeline.append(
            {
                "event": index,
                "op": event["op"],
                "clock_ms": scheduler.now,
                "clients": _clients_payload(tracker),
            }
        )
    print(json.dumps(timeline, indent=2, default=str))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Beacon MCP diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_replay = sub.add_parser("replay", help="Replay a recording and show the final state")
    p_replay.add_argument("recording", help="YAML or JSON list of recorded events")
    p_replay.add_argument("--json", action="store_true", help="Output JSON")
    p_replay.add_argument("--options", help="Optional YAML options override file")
    p_replay.set_defaults(func=cmd_replay)

    p_timeline = sub.add_parser(
        "timeline",
        help="Replay a recording and show client summaries after every event",
    )
    p_timeline.add_argument("recording", help="YAML or JSON list of recorded events")
    p_timeline.add_argument("--options", help="Optional YAML options override file")
    p_timeline.set_defaults(func=cmd_timeline)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    exit_code = args.func(args)
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
