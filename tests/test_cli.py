from __future__ import annotations

import argparse
import importlib.util
import json
import textwrap
from pathlib import Path

import pytest


def _load_module():
    module_path = Path(__file__).resolve().parents[1] / "scripts" / "beacon_diag.py"
    spec = importlib.util.spec_from_file_location("beacon_diag_test_module", module_path)
    assert spec and spec.loader
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _write_recording(path: Path) -> None:
    path.write_text(
        textwrap.dedent(
            """
            - op: attach
              worker: 1
              name: pyright
            - op: progress
              worker: 1
              token: idx
              value: {kind: begin, title: Indexing, percentage: 0}
            - op: progress
              worker: 1
              token: lint
              value: {kind: begin, title: Lint}
            - op: progress
              worker: 1
              token: idx
              value: {kind: end, message: Indexed}
            - op: advance
              ms: 1000
            """
        ).strip(),
        encoding="utf-8",
    )


def test_replay_prints_json_state(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    diag = _load_module()
    recording = tmp_path / "recording.yaml"
    _write_recording(recording)

    exit_code = diag.cmd_replay(argparse.Namespace(recording=str(recording), json=True, options=None))

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["clock_ms"] == 1000
    assert payload["clients"]["pyright"] == {
        "title": "pyright",
        "complete": False,
        "body": "Started [Lint]",
    }
    assert [item["token"] for item in payload["progress"]["pyright"]] == ["lint"]


def test_replay_text_output_uses_formatter(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    diag = _load_module()
    recording = tmp_path / "recording.yaml"
    _write_recording(recording)

    exit_code = diag.cmd_replay(
        argparse.Namespace(recording=str(recording), json=False, options=None),
        formatter=lambda name, client: f"{name}={client['complete']}",
    )

    assert exit_code == 0
    assert capsys.readouterr().out.strip() == "pyright=False"


def test_timeline_reports_every_event(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    diag = _load_module()
    recording = tmp_path / "recording.yaml"
    _write_recording(recording)
    options = tmp_path / "options.yaml"
    options.write_text("task:\n  end_message: Finished\n", encoding="utf-8")

    exit_code = diag.cmd_timeline(argparse.Namespace(recording=str(recording), options=str(options)))

    assert exit_code == 0
    timeline = json.loads(capsys.readouterr().out)
    assert [item["op"] for item in timeline] == ["attach", "progress", "progress", "progress", "advance"]
    assert timeline[0]["clients"] == {}
    assert timeline[3]["clients"]["pyright"]["body"] == "Indexed (100%) [Indexing]\nStarted [Lint]"
    assert timeline[4]["clock_ms"] == 1000


def test_replay_rejects_malformed_recording(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    diag = _load_module()
    recording = tmp_path / "broken.yaml"
    recording.write_text("- op: explode\n", encoding="utf-8")

    exit_code = diag.cmd_replay(argparse.Namespace(recording=str(recording), json=True, options=None))

    assert exit_code == 1
    assert "op in" in capsys.readouterr().err


def test_main_without_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    diag = _load_module()

    diag.main([])

    assert "Beacon MCP diagnostics" in capsys.readouterr().out


def test_replay_rejects_event_without_worker(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    diag = _load_module()
    recording = tmp_path / "no_worker.yaml"
    recording.write_text("- op: progress\n  token: t\n  value: {kind: begin}\n", encoding="utf-8")

    exit_code = diag.cmd_replay(argparse.Namespace(recording=str(recording), json=True, options=None))

    assert exit_code == 1
    assert "missing a worker" in capsys.readouterr().err
