from __future__ import annotations

import asyncio
import logging

import pytest

from beacon_mcp.timers import AsyncioScheduler, DecayTimer, ManualScheduler


def test_manual_scheduler_fires_in_deadline_order() -> None:
    scheduler = ManualScheduler()
    fired: list[str] = []
    scheduler.arm(300, lambda: fired.append("late"))
    scheduler.arm(100, lambda: fired.append("early"))
    cancelled = scheduler.arm(200, lambda: fired.append("cancelled"))
    cancelled.cancel()

    assert scheduler.advance(150) == 1
    assert fired == ["early"]
    assert scheduler.pending == 1

    scheduler.advance(150)
    assert fired == ["early", "late"]
    assert scheduler.now == 300


def test_manual_scheduler_runs_timers_armed_by_callbacks() -> None:
    scheduler = ManualScheduler()
    fired: list[int] = []

    def chain() -> None:
        fired.append(scheduler.now)
        if len(fired) < 3:
            scheduler.arm(10, chain)

    scheduler.arm(10, chain)
    scheduler.advance(25)

    assert fired == [10, 20]


def test_decay_timer_keeps_single_outstanding_handle() -> None:
    scheduler = ManualScheduler()
    timer = DecayTimer(scheduler)
    fired: list[str] = []

    timer.arm(100, lambda: fired.append("first"))
    timer.arm(100, lambda: fired.append("second"))
    assert scheduler.pending == 1

    scheduler.advance(100)
    assert fired == ["second"]
    assert timer.pending is False


def test_decay_timer_cancel_prevents_firing() -> None:
    scheduler = ManualScheduler()
    timer = DecayTimer(scheduler)
    fired: list[str] = []

    timer.arm(50, lambda: fired.append("x"))
    timer.cancel()
    scheduler.advance(100)

    assert fired == []
    assert timer.pending is False


def test_asyncio_scheduler_uses_running_loop() -> None:
    fired: list[str] = []

    async def scenario() -> None:
        scheduler = AsyncioScheduler()
        scheduler.arm(10, lambda: fired.append("fired"))
        handle = scheduler.arm(10, lambda: fired.append("cancelled"))
        handle.cancel()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())

    assert fired == ["fired"]


def test_asyncio_scheduler_without_loop_returns_inert_handle(
    caplog: pytest.LogCaptureFixture,
) -> None:
    scheduler = AsyncioScheduler()
    fired: list[str] = []

    with caplog.at_level(logging.WARNING, logger="beacon_mcp.timers"):
        handle = scheduler.arm(10, lambda: fired.append("fired"))
    handle.cancel()

    assert fired == []
    assert "No running event loop" in caplog.text
