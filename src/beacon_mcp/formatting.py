"""Default text formatting for task progress lines."""

from __future__ import annotations

from typing import Callable

TaskFormatter = Callable[[str | None, str | None, float | None], str]


def format_task(title: str | None, message: str | None, percentage: float | None) -> str:
    """Render ``"<message> (<pct>%) [<title>]"``, omitting missing parts."""

    text = message or ""
    if percentage is not None:
        text += f" ({percentage:.0f}%)"
    if title:
        text += f" [{title}]"
    return text


__all__ = ["TaskFormatter", "format_task"]
