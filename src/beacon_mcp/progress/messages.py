"""Progress message shapes and payload normalization.

Raw progress values arrive in loosely specified shapes: a bare scalar, a
record without a discriminator, or a record whose ``kind`` is one of
``begin``/``report``/``end``. :func:`normalize_value` decides the shape once
and returns one of the variants below; everything downstream branches on the
variant type instead of probing fields.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

logger = logging.getLogger(__name__)

Token = Union[str, int]


class ProgressKind(str, Enum):
    """Discriminator stamped onto stored progress entries."""

    BEGIN = "begin"
    REPORT = "report"
    END = "end"
    UNSPECIFIED = "unspecified"


@dataclass(slots=True, frozen=True)
class Begin:
    title: str | None = None
    message: str | None = None
    percentage: float | None = None


@dataclass(slots=True, frozen=True)
class Report:
    message: str | None = None
    percentage: float | None = None


@dataclass(slots=True, frozen=True)
class End:
    message: str | None = None


@dataclass(slots=True, frozen=True)
class Opaque:
    """A value without a usable ``kind``; stored as an already finished entry."""

    title: str | None = None
    message: str | None = None
    percentage: float | None = None
    fields: dict[str, Any] = field(default_factory=dict)


ProgressMessage = Union[Begin, Report, End, Opaque]

_KNOWN_FIELDS = {"kind", "title", "message", "percentage"}


class ProgressValue(BaseModel):
    """Lenient view over a progress value record."""

    model_config = ConfigDict(extra="allow")

    kind: str | None = None
    title: str | None = None
    message: str | None = None
    percentage: float | None = None

    @field_validator("kind", "title", "message", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str | None:
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)

    @field_validator("percentage", mode="before")
    @classmethod
    def _coerce_percentage(cls, value: Any) -> float | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if math.isnan(number):
            return None
        return min(max(number, 0.0), 100.0)


class ProgressParams(BaseModel):
    """Envelope of a single progress notification."""

    token: Token
    value: Any = None


def normalize_value(value: Any) -> ProgressMessage:
    """Classify a raw progress value into a :data:`ProgressMessage` variant."""

    if not isinstance(value, Mapping):
        value = {"content": value}
    raw = {str(key): item for key, item in value.items()}

    try:
        parsed = ProgressValue.model_validate(raw)
    except ValidationError as exc:  # pragma: no cover - validators are lenient
        logger.warning("Unparseable progress value stored as-is", extra={"error": str(exc)})
        return Opaque(fields=raw)

    if parsed.kind == ProgressKind.BEGIN.value:
        return Begin(title=parsed.title, message=parsed.message, percentage=parsed.percentage)
    if parsed.kind == ProgressKind.REPORT.value:
        return Report(message=parsed.message, percentage=parsed.percentage)
    if parsed.kind == ProgressKind.END.value:
        return End(message=parsed.message)

    if parsed.kind is not None:
        logger.warning(
            "Unknown progress kind %r treated as a finished one-shot value",
            parsed.kind,
        )
    return Opaque(
        title=parsed.title,
        message=parsed.message,
        percentage=parsed.percentage,
        fields={key: item for key, item in raw.items() if key not in _KNOWN_FIELDS},
    )


__all__ = [
    "Begin",
    "End",
    "Opaque",
    "ProgressKind",
    "ProgressMessage",
    "ProgressParams",
    "ProgressValue",
    "Report",
    "Token",
    "normalize_value",
]
