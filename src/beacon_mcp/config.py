"""Configuration management for Beacon MCP."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .formatting import format_task


class OptionsLoadError(RuntimeError):
    """Raised when an options override file cannot be read or parsed."""


class ClientOptions(BaseModel):
    """Options applied to every per-worker client aggregate."""

    decay_ms: int = Field(
        default=2000,
        description="Delay after all tasks complete before the client is destroyed.",
    )

    @field_validator("decay_ms")
    @classmethod
    def _validate_decay(cls, value: int) -> int:
        if value < 0:
            raise ValueError("client.decay_ms must be >= 0")
        return value


class TaskOptions(BaseModel):
    """Options applied to every task aggregate."""

    begin_message: str = Field(default="Started", description="Message shown before any report.")
    end_message: str = Field(default="Completed", description="Message shown when `end` has none.")
    decay_ms: int = Field(
        default=1000,
        description="Delay after completion before the task is destroyed.",
    )
    format_fn: Callable[[str | None, str | None, float | None], str] = Field(
        default=format_task,
        description="Formats (title, message, percentage) into one display line.",
    )

    @field_validator("decay_ms")
    @classmethod
    def _validate_decay(cls, value: int) -> int:
        if value < 0:
            raise ValueError("task.decay_ms must be >= 0")
        return value


class BeaconSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(
        env_prefix="BEACON_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    enabled: bool = True
    log_level: str = "INFO"
    options_path: Path | None = None
    client: ClientOptions = Field(default_factory=ClientOptions)
    task: TaskOptions = Field(default_factory=TaskOptions)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "BEACON_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized


def _deep_merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def merge_settings(base: BeaconSettings, overrides: Mapping[str, Any] | None) -> BeaconSettings:
    """Return new settings with ``overrides`` deep-merged over ``base``.

    Nested mappings merge key by key; any other override value replaces the
    existing one.
    """

    if not overrides:
        return base
    merged = _deep_merge(base.model_dump(), overrides)
    return BeaconSettings(**merged)


def load_options(path: Path) -> dict[str, Any]:
    """Read a YAML options file into a mapping suitable for :func:`merge_settings`."""

    path = Path(path)
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise OptionsLoadError(f"Unable to read options file {path}: {exc}") from exc
    except yaml.YAMLError as exc:  # pragma: no cover - library type
        raise OptionsLoadError(f"Failed to parse YAML in {path}: {exc}") from exc

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise OptionsLoadError(f"Options file {path} must contain a mapping at the top level")
    return document


@lru_cache(maxsize=1)
def get_settings() -> BeaconSettings:
    """Return cached settings instance."""

    settings = BeaconSettings()
    if settings.options_path is not None:
        options_path = settings.options_path.expanduser().resolve()
        settings = merge_settings(settings, load_options(options_path))
        settings.options_path = options_path
    return settings


__all__ = [
    "BeaconSettings",
    "ClientOptions",
    "OptionsLoadError",
    "TaskOptions",
    "get_settings",
    "load_options",
    "merge_settings",
]
