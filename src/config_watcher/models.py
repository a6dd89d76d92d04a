"""Pydantic models for config-watcher."""

from __future__ import annotations

import signal
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "MAX_DURATION_SECONDS",
    "WatchConfig",
    "ProcessInfo",
    "FileChange",
    "DispatchResult",
    "parse_signal",
]


# Upper bound for both sleeps; well inside what time.sleep accepts.
MAX_DURATION_SECONDS = 365 * 24 * 60 * 60


def parse_signal(value: object) -> signal.Signals:
    """Resolve *value* to a :class:`signal.Signals` member.

    Accepts a member, a signal number, or a symbolic name such as ``SIGHUP``
    or ``hup`` (prefix optional, case-insensitive).

    Raises:
        ValueError: If *value* does not name a signal on this platform.
    """
    if isinstance(value, signal.Signals):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return signal.Signals(value)
    if isinstance(value, str):
        name = value.strip().upper()
        if not name.startswith("SIG"):
            name = "SIG" + name
        try:
            return signal.Signals[name]
        except KeyError:
            pass
    raise ValueError(f"Unknown signal: {value}")


class WatchConfig(BaseModel):
    """Operational parameters loaded once at startup."""

    model_config = ConfigDict(frozen=True)

    target_files: list[str] = Field(
        ..., min_length=1, description="Files to watch, in reporting order"
    )
    target_process: str = Field(
        ..., min_length=1, description="Exact executable name of the process to signal"
    )
    reload_signal: signal.Signals = Field(..., description="Signal delivered on change")
    sleep_duration: int = Field(
        default=1, ge=0, le=MAX_DURATION_SECONDS, description="Seconds between poll ticks"
    )
    sleep_before_reload_duration: int = Field(
        default=1,
        ge=0,
        le=MAX_DURATION_SECONDS,
        description="Seconds to wait after a change before signalling",
    )
    verbose: bool = Field(default=False, description="Enable debug logging")

    @field_validator("target_files")
    @classmethod
    def _dedupe_paths(cls, value: list[str]) -> list[str]:
        seen: dict[str, None] = {}
        for path in value:
            path = path.strip()
            if path:
                seen.setdefault(path, None)
        if not seen:
            raise ValueError("at least one file path is required")
        return list(seen)

    @field_validator("reload_signal", mode="before")
    @classmethod
    def _coerce_signal(cls, value: object) -> signal.Signals:
        return parse_signal(value)


class ProcessInfo(BaseModel):
    """One row of the running process table."""

    pid: int = Field(..., description="OS process id")
    name: str = Field(..., description="Executable name as reported by the OS")


class FileChange(BaseModel):
    """A watched file whose fingerprint differs from its baseline."""

    path: str = Field(..., description="Watched file path")
    old_fingerprint: str = Field(..., description="Baseline fingerprint, empty if unknown")
    new_fingerprint: str = Field(..., description="Observed fingerprint, empty if unknown")
    detected_at: datetime = Field(..., description="UTC timestamp of detection")


class DispatchResult(BaseModel):
    """Outcome of a single delay-then-signal dispatch."""

    path: str = Field(..., description="File whose change triggered the dispatch")
    target_process: str = Field(..., description="Process name that was looked up")
    signal_name: str = Field(..., description="Symbolic name of the signal, e.g. SIGHUP")
    pid: int | None = Field(default=None, description="Pid signalled, if one was resolved")
    success: bool = Field(..., description="Whether the signal was delivered")
    error: str | None = Field(default=None, description="Failure description on error")
    dispatched_at: datetime = Field(..., description="UTC timestamp when dispatch finished")
