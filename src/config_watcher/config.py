"""Load :class:`WatchConfig` from environment variables."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping

from pydantic import ValidationError

from config_watcher.models import WatchConfig, parse_signal

__all__ = ["ConfigError", "load_config"]

_DEFAULT_SLEEP_SECONDS = 1

# Optional sign and ASCII digits only, no underscores
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


class ConfigError(ValueError):
    """Raised when the environment does not describe a valid watcher."""


def _require(environ: Mapping[str, str], key: str) -> str:
    value = environ.get(key)
    if value is None:
        raise ConfigError(f"Missing env variable '{key}'")
    return value


def _int_with_default(environ: Mapping[str, str], key: str, fallback: int) -> int:
    value = environ.get(key)
    if value is None:
        return fallback
    text = value.strip()
    try:
        if not _INTEGER_RE.fullmatch(text):
            raise ValueError(text)
        # int() also refuses digit strings past sys.get_int_max_str_digits()
        return int(text)
    except ValueError:
        raise ConfigError(f"Could not convert to integer: '{value}'") from None


def load_config(environ: Mapping[str, str] | None = None) -> WatchConfig:
    """Build a :class:`WatchConfig` from *environ* (defaults to ``os.environ``).

    Args:
        environ: Mapping of environment variable names to values.

    Returns:
        The validated, immutable configuration.

    Raises:
        ConfigError: If a required variable is missing, the signal name is
            unknown, or a duration is not a non-negative integer.
    """
    if environ is None:
        environ = os.environ

    target_files = _require(environ, "TARGET_FILES").split(",")

    signal_name = _require(environ, "RELOAD_SIGNAL")
    try:
        reload_signal = parse_signal(signal_name)
    except ValueError as exc:
        raise ConfigError(str(exc)) from None

    target_process = _require(environ, "TARGET_PROCESS")
    verbose = bool(environ.get("VERBOSE"))

    sleep_duration = _int_with_default(environ, "SLEEP_DURATION", _DEFAULT_SLEEP_SECONDS)
    sleep_before_reload = _int_with_default(
        environ, "SLEEP_BEFORE_RELOAD_DURATION", _DEFAULT_SLEEP_SECONDS
    )

    try:
        return WatchConfig(
            target_files=target_files,
            target_process=target_process,
            reload_signal=reload_signal,
            sleep_duration=sleep_duration,
            sleep_before_reload_duration=sleep_before_reload,
            verbose=verbose,
        )
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from exc
