"""Shared test fixtures for config-watcher tests."""

from __future__ import annotations

import logging
import signal
from collections.abc import Iterator
from pathlib import Path

import pytest

from config_watcher.core import FileFingerprinter, ReloadDispatcher, WatchManager
from config_watcher.models import ProcessInfo, WatchConfig


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """Drop handlers installed by the CLI so later tests do not write to closed streams."""
    yield
    package_logger = logging.getLogger("config_watcher")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeProcessTable:
    """In-memory process table."""

    def __init__(self, processes: list[ProcessInfo] | None = None) -> None:
        self.processes = list(processes or [])
        self.calls = 0

    def list_processes(self) -> list[ProcessInfo]:
        self.calls += 1
        return list(self.processes)


class EventLog:
    """Records sleeps and signal deliveries in the order they happen."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []
        self.fail_with: OSError | None = None

    def sleep(self, seconds: float) -> None:
        self.events.append(("sleep", seconds))

    def send_signal(self, pid: int, sig: int) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.events.append(("signal", (pid, sig)))

    @property
    def signals(self) -> list[tuple[int, int]]:
        return [payload for kind, payload in self.events if kind == "signal"]  # type: ignore[misc]


# ---------------------------------------------------------------------------
# File fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def conf_file(tmp_path: Path) -> Path:
    path = tmp_path / "conf.yaml"
    path.write_bytes(b"listen: 8080\n")
    return path


@pytest.fixture()
def second_file(tmp_path: Path) -> Path:
    path = tmp_path / "extra.yaml"
    path.write_bytes(b"workers: 4\n")
    return path


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fingerprinter() -> FileFingerprinter:
    return FileFingerprinter()


@pytest.fixture()
def process_table() -> FakeProcessTable:
    return FakeProcessTable(
        [
            ProcessInfo(pid=1, name="init"),
            ProcessInfo(pid=42, name="nginx"),
            ProcessInfo(pid=17, name="nginx"),
            ProcessInfo(pid=99, name="python"),
        ]
    )


@pytest.fixture()
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture()
def dispatcher(process_table: FakeProcessTable, event_log: EventLog) -> ReloadDispatcher:
    return ReloadDispatcher(
        target_process="nginx",
        reload_signal=signal.SIGHUP,
        delay=3,
        process_table=process_table,
        send_signal=event_log.send_signal,
        sleep=event_log.sleep,
    )


@pytest.fixture()
def watch_config(conf_file: Path, second_file: Path) -> WatchConfig:
    return WatchConfig(
        target_files=[str(conf_file), str(second_file)],
        target_process="nginx",
        reload_signal=signal.SIGHUP,
        sleep_duration=5,
        sleep_before_reload_duration=3,
    )


@pytest.fixture()
def manager(
    watch_config: WatchConfig, dispatcher: ReloadDispatcher, event_log: EventLog
) -> WatchManager:
    return WatchManager(watch_config, dispatcher=dispatcher, sleep=event_log.sleep)
