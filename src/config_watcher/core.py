"""Core logic for config-watcher."""

from __future__ import annotations

import hashlib
import logging
import os
import time
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Protocol

import psutil

from config_watcher.models import DispatchResult, FileChange, ProcessInfo, WatchConfig

__all__ = [
    "UNKNOWN_FINGERPRINT",
    "hash_file",
    "FileFingerprinter",
    "ChangeDetector",
    "ProcessTable",
    "PsutilProcessTable",
    "DispatchError",
    "ProcessNotFoundError",
    "ProcessLookupFailedError",
    "SignalDeliveryError",
    "ReloadDispatcher",
    "WatchManager",
]

logger = logging.getLogger(__name__)

# Recorded for files that could not be read; never equal to a real digest.
UNKNOWN_FINGERPRINT = ""

_CHUNK_SIZE = 64 * 1024


def hash_file(path: str) -> str:
    """Return the hex-encoded SHA-256 digest of the full content of *path*.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    digest = hashlib.sha256()
    with open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


class FileFingerprinter:
    """Compute content fingerprints for a set of files.

    Nothing is cached between calls: every snapshot reads each file in full.
    """

    def snapshot(self, paths: Iterable[str]) -> dict[str, str]:
        """Fingerprint every path in *paths*.

        Unreadable files are recorded as :data:`UNKNOWN_FINGERPRINT` and
        logged as a warning; the remaining paths are still fingerprinted.

        Args:
            paths: File paths, in the order they should appear in the table.

        Returns:
            A mapping of path to fingerprint, in input order.
        """
        table: dict[str, str] = {}
        for path in paths:
            try:
                table[path] = hash_file(path)
            except OSError as exc:
                logger.warning("Unable to hash file '%s': %s", path, exc)
                table[path] = UNKNOWN_FINGERPRINT
        return table


class ChangeDetector:
    """Compare two fingerprint tables."""

    def diff(self, baseline: dict[str, str], current: dict[str, str]) -> list[FileChange]:
        """Return the paths of *baseline* whose fingerprint differs in *current*.

        A path missing from *current* is treated as :data:`UNKNOWN_FINGERPRINT`.
        Results follow the iteration order of *baseline*. Neither table is
        modified.
        """
        now = datetime.now(tz=timezone.utc)
        changes: list[FileChange] = []
        for path, old in baseline.items():
            new = current.get(path, UNKNOWN_FINGERPRINT)
            if new != old:
                changes.append(
                    FileChange(
                        path=path,
                        old_fingerprint=old,
                        new_fingerprint=new,
                        detected_at=now,
                    )
                )
        return changes


# ---------------------------------------------------------------------------
# Process discovery
# ---------------------------------------------------------------------------


class ProcessTable(Protocol):
    """Anything that can list the running processes."""

    def list_processes(self) -> list[ProcessInfo]: ...


class PsutilProcessTable:
    """:class:`ProcessTable` backed by :func:`psutil.process_iter`."""

    def list_processes(self) -> list[ProcessInfo]:
        rows: list[ProcessInfo] = []
        for proc in psutil.process_iter(["pid", "name"]):
            name = proc.info.get("name")
            # Kernel threads and processes we may not inspect have no name
            if name:
                rows.append(ProcessInfo(pid=proc.info["pid"], name=name))
        return rows


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class DispatchError(RuntimeError):
    """Base class for a reload that could not be delivered."""


class ProcessNotFoundError(DispatchError):
    """No running process matches the target executable name."""


class ProcessLookupFailedError(DispatchError):
    """The process table could not be read."""


class SignalDeliveryError(DispatchError):
    """The signal could not be delivered to the resolved process."""


class ReloadDispatcher:
    """Wait a grace period, find the target process, and signal it.

    Holds no state between dispatches.
    """

    def __init__(
        self,
        target_process: str,
        reload_signal: int,
        delay: float,
        process_table: ProcessTable | None = None,
        send_signal: Callable[[int, int], None] = os.kill,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.target_process = target_process
        self.reload_signal = reload_signal
        self.delay = delay
        self._process_table = process_table if process_table is not None else PsutilProcessTable()
        self._send_signal = send_signal
        self._sleep = sleep

    def resolve_pid(self) -> int:
        """Return the lowest pid whose executable name equals the target.

        Raises:
            ProcessLookupFailedError: If the process table cannot be listed.
            ProcessNotFoundError: If no process matches.
        """
        try:
            processes = self._process_table.list_processes()
        except (OSError, psutil.Error) as exc:
            raise ProcessLookupFailedError(
                f"Unable to retrieve process list: {exc}"
            ) from exc

        pids = [proc.pid for proc in processes if proc.name == self.target_process]
        logger.debug(
            "Found %d process(es) named '%s' among %d",
            len(pids),
            self.target_process,
            len(processes),
        )
        if not pids:
            raise ProcessNotFoundError(f"Did not find process '{self.target_process}'")
        return min(pids)

    def dispatch(self) -> int:
        """Sleep for the grace period, then signal the target process once.

        Returns:
            The pid that was signalled.

        Raises:
            DispatchError: If the process cannot be found or signalled.
        """
        self._sleep(self.delay)
        pid = self.resolve_pid()

        logger.info("Sending signal %s to process %d", _signal_name(self.reload_signal), pid)
        try:
            self._send_signal(pid, self.reload_signal)
        except OSError as exc:
            raise SignalDeliveryError(f"Unable to send signal to process: {exc}") from exc
        return pid


def _signal_name(sig: int) -> str:
    return getattr(sig, "name", str(sig))


# ---------------------------------------------------------------------------
# Control loop
# ---------------------------------------------------------------------------


class WatchManager:
    """Own the baseline fingerprint table and drive the poll loop.

    Every detected change triggers exactly one dispatch, after which the
    baseline for that path is advanced whether or not the dispatch succeeded.
    Failed reloads are therefore not retried.
    """

    def __init__(
        self,
        config: WatchConfig,
        dispatcher: ReloadDispatcher | None = None,
        fingerprinter: FileFingerprinter | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self._dispatcher = dispatcher or ReloadDispatcher(
            config.target_process,
            config.reload_signal,
            config.sleep_before_reload_duration,
        )
        self._fingerprinter = fingerprinter or FileFingerprinter()
        self._detector = ChangeDetector()
        self._sleep = sleep
        self._baseline: dict[str, str] | None = None

    @property
    def baseline(self) -> dict[str, str]:
        """A copy of the current baseline (empty before :meth:`initialize`)."""
        return dict(self._baseline or {})

    def initialize(self) -> dict[str, str]:
        """Take the baseline snapshot of every watched file and log it."""
        return dict(self._take_baseline())

    def tick(self) -> list[DispatchResult]:
        """Run one poll iteration: snapshot, diff, and dispatch per change.

        Returns:
            One :class:`DispatchResult` per changed path, in watch order.
        """
        baseline = self._baseline if self._baseline is not None else self._take_baseline()

        current = self._fingerprinter.snapshot(self.config.target_files)
        changes = self._detector.diff(baseline, current)
        if not changes:
            logger.debug("No changes in %d watched file(s)", len(baseline))

        results: list[DispatchResult] = []
        for change in changes:
            logger.info(
                "File %s changed. Old hash: %s, new hash: %s",
                change.path,
                change.old_fingerprint,
                change.new_fingerprint,
            )
            results.append(self._reload(change.path))
            baseline[change.path] = change.new_fingerprint
        return results

    def run(self, max_ticks: int | None = None) -> None:
        """Initialise, then tick and sleep until *max_ticks* (forever if None)."""
        self.initialize()
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            self.tick()
            ticks += 1
            self._sleep(self.config.sleep_duration)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _take_baseline(self) -> dict[str, str]:
        table = self._fingerprinter.snapshot(self.config.target_files)
        self._baseline = table
        logger.info("Initialized hashes:")
        for path, fingerprint in table.items():
            logger.info("\t%s => %s", path, fingerprint)
        return table

    def _reload(self, path: str) -> DispatchResult:
        pid: int | None = None
        error: str | None = None
        try:
            pid = self._dispatcher.dispatch()
        except DispatchError as exc:
            logger.warning("Unable to reload process: %s", exc)
            error = str(exc)

        return DispatchResult(
            path=path,
            target_process=self._dispatcher.target_process,
            signal_name=_signal_name(self._dispatcher.reload_signal),
            pid=pid,
            success=error is None,
            error=error,
            dispatched_at=datetime.now(tz=timezone.utc),
        )
