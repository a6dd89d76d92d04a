"""Quickstart examples for config-watcher.

Demonstrates the watch-and-reload cycle without touching real processes:
  1. Fingerprinting files and diffing snapshots
  2. Resolving a process by name from a process table
  3. Driving a WatchManager through a few ticks

Run directly:
    python examples/quickstart.py
"""

from __future__ import annotations

import signal
import tempfile
from pathlib import Path

from config_watcher import ChangeDetector, FileFingerprinter, ReloadDispatcher, WatchManager
from config_watcher.models import ProcessInfo, WatchConfig


class StaticProcessTable:
    """A fixed process list standing in for the real one."""

    def list_processes(self) -> list[ProcessInfo]:
        return [
            ProcessInfo(pid=1, name="init"),
            ProcessInfo(pid=311, name="nginx"),
            ProcessInfo(pid=204, name="nginx"),
        ]


def print_signal(pid: int, sig: int) -> None:
    print(f"  -> would send {signal.Signals(sig).name} to pid {pid}")


# ---------------------------------------------------------------------------
# Demo 1: Fingerprints and diffs
# ---------------------------------------------------------------------------


def demo_fingerprints(workdir: Path) -> None:
    """Snapshot a file, edit it, and diff the two snapshots."""
    print("\n=== Demo 1: Fingerprints ===")
    conf = workdir / "nginx.conf"
    conf.write_text("worker_processes 2;\n", encoding="utf-8")

    fingerprinter = FileFingerprinter()
    before = fingerprinter.snapshot([str(conf)])
    conf.write_text("worker_processes 4;\n", encoding="utf-8")
    after = fingerprinter.snapshot([str(conf)])

    for change in ChangeDetector().diff(before, after):
        print(f"  {change.path}")
        print(f"    old: {change.old_fingerprint}")
        print(f"    new: {change.new_fingerprint}")


# ---------------------------------------------------------------------------
# Demo 2: Process resolution
# ---------------------------------------------------------------------------


def demo_resolve() -> None:
    """The lowest pid among processes with a matching name wins."""
    print("\n=== Demo 2: Process resolution ===")
    dispatcher = ReloadDispatcher(
        "nginx", signal.SIGHUP, 0, process_table=StaticProcessTable()
    )
    print(f"  nginx resolves to pid {dispatcher.resolve_pid()}")


# ---------------------------------------------------------------------------
# Demo 3: Watch loop
# ---------------------------------------------------------------------------


def demo_watch_loop(workdir: Path) -> None:
    """Run three ticks, editing the file between the first and second."""
    print("\n=== Demo 3: Watch loop ===")
    conf = workdir / "app.yaml"
    conf.write_text("debug: false\n", encoding="utf-8")

    config = WatchConfig(
        target_files=[str(conf)],
        target_process="nginx",
        reload_signal="SIGHUP",
        sleep_duration=0,
        sleep_before_reload_duration=0,
    )
    dispatcher = ReloadDispatcher(
        config.target_process,
        config.reload_signal,
        config.sleep_before_reload_duration,
        process_table=StaticProcessTable(),
        send_signal=print_signal,
    )
    manager = WatchManager(config, dispatcher=dispatcher)
    manager.initialize()

    for tick in range(3):
        if tick == 1:
            conf.write_text("debug: true\n", encoding="utf-8")
        results = manager.tick()
        print(f"  tick {tick}: {len(results)} dispatch(es)")


def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        workdir = Path(tmp)
        demo_fingerprints(workdir)
        demo_resolve()
        demo_watch_loop(workdir)


if __name__ == "__main__":
    main()
