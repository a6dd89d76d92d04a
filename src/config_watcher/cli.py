"""CLI entry point for config-watcher."""

from __future__ import annotations

import logging
import os
import sys

import click

from config_watcher import __version__
from config_watcher.config import ConfigError, load_config
from config_watcher.core import WatchManager

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(filename)s:%(lineno)d: %(message)s"
_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def setup_logging(verbose: bool = False) -> None:
    """Send package logs to stdout, at DEBUG level when *verbose*."""
    package_logger = logging.getLogger("config_watcher")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


@click.command()
@click.version_option(version=__version__, prog_name="config-watcher")
@click.option(
    "--once",
    is_flag=True,
    help="Take the baseline, run a single poll tick and exit.",
)
@click.pass_context
def main(ctx: click.Context, once: bool) -> None:
    """Watch files and signal a process when their content changes.

    Configured through TARGET_FILES, TARGET_PROCESS, RELOAD_SIGNAL, VERBOSE,
    SLEEP_DURATION and SLEEP_BEFORE_RELOAD_DURATION.
    """
    # INFO until the config is known, so fatal errors are still logged
    setup_logging()

    try:
        config = load_config(os.environ)
    except ConfigError as exc:
        logger.error("Fatal: %s", exc)
        ctx.exit(1)

    setup_logging(config.verbose)

    logger.debug(
        "Watching %s for process '%s' with %s",
        ", ".join(config.target_files),
        config.target_process,
        config.reload_signal.name,
    )
    manager = WatchManager(config)
    if once:
        manager.initialize()
        manager.tick()
        return

    manager.run()


if __name__ == "__main__":
    main()
