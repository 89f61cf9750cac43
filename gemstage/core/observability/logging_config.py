"""
Logging configuration — called once by the CLI entry point.

Library code only does ``logger = logging.getLogger(__name__)``; it
never configures handlers itself.

Level precedence:
    CLI flag  >  GEMSTAGE_LOG_LEVEL  >  WARNING
A log file can be added with GEMSTAGE_LOG_FILE (and GEMSTAGE_LOG_FILE_LEVEL).
"""

from __future__ import annotations

import logging
import sys

_FMT_CONSOLE = "%(message)s"
_FMT_CONSOLE_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_FMT_DETAILED = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ...).
        log_file: Optional log file path; always gets the detailed format.
        log_file_level: Level for the file handler, defaults to ``level``.
    """
    console_level = parse_level(level)

    if console_level <= logging.DEBUG:
        console_fmt = logging.Formatter(_FMT_DETAILED, datefmt="%H:%M:%S")
    elif console_level <= logging.INFO:
        console_fmt = logging.Formatter(_FMT_CONSOLE_VERBOSE, datefmt="%H:%M:%S")
    else:
        console_fmt = logging.Formatter(_FMT_CONSOLE)

    # stderr, so stdout stays clean for --json output
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(console_fmt)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = parse_level(log_file_level) if log_file_level else console_level
        root_level = min(root_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_DETAILED, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(fh)

    root.setLevel(root_level)

    # A closed stream (e.g. after a test runner swaps stdio) must not crash the caller
    logging.raiseExceptions = False


def parse_level(level: str | None) -> int:
    """Level name to numeric constant; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
