"""
Logging for the node-doctor CLI.

``configure_cli_logging`` is called once by the ``cli`` group and
decides the level from the global flags and the environment:

    --debug > --verbose > --quiet > NODE_DOCTOR_LOG_LEVEL > WARNING

Diagnostics never touch stdout, so ``check --json`` and ``list --json``
stay parseable.  A persistent log can be kept with NODE_DOCTOR_LOG_FILE
(level via NODE_DOCTOR_LOG_FILE_LEVEL); probe failures that only show
up as debug lines on the console end up there.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Mapping

LEVEL_ENV = "NODE_DOCTOR_LOG_LEVEL"
FILE_ENV = "NODE_DOCTOR_LOG_FILE"
FILE_LEVEL_ENV = "NODE_DOCTOR_LOG_FILE_LEVEL"

DEFAULT_LEVEL = "WARNING"

# (most verbose level covered, format, datefmt), checked in order
_CONSOLE_FORMATS = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_PLAIN = "%(message)s"

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(threadName)s %(name)s:%(lineno)d %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Chatty at INFO when a probe hits the network or the worker pool
_QUIET_LOGGERS = ("urllib3", "concurrent.futures")


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level name from the global CLI flags."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get(LEVEL_ENV) or DEFAULT_LEVEL


def configure_cli_logging(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> None:
    env = os.environ if environ is None else environ
    setup_logging(
        resolve_level(debug=debug, verbose=verbose, quiet=quiet, environ=env),
        log_file=env.get(FILE_ENV),
        log_file_level=env.get(FILE_LEVEL_ENV),
        quiet_third_party=not debug,
    )


def setup_logging(
    level: str = DEFAULT_LEVEL,
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Replace the root handlers with a stderr console and an optional file.

    Args:
        level: Console level name; unknown names fall back to WARNING.
        log_file: Append-mode log file.  Missing parent directories are
            created.
        log_file_level: File level name, defaults to ``level``.
        quiet_third_party: Hold ``_QUIET_LOGGERS`` at WARNING.
    """
    console_level = _parse_level(level)
    root = logging.getLogger()
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))
    root.addHandler(console)

    root_level = console_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(file_handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)

    if quiet_third_party:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def _console_formatter(level: int) -> logging.Formatter:
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_CONSOLE_PLAIN)


def _parse_level(level: str | None) -> int:
    numeric = logging.getLevelName(level.upper()) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING
