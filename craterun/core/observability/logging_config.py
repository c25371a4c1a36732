"""
Logging configuration: one call at CLI startup.

Modules log through ``logging.getLogger(__name__)``; this sets up the
root logger they all inherit from. User-facing status lines are not
log records, the CLI echoes them itself.

Console level precedence:
    --debug  >  --verbose  >  CRATERUN_LOG_LEVEL  >  WARNING

CRATERUN_LOG_FILE adds a file handler at CRATERUN_LOG_FILE_LEVEL
(default: the console level).
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping

LOG_LEVEL_ENV = "CRATERUN_LOG_LEVEL"
LOG_FILE_ENV = "CRATERUN_LOG_FILE"
LOG_FILE_LEVEL_ENV = "CRATERUN_LOG_FILE_LEVEL"

DEFAULT_LEVEL = logging.WARNING

# (highest level the format applies to, format, datefmt), checked in order
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "craterun: %(message)s", None),
)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def resolve_level(
    environ: Mapping[str, str],
    *,
    verbose: bool = False,
    debug: bool = False,
) -> str:
    """Console level name from the global flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    return environ.get(LOG_LEVEL_ENV, logging.getLevelName(DEFAULT_LEVEL))


def _parse_level(name: str | None) -> int:
    """Level name to number; unknown or empty names mean WARNING."""
    if not name:
        return DEFAULT_LEVEL
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else DEFAULT_LEVEL


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = next(
        (f, d) for ceiling, f, d in _CONSOLE_FORMATS if level <= ceiling
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root logger's handlers.

    Args:
        level: Console level name.
        log_file: Optional log file path.
        log_file_level: Level for the file; the console level when unset.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level)]

    file_error: OSError | None = None
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        try:
            handlers.append(_file_handler(log_file, file_level))
        except OSError as e:
            file_error = e

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(min(h.level for h in handlers))

    if file_error is not None:
        logging.getLogger(__name__).warning(
            "cannot open log file %s: %s; logging to stderr only",
            log_file,
            file_error.strerror or file_error,
        )

    # A closed stderr (e.g. piped into `head`) must not raise from logging
    logging.raiseExceptions = False
