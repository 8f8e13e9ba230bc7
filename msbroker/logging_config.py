from __future__ import annotations

import logging
import os
import sys

_DEFAULT_LEVEL = "INFO"
_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_RESET = "\x1b[0m"
_COLORS = {
    "DEBUG": "\x1b[36m",
    "INFO": "\x1b[32m",
    "WARNING": "\x1b[33m",
    "ERROR": "\x1b[31m",
    "CRITICAL": "\x1b[1;31m",
}
# uvicorn installs its own handlers; route them through the root handler instead.
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class _LevelColorFormatter(logging.Formatter):
    def __init__(self, *, colorize: bool) -> None:
        super().__init__(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT)
        self._colorize = colorize

    def format(self, record: logging.LogRecord) -> str:
        if not self._colorize or record.levelname not in _COLORS:
            return super().format(record)
        levelname = record.levelname
        record.levelname = f"{_COLORS[levelname]}{levelname}{_RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def _colorize_output() -> bool:
    return not os.getenv("NO_COLOR") and sys.stderr.isatty()


def resolve_level(level: str | int | None = None) -> int:
    """Turn a level name, number or ``MSBROKER_LOG_LEVEL`` into a logging level."""
    if isinstance(level, int):
        return level
    name = (level or os.getenv("MSBROKER_LOG_LEVEL") or _DEFAULT_LEVEL).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(*, level: str | int | None = None, force: bool = False) -> None:
    root = logging.getLogger()
    resolved = resolve_level(level)
    root.setLevel(resolved)

    if root.handlers and not force:
        for existing in root.handlers:
            existing.setLevel(resolved)
    else:
        handler = logging.StreamHandler()
        handler.setLevel(resolved)
        handler.setFormatter(_LevelColorFormatter(colorize=_colorize_output()))
        root.handlers.clear()
        root.addHandler(handler)

    for name in _SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True
