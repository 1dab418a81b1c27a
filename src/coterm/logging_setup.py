# src/coterm/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Minimum console level per logger prefix; the longest matching prefix wins.
_CONSOLE_LEVELS: dict[str, int] = {
    "coterm": logging.DEBUG,
    # One line per delivery.
    "coterm.tasks.task_router": logging.WARNING,
    "coterm.connectors": logging.INFO,
}
# Third-party loggers and captured warnings ('py.warnings').
_FOREIGN_LEVEL = logging.ERROR

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def console_threshold(name: str) -> int:
    level, matched = _FOREIGN_LEVEL, -1
    for prefix, prefix_level in _CONSOLE_LEVELS.items():
        if (name == prefix or name.startswith(prefix + ".")) and len(prefix) > matched:
            level, matched = prefix_level, len(prefix)
    return level


class _ConsoleNoiseFilter(logging.Filter):
    """Drop records below the console threshold of their logger."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= console_threshold(record.name)


def _attach(root: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    root.addHandler(handler)


def setup_logging(
    *,
    log_dir: str | Path = ".local/coterm",
    app_name: str = "coterm",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    console: bool = False,
) -> Path:
    """
    Route all logging to `<log_dir>/<app_name>.log`, plus stderr when `console`
    is set. Leave the console off while curses owns the screen.

    Call once, before the first log call. Returns the log file path.
    """
    log_file = Path(log_dir) / f"{app_name}.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for old in list(root.handlers):
        root.removeHandler(old)

    _attach(root, logging.FileHandler(str(log_file), encoding="utf-8"), file_level)
    if console:
        stderr = logging.StreamHandler(sys.stderr)
        stderr.addFilter(_ConsoleNoiseFilter())
        _attach(root, stderr, console_level)

    logging.captureWarnings(True)
    return log_file
