# src/bumble/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Library loggers kept at WARNING everywhere (fetcher traffic).
QUIET_LOGGERS = ("httpx", "httpcore")


class _TickNoiseFilter(logging.Filter):
    """
    Console filter.

    The scheduler and preloader log once per task per tick at DEBUG; that
    belongs in the file only. Non-bumble records need ERROR.
    """

    def __init__(self, per_tick_prefixes: Iterable[str] = ("bumble.tasks.", "bumble.preloader.")) -> None:
        super().__init__()
        self._per_tick = tuple(per_tick_prefixes)

    def filter(self, record: logging.LogRecord) -> bool:
        if not record.name.startswith("bumble."):
            return record.levelno >= logging.ERROR
        if record.name.startswith(self._per_tick):
            return record.levelno >= logging.INFO
        return True


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    *,
    log_dir: str | Path = ".local/bumble",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all logging to stderr (filtered) and to <log_dir>/bumble.log (everything).

    Replaces whatever handlers the root logger had. Returns the log file path.
    """
    log_file = Path(log_dir) / "bumble.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    console = _handler(logging.StreamHandler(sys.stderr), console_level)
    console.addFilter(_TickNoiseFilter())
    root.addHandler(console)
    root.addHandler(_handler(logging.FileHandler(str(log_file), encoding="utf-8"), file_level))

    logging.captureWarnings(True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
