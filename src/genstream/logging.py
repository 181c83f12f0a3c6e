"""Logging helpers for genstream.

Library modules log through ``logging.getLogger(__name__)`` under the
``genstream`` namespace. :func:`attach_log_file` mirrors that namespace into
``<home>/logs/<name>.log`` so a CLI run can leave a persistent trace of the
streams it opened and how they ended.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from genstream.config import LogLevel
from genstream.paths import get_genstream_home

NAMESPACE = "genstream"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


def log_file_path(name: str, base_dir: Path | None = None) -> Path:
    if base_dir is None:
        base_dir = get_genstream_home() / "logs"
    return base_dir / f"{name}.log"


def attach_log_file(
    name: str,
    *,
    log_level: LogLevel | str = LogLevel.INFO,
    base_dir: Path | None = None,
) -> Path:
    """Write ``genstream.*`` records at ``log_level`` and above to a log file.

    Attaching the same file again only updates the handler level. The
    namespace logger's own level still decides which records are created.
    """

    path = log_file_path(name, base_dir)
    level = _to_logging_level(log_level)
    logger = logging.getLogger(NAMESPACE)

    target = os.path.abspath(path)
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            handler.setLevel(level)
            return path

    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return path


def detach_log_files() -> None:
    logger = logging.getLogger(NAMESPACE)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            logger.removeHandler(handler)
            handler.close()


def _to_logging_level(value: LogLevel | str) -> int:
    if isinstance(value, LogLevel):
        return _LEVELS[value]
    if isinstance(value, str):
        try:
            return _LEVELS[LogLevel(value)]
        except ValueError:
            return logging.WARNING
    return logging.WARNING


__all__ = [
    "LOG_FORMAT",
    "attach_log_file",
    "detach_log_files",
    "log_file_path",
    "_to_logging_level",
]
