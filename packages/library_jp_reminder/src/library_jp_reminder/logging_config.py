"""Logging setup for the reminder command."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

# httpx logs every request line at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


def resolve_level(level: Optional[str]) -> int:
    """Map a level name to its number; unknown names mean INFO."""
    value = logging.getLevelName((level or "INFO").upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: Optional[str] = "INFO", file_path: Optional[str] = None) -> None:
    """
    Send log records to stderr and, optionally, to a UTF-8 log file.

    Calling it again replaces the handlers installed by the previous call.
    The HTTP libraries never log below WARNING unless ``level`` is higher.
    """
    root_level = resolve_level(level)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if file_path:
        log_file = Path(file_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(level=root_level, format=LOG_FORMAT, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root_level, logging.WARNING))
