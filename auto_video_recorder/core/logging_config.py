"""Root logging setup for the command line and for long-lived test runs."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_MAX_BYTES = 1024 * 1024
LOG_BACKUP_COUNT = 3

# Handlers installed here carry this attribute; reconfiguring replaces only
# those and leaves handlers owned by the host test framework alone.
_OWNED = "_auto_video_recorder_handler"


def parse_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level '{level}'")
    return value


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    console: bool = True,
    log_file: Optional[Union[str, Path]] = None,
) -> List[logging.Handler]:
    """Install console and/or rotating file handlers on the root logger.

    Console output goes to stderr; stdout is reserved for command results.
    Calling this again swaps the previously installed handlers.

    Returns:
        The handlers that were installed.
    """
    numeric_level = parse_level(level)
    root = logging.getLogger()

    for handler in [h for h in root.handlers if getattr(h, _OWNED, False)]:
        root.removeHandler(handler)
        handler.close()

    handlers: List[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8")
        )

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    for handler in handlers:
        setattr(handler, _OWNED, True)
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.setLevel(numeric_level)
    return handlers


__all__ = ["LOG_DATEFMT", "LOG_FORMAT", "configure_logging", "parse_level"]
