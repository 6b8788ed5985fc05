"""Flush a finished artifact to stable storage."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Union

from .logging_utils import get_module_logger

logger = get_module_logger("FileSync")

if sys.platform == "win32":
    import msvcrt as _msvcrt
else:
    _msvcrt = None


def fsync_path(path: Union[str, Path]) -> bool:
    """Flush ``path`` to disk.

    Returns False instead of raising when the file cannot be opened or the
    filesystem rejects the flush (common on network and bind-mounted volumes).
    """
    try:
        fd = os.open(str(path), os.O_RDONLY | getattr(os, "O_BINARY", 0))
    except OSError as exc:
        logger.debug("Cannot open %s for fsync: %s", path, exc)
        return False

    try:
        if _msvcrt is not None:
            _msvcrt._commit(fd)
        else:
            os.fsync(fd)
    except OSError as exc:
        logger.debug("fsync failed for %s: %s", path, exc)
        return False
    finally:
        os.close(fd)
    return True


__all__ = ["fsync_path"]
