"""Removal of old videos and missing-video markers."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from auto_video_recorder.core.logging_utils import get_module_logger
from auto_video_recorder.core.paths import MISSING_MARKER_SUFFIX

from .identity import format_file_size
from .probe import list_candidates

logger = get_module_logger("Housekeeping")

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class CleanupResult:
    deleted: int = 0
    freed_bytes: int = 0
    failed: int = 0


def cleanup_old_videos(
    directory: Path,
    days_old: int,
    extension: str = "mp4",
    *,
    clock: Callable[[], float] = time.time,
) -> CleanupResult:
    """Delete videos and missing markers last modified more than ``days_old`` days ago."""
    if days_old < 0:
        raise ValueError("days_old must not be negative")

    cutoff = clock() - days_old * SECONDS_PER_DAY
    suffix = f".{extension.lower().lstrip('.')}"
    old_files = list_candidates(
        directory,
        lambda candidate: candidate.mtime < cutoff and (
            candidate.name.lower().endswith(suffix) or candidate.name.endswith(MISSING_MARKER_SUFFIX)
        ),
    )

    if not old_files:
        logger.info("No old video files to clean up in %s", directory)
        return CleanupResult()

    logger.info("Cleaning up %d old video files (>%d days)", len(old_files), days_old)
    deleted = freed = failed = 0
    for candidate in old_files:
        try:
            candidate.path.unlink()
        except FileNotFoundError:
            continue
        except OSError as exc:
            logger.warning("Could not delete %s: %s", candidate.name, exc)
            failed += 1
            continue
        deleted += 1
        freed += candidate.size
        logger.debug("Deleted: %s", candidate.name)

    logger.info("Cleanup completed: %d files deleted, %s freed", deleted, format_file_size(freed))
    return CleanupResult(deleted, freed, failed)


__all__ = ["CleanupResult", "cleanup_old_videos"]
