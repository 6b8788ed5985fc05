"""Path resolution for the video directory and configuration file."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional, Union

from .logging_utils import get_module_logger

logger = get_module_logger("Paths")

CONFIG_ENV_VAR = "AUTO_VIDEO_RECORDER_CONFIG"
DEFAULT_CONFIG_NAME = "video_recorder.txt"
DEFAULT_VIDEO_DIR_NAME = "videos"

_CONFIG_ENV = os.environ.get(CONFIG_ENV_VAR)
CONFIG_PATH = Path(_CONFIG_ENV).expanduser() if _CONFIG_ENV else Path.cwd() / DEFAULT_CONFIG_NAME

LOGS_DIR = Path.cwd() / "logs"
RECORDER_LOG_FILE = LOGS_DIR / "video_recorder.log"

MISSING_MARKER_SUFFIX = "_MISSING_VIDEO.txt"
SUMMARY_PREFIX = "video_summary_"


def resolve_video_directory(
    explicit: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Path:
    """Pick the directory the recorder sidecar writes into.

    Order: explicit value, ``$WORKSPACE/videos`` (CI workspace),
    ``$VIDEO_RECORDING_DIRECTORY`` when ``$VIDEO_DOCKER_MODE`` is true, and
    finally ``./videos``.
    """
    env = os.environ if env is None else env

    if explicit:
        path = Path(explicit).expanduser()
        logger.debug("Video directory (explicit): %s", path)
        return path

    workspace = env.get("WORKSPACE")
    if workspace:
        path = Path(workspace) / DEFAULT_VIDEO_DIR_NAME
        logger.debug("Video directory (CI workspace): %s", path)
        return path

    docker_mode = env.get("VIDEO_DOCKER_MODE", "").strip().lower() in {"1", "true", "yes", "on"}
    docker_dir = env.get("VIDEO_RECORDING_DIRECTORY")
    if docker_mode and docker_dir:
        path = Path(docker_dir).expanduser()
        logger.debug("Video directory (docker): %s", path)
        return path

    path = Path.cwd() / DEFAULT_VIDEO_DIR_NAME
    logger.debug("Video directory (local default): %s", path)
    return path


def ensure_video_directory(directory: Path) -> bool:
    """Create ``directory`` if needed. Returns False when it cannot be created."""
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Could not create video directory %s: %s", directory, exc)
        return False
    return True


def missing_marker_name(test_identity: str) -> str:
    return f"{test_identity}{MISSING_MARKER_SUFFIX}"


__all__ = [
    "CONFIG_ENV_VAR",
    "CONFIG_PATH",
    "LOGS_DIR",
    "RECORDER_LOG_FILE",
    "MISSING_MARKER_SUFFIX",
    "SUMMARY_PREFIX",
    "resolve_video_directory",
    "ensure_video_directory",
    "missing_marker_name",
]
