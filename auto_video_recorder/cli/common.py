from __future__ import annotations

import argparse
import logging
from pathlib import Path
from auto_video_recorder.core.environment import get_environment
from auto_video_recorder.core.logging_config import configure_logging
from auto_video_recorder.correlation.settings import PRESETS


LOG_LEVELS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

PRESET_CHOICES = ("auto", *sorted(PRESETS))


def add_common_cli_arguments(
    parser: argparse.ArgumentParser,
    *,
    default_log_level: str = "info",
    default_preset: str = "auto",
) -> None:
    parser.add_argument(
        "--video-dir",
        type=Path,
        default=None,
        help="Directory the recording sidecar writes videos into (default: resolved from environment)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional key = value configuration file",
    )

    parser.add_argument(
        "--preset",
        choices=PRESET_CHOICES,
        default=default_preset,
        help="Timing preset; 'auto' picks 'ci' when a CI server is detected",
    )

    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS.keys()),
        default=default_log_level,
        help="Logging verbosity",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional path to write logs to (rotated)",
    )


def resolve_preset(name: str) -> str:
    if name == "auto":
        return get_environment().preset_name
    return name


def setup_logging_from_args(args: argparse.Namespace, *, console: bool = True) -> None:
    configure_logging(
        LOG_LEVELS.get(args.log_level, logging.INFO),
        console=console,
        log_file=getattr(args, "log_file", None),
    )


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError("must be zero or a positive integer")
    return number


__all__ = [
    "LOG_LEVELS",
    "PRESET_CHOICES",
    "add_common_cli_arguments",
    "non_negative_int",
    "resolve_preset",
    "setup_logging_from_args",
]
