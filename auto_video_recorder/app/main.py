"""Command line entry point: ``python -m auto_video_recorder``."""

from __future__ import annotations

import argparse
import sys
import time
from typing import Optional

from auto_video_recorder.cli.common import (
    add_common_cli_arguments,
    non_negative_int,
    resolve_preset,
    setup_logging_from_args,
)
from auto_video_recorder.core.config_manager import get_config_manager
from auto_video_recorder.core.logging_utils import get_module_logger
from auto_video_recorder.core.paths import CONFIG_PATH
from auto_video_recorder.correlation.diagnostics import scan_directory

from .recorder import VideoRecorder


logger = get_module_logger("Cli")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments with config file defaults."""
    config_manager = get_config_manager()
    config = config_manager.read_config(CONFIG_PATH)
    default_log_level = config_manager.get_str(config, "log_level", default="info")
    default_preset = config_manager.get_str(config, "preset", default="auto")

    parser = argparse.ArgumentParser(
        description="Auto video recorder - correlate grid recordings with test runs"
    )
    add_common_cli_arguments(
        parser,
        default_log_level=default_log_level,
        default_preset=default_preset,
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("scan", help="Print a diagnostic listing of the video directory")
    subparsers.add_parser("summary", help="Write a summary report for the video directory")
    subparsers.add_parser("validate", help="Check that the video directory exists and is writable")

    cleanup = subparsers.add_parser("cleanup", help="Delete old videos and missing-video markers")
    cleanup.add_argument("--days", type=non_negative_int, default=7, help="Age threshold in days (default: 7)")

    correlate = subparsers.add_parser(
        "correlate",
        help="Find and rename the video for a test that has already finished",
    )
    correlate.add_argument("test_name", help="Test name (normalized into the output file name)")
    correlate.add_argument("--session-id", default=None, help="Remote browser session id, if known")
    correlate.add_argument("--node-host", default=None, help="Grid node that ran the test")
    correlate.add_argument(
        "--started-ago",
        type=float,
        default=0.0,
        help="Seconds since the test started (anchors timestamp correlation)",
    )
    correlate.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Give up after this many seconds in total",
    )

    return parser.parse_args(argv)


def build_recorder(args: argparse.Namespace, **kwargs) -> VideoRecorder:
    preset = resolve_preset(args.preset)
    return VideoRecorder.from_config(
        preset,
        config_path=args.config,
        video_dir=args.video_dir,
        **kwargs,
    )


def _run_correlate(args: argparse.Namespace) -> int:
    recorder = build_recorder(args, deadline=args.deadline)
    recorder.open()
    if recorder.skips(args.test_name):
        logger.info("Utility test %s is not recorded", args.test_name)
        print("skipped")
        return 0
    started = time.time() - max(0.0, args.started_ago)
    if not recorder.start_recording(args.test_name, args.session_id, args.node_host, start_time=started):
        return 1
    matched = recorder.stop_recording(args.test_name)
    print("matched" if matched else "missing")
    return 0 if matched else 1


def run(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging_from_args(args)

    if args.command == "correlate":
        return _run_correlate(args)

    recorder = build_recorder(args)

    if args.command == "scan":
        report = scan_directory(recorder.video_dir, recorder.settings.video_extension)
        for line in report.lines():
            print(line)
        return 0 if report.status.usable else 1

    if args.command == "summary":
        path = recorder.reporter.write_report(recorder.video_dir, recorder.settings.video_extension)
        if path is None:
            return 1
        print(path)
        return 0

    if args.command == "cleanup":
        result = recorder.cleanup_old_videos(args.days)
        print(f"deleted={result.deleted} freed_bytes={result.freed_bytes} failed={result.failed}")
        return 0 if result.failed == 0 else 1

    if args.command == "validate":
        return 0 if recorder.validate_configuration() else 1

    logger.error("Unknown command: %s", args.command)
    return 2


def main(argv: Optional[list[str]] = None) -> None:
    sys.exit(run(argv))


__all__ = ["build_recorder", "main", "parse_args", "run"]
