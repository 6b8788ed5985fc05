"""Diagnostic scan of the video directory, logged when correlation is exhausted.

Read-only apart from a throwaway write probe. Nothing here affects
correlation results.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import psutil

from auto_video_recorder.core.logging_utils import get_module_logger

from .identity import format_file_size, looks_finalized
from .probe import DirectoryStatus, inspect_directory

logger = get_module_logger("Diagnostics")

RECENT_MINUTES = 15
OLD_MINUTES = 60

# Process names/command fragments of common recording sidecars.
RECORDER_MARKERS = ("ffmpeg", "video-recorder", "selenium-video", "recorder")


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    is_dir: bool
    size: int
    age_minutes: int
    categories: tuple[str, ...]


@dataclass
class DirectoryReport:
    status: DirectoryStatus
    entries: List[DirectoryEntry] = field(default_factory=list)
    write_probe_ok: Optional[bool] = None
    mount_points: List[str] = field(default_factory=list)
    recorder_processes: List[str] = field(default_factory=list)
    free_bytes: Optional[int] = None

    def count(self, category: str) -> int:
        return sum(1 for entry in self.entries if category in entry.categories)

    @property
    def video_count(self) -> int:
        return self.count("RAW VIDEO") + self.count("TEST VIDEO")

    def lines(self) -> List[str]:
        status = self.status
        lines = [
            f"DETAILED VIDEO DIRECTORY SCAN: {status.path}",
            f"Directory exists: {status.exists}",
            f"Directory readable: {status.readable}",
            f"Directory writable: {status.writable}",
        ]
        if self.write_probe_ok is not None:
            lines.append(f"Write probe: {'ok' if self.write_probe_ok else 'FAILED'}")
        if self.free_bytes is not None:
            lines.append(f"Free space: {format_file_size(self.free_bytes)}")

        if status.exists and not self.entries:
            lines.append("Video directory is empty")
        elif self.entries:
            lines.append(f"Video directory contents ({len(self.entries)} files):")
            for entry in self.entries:
                kind = "DIR" if entry.is_dir else "FILE"
                tags = "".join(f"[{category}]" for category in entry.categories)
                lines.append(
                    f"  [{kind}] {tags} {entry.name} ({format_file_size(entry.size)}, {entry.age_minutes} min old)"
                )
            lines.append(f"Total files: {len(self.entries)}")
            lines.append(f"Video files: {self.video_count}")
            lines.append(f"Test videos: {self.count('TEST VIDEO')}")
            lines.append(f"Recent files (<{RECENT_MINUTES}min): {self.count('RECENT')}")
            lines.append(f"Old files (>{OLD_MINUTES}min): {self.count('OLD')}")

        if self.mount_points:
            lines.append("Mount points:")
            lines.extend(f"  {mount}" for mount in self.mount_points)
        if self.recorder_processes:
            lines.append("Recorder processes:")
            lines.extend(f"  {proc}" for proc in self.recorder_processes)
        return lines


def _categorize(name: str, is_dir: bool, age_minutes: int, extension: str) -> tuple[str, ...]:
    if is_dir:
        return ()
    categories = []
    if name.lower().endswith(f".{extension}"):
        categories.append("TEST VIDEO" if looks_finalized(name, extension) else "RAW VIDEO")
    if age_minutes < RECENT_MINUTES:
        categories.append("RECENT")
    elif age_minutes > OLD_MINUTES:
        categories.append("OLD")
    return tuple(categories)


def list_directory_entries(
    directory: Path,
    extension: str = "mp4",
    *,
    clock: Callable[[], float] = time.time,
) -> List[DirectoryEntry]:
    now = clock()
    entries: List[DirectoryEntry] = []
    try:
        with os.scandir(directory) as iterator:
            raw = list(iterator)
    except OSError as exc:
        logger.debug("Cannot list %s: %s", directory, exc)
        return entries

    for item in sorted(raw, key=lambda e: e.name):
        try:
            st = item.stat()
            is_dir = item.is_dir()
        except OSError:
            continue
        age_minutes = int((now - st.st_mtime) // 60)
        entries.append(
            DirectoryEntry(
                name=item.name,
                is_dir=is_dir,
                size=0 if is_dir else st.st_size,
                age_minutes=age_minutes,
                categories=_categorize(item.name, is_dir, age_minutes, extension),
            )
        )
    return entries


def probe_writable(directory: Path, *, clock: Callable[[], float] = time.time) -> bool:
    probe = directory / f"test_write_{int(clock() * 1000)}.tmp"
    try:
        probe.touch(exist_ok=False)
    except OSError as exc:
        logger.debug("Cannot write to %s: %s", directory, exc)
        return False
    try:
        probe.unlink()
    except OSError as exc:
        logger.debug("Could not remove write probe %s: %s", probe, exc)
    return True


def find_mount_points(directory: Path) -> List[str]:
    """Mounted filesystems whose mount point contains ``directory``."""
    try:
        target = directory.resolve()
    except OSError:
        target = directory
    mounts = []
    try:
        partitions = psutil.disk_partitions(all=True)
    except (OSError, psutil.Error) as exc:
        logger.debug("Could not read mount table: %s", exc)
        return mounts

    for part in partitions:
        mountpoint = Path(part.mountpoint)
        if mountpoint == target or mountpoint in target.parents or "videos" in part.mountpoint:
            mounts.append(f"{part.device} on {part.mountpoint} type {part.fstype} ({part.opts})")
    return mounts


def find_recorder_processes(markers=RECORDER_MARKERS) -> List[str]:
    found = []
    for proc in psutil.process_iter(["pid", "name", "cmdline"]):
        try:
            cmdline = " ".join(proc.info.get("cmdline") or [])
            name = proc.info.get("name") or ""
            haystack = f"{name} {cmdline}".lower()
            if any(marker in haystack for marker in markers):
                found.append(f"pid={proc.pid} {cmdline[:100] or name}")
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue
    return found


def free_space(directory: Path) -> Optional[int]:
    try:
        return psutil.disk_usage(str(directory)).free
    except OSError:
        return None


def scan_directory(
    directory: Path,
    extension: str = "mp4",
    *,
    include_system: bool = True,
    clock: Callable[[], float] = time.time,
) -> DirectoryReport:
    """Build a :class:`DirectoryReport` for ``directory``.

    ``include_system`` adds mount, process and disk-usage information (via
    psutil); the write probe only runs when the directory exists but looks
    empty, where a broken volume mount is the usual cause.
    """
    directory = Path(directory)
    report = DirectoryReport(status=inspect_directory(directory))

    if report.status.usable:
        report.entries = list_directory_entries(directory, extension, clock=clock)
        if not report.entries:
            report.write_probe_ok = probe_writable(directory, clock=clock)

    if include_system:
        report.mount_points = find_mount_points(directory)
        report.recorder_processes = find_recorder_processes()
        if report.status.exists:
            report.free_bytes = free_space(directory)

    return report


def log_directory_report(report: DirectoryReport) -> None:
    for line in report.lines():
        logger.info("%s", line)


__all__ = [
    "DirectoryEntry",
    "DirectoryReport",
    "find_mount_points",
    "find_recorder_processes",
    "list_directory_entries",
    "log_directory_report",
    "probe_writable",
    "scan_directory",
]
