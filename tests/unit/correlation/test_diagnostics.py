"""Unit tests for the directory diagnostics scan."""

from collections import namedtuple
from unittest.mock import MagicMock, patch

import psutil

from auto_video_recorder.correlation import diagnostics
from auto_video_recorder.correlation.diagnostics import (
    find_mount_points,
    find_recorder_processes,
    list_directory_entries,
    probe_writable,
    scan_directory,
)

Partition = namedtuple("Partition", "device mountpoint fstype opts")


class _VanishedProcess:
    pid = 12

    @property
    def info(self):
        raise psutil.NoSuchProcess(self.pid)


def test_entries_are_categorized(video_dir, make_video, clock):
    make_video("video-raw.mp4", size=1_000, offset=-60)
    make_video("login_test.mp4", size=1_000, offset=-2 * 60 * 60)
    make_video("notes.txt", size=10, offset=-30 * 60)
    (video_dir / "sub").mkdir()

    entries = {entry.name: entry for entry in list_directory_entries(video_dir, clock=clock.time)}

    assert entries["video-raw.mp4"].categories == ("RAW VIDEO", "RECENT")
    assert entries["login_test.mp4"].categories == ("TEST VIDEO", "OLD")
    assert entries["notes.txt"].categories == ()
    assert entries["sub"].is_dir is True
    assert entries["sub"].size == 0


def test_probe_writable(video_dir, clock):
    assert probe_writable(video_dir, clock=clock.time) is True
    assert list(video_dir.iterdir()) == []


def test_probe_writable_missing_directory(tmp_path, clock):
    assert probe_writable(tmp_path / "absent", clock=clock.time) is False


def test_scan_without_system_info(video_dir, make_video, clock):
    make_video("video-raw.mp4", size=1_000)

    report = scan_directory(video_dir, include_system=False, clock=clock.time)

    assert report.status.usable is True
    assert report.video_count == 1
    assert report.write_probe_ok is None
    assert report.mount_points == []
    lines = report.lines()
    assert "Video files: 1" in lines
    assert any("video-raw.mp4" in line for line in lines)


def test_scan_empty_directory_runs_write_probe(video_dir, clock):
    report = scan_directory(video_dir, include_system=False, clock=clock.time)

    assert report.write_probe_ok is True
    assert "Video directory is empty" in report.lines()


def test_scan_missing_directory(tmp_path, clock):
    report = scan_directory(tmp_path / "absent", include_system=False, clock=clock.time)

    assert report.status.exists is False
    assert "Directory exists: False" in report.lines()


def test_find_mount_points_matches_parent_mount(video_dir):
    partitions = [
        Partition("/dev/sda1", "/", "ext4", "rw"),
        Partition("tmpfs", "/run/unrelated/deep", "tmpfs", "rw"),
    ]
    with patch.object(diagnostics.psutil, "disk_partitions", return_value=partitions):
        mounts = find_mount_points(video_dir)

    assert mounts == ["/dev/sda1 on / type ext4 (rw)"]


def test_find_mount_points_handles_psutil_error(video_dir):
    with patch.object(diagnostics.psutil, "disk_partitions", side_effect=psutil.Error()):
        assert find_mount_points(video_dir) == []


def test_find_recorder_processes():
    ffmpeg = MagicMock(pid=10, info={"name": "ffmpeg", "cmdline": ["ffmpeg", "-i", ":99"]})
    bash = MagicMock(pid=11, info={"name": "bash", "cmdline": ["bash"]})
    gone = _VanishedProcess()

    with patch.object(diagnostics.psutil, "process_iter", return_value=[ffmpeg, bash, gone]):
        found = find_recorder_processes()

    assert found == ["pid=10 ffmpeg -i :99"]
