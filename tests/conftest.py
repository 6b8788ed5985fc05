"""Shared pytest configuration and fixtures for the video recorder test suite."""

from __future__ import annotations

import os
import threading
import time
from dataclasses import replace
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from auto_video_recorder.correlation.settings import LOCAL, CorrelationSettings


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Time control
# =============================================================================

class FakeClock:
    """Deterministic wall/monotonic clock whose ``sleep`` just advances time.

    ``on_sleep`` callbacks run after each sleep, which lets a test simulate a
    recorder writing to a file between stability samples.
    """

    def __init__(self, start: Optional[float] = None) -> None:
        self._lock = threading.Lock()
        self._wall = time.time() if start is None else start
        self._mono = 1_000.0
        self.sleeps: List[float] = []
        self.on_sleep: List[Callable[[float], None]] = []

    def time(self) -> float:
        with self._lock:
            return self._wall

    def monotonic(self) -> float:
        with self._lock:
            return self._mono

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._wall += seconds
            self._mono += seconds

    def sleep(self, seconds: float) -> None:
        with self._lock:
            self.sleeps.append(seconds)
        self.advance(seconds)
        for callback in list(self.on_sleep):
            callback(seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# Settings and directories
# =============================================================================

@pytest.fixture
def fast_settings() -> CorrelationSettings:
    """LOCAL thresholds with short, fake-clock friendly timings."""
    return replace(
        LOCAL,
        name="test",
        settling_delay=2.0,
        max_attempts=3,
        retry_delay=1.0,
        sample_interval=1.0,
        stabilization_timeout=5.0,
    )


@pytest.fixture
def video_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "videos"
    directory.mkdir()
    return directory


@pytest.fixture
def make_video(video_dir: Path, clock: FakeClock):
    """Factory writing a file of ``size`` bytes with mtime ``clock + offset``."""

    def _make(name: str, size: int = 2_000_000, offset: float = 0.0, directory: Optional[Path] = None) -> Path:
        path = (directory or video_dir) / name
        path.write_bytes(b"\0" * size)
        mtime = clock.time() + offset
        os.utime(path, (mtime, mtime))
        return path

    return _make
