"""
Stability validation for files an external recorder may still be writing.

A file is "stable" when its size and modification time stop changing
between samples. This is a heuristic: a writer that pauses longer than the
sampling interval looks finished.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

from auto_video_recorder.core.logging_utils import get_module_logger

from .identity import format_file_size

logger = get_module_logger("StabilityValidator")


@dataclass(frozen=True)
class StabilityResult:
    """Outcome of :meth:`StabilityValidator.await_stabilization`.

    ``stable`` means the required number of consecutive unchanged samples was
    observed. ``accepted`` is what callers act on: it is also True when the
    wait ran out but the file is above the size threshold.
    """

    path: Path
    stable: bool
    accepted: bool
    size: int
    samples: int
    reason: str


def _sample(path: Path) -> Optional[Tuple[int, float]]:
    try:
        st = path.stat()
    except OSError:
        return None
    return st.st_size, st.st_mtime


class StabilityValidator:

    def __init__(
        self,
        min_size: int = 50_000,
        *,
        sample_interval: float = 1.0,
        required_stable_checks: int = 3,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.min_size = min_size
        self.sample_interval = sample_interval
        self.required_stable_checks = max(1, required_stable_checks)
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "StabilityValidator":
        return cls(
            settings.min_artifact_size,
            sample_interval=settings.sample_interval,
            required_stable_checks=settings.required_stable_checks,
            **kwargs,
        )

    def is_stable(self, path: Path) -> bool:
        """Two samples one interval apart; both must match and exceed min size."""
        path = Path(path)
        first = _sample(path)
        if first is None:
            logger.debug("Candidate vanished before sampling: %s", path.name)
            return False
        if first[0] <= self.min_size:
            logger.debug("Video file too small: %s (%s)", path.name, format_file_size(first[0]))
            return False

        self._sleep(self.sample_interval)

        second = _sample(path)
        if second is None:
            logger.debug("Candidate vanished while sampling: %s", path.name)
            return False
        if second != first:
            logger.debug("Video file still being written: %s", path.name)
            return False
        return True

    def await_stabilization(self, path: Path, max_seconds: float) -> StabilityResult:
        """Poll until ``required_stable_checks`` consecutive samples agree.

        When ``max_seconds`` runs out first, the file is accepted anyway if its
        size is still above the threshold.
        """
        path = Path(path)
        deadline = self._clock() + max_seconds
        previous: Optional[Tuple[int, float]] = None
        stable_checks = 0
        samples = 0
        current: Optional[Tuple[int, float]] = None

        while True:
            current = _sample(path)
            samples += 1
            if current is None:
                return StabilityResult(path, False, False, 0, samples, "file disappeared")

            if current == previous and current[0] > self.min_size:
                stable_checks += 1
                if stable_checks >= self.required_stable_checks:
                    logger.debug("File stabilized: %s (%s)", path.name, format_file_size(current[0]))
                    return StabilityResult(path, True, True, current[0], samples, "stable")
            else:
                stable_checks = 0

            previous = current
            if self._clock() >= deadline:
                break
            self._sleep(self.sample_interval)

        size = current[0]
        if size > self.min_size:
            logger.debug(
                "File not fully stable after %.1fs, accepting at %s: %s",
                max_seconds, format_file_size(size), path.name,
            )
            return StabilityResult(path, False, True, size, samples, "timed out above threshold")
        return StabilityResult(path, False, False, size, samples, "timed out below threshold")


__all__ = ["StabilityResult", "StabilityValidator"]
