"""
Artifact finalizer - moves a matched recording to its canonical name.

The move is a copy followed by a delete: the recorder's output directory is
often a bind mount or network volume where an atomic rename across
filesystems is not available. Every step is best effort; the recorder owns
the source file, so failing to delete it is logged and ignored.
"""

from __future__ import annotations

import shutil
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Set

from auto_video_recorder.core.file_sync_utils import fsync_path
from auto_video_recorder.core.logging_utils import get_module_logger
from auto_video_recorder.core.paths import missing_marker_name

from .identity import canonical_name, format_file_size
from .probe import CandidateArtifact
from .settings import CorrelationSettings
from .stability import StabilityValidator

logger = get_module_logger("ArtifactFinalizer")

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


@dataclass(frozen=True)
class FinalizeResult:
    ok: bool
    source: Path
    destination: Optional[Path] = None
    size: int = 0
    reason: str = ""


class ArtifactFinalizer:

    def __init__(
        self,
        output_dir: Path,
        settings: CorrelationSettings,
        validator: StabilityValidator,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.settings = settings
        self.validator = validator
        self._clock = clock
        self._lock = threading.Lock()
        self._in_flight: Set[Path] = set()
        self._produced: Set[str] = set()

    def canonical_path(self, test_identity: str) -> Path:
        return self.output_dir / canonical_name(test_identity, self.settings.video_extension)

    def is_finalized(self, file_name: str) -> bool:
        """True for canonical names this finalizer has produced during the run."""
        with self._lock:
            return file_name.lower() in self._produced

    # ------------------------------------------------------------------
    # Finalization

    def finalize(self, candidate: CandidateArtifact, test_identity: str) -> FinalizeResult:
        source = candidate.path
        if not self._claim(source):
            logger.warning("Source %s is already being finalized by another worker", source.name)
            return FinalizeResult(False, source, reason="source in use")
        try:
            return self._finalize_claimed(source, test_identity)
        finally:
            with self._lock:
                self._in_flight.discard(source)

    def _claim(self, source: Path) -> bool:
        with self._lock:
            if source in self._in_flight:
                return False
            self._in_flight.add(source)
            return True

    def _finalize_claimed(self, source: Path, test_identity: str) -> FinalizeResult:
        destination = self.canonical_path(test_identity)

        stability = self.validator.await_stabilization(source, self.settings.stabilization_timeout)
        if not stability.stable:
            logger.warning("Source video may not be complete: %s (%s)", source.name, stability.reason)
        if not stability.accepted:
            return FinalizeResult(False, source, reason=f"source not usable: {stability.reason}")

        if destination == source:
            # Recorder already used the canonical name; nothing to move.
            self._remember(destination)
            self.clear_missing_marker(test_identity)
            return FinalizeResult(True, source, destination, stability.size, "already canonical")

        if destination.exists():
            try:
                destination.unlink()
                logger.debug("Removed previous artifact %s", destination.name)
            except OSError as exc:
                logger.warning("Could not delete existing video %s: %s", destination.name, exc)

        try:
            source_size = source.stat().st_size
            shutil.copyfile(source, destination)
        except OSError as exc:
            logger.error("Error copying %s to %s: %s", source.name, destination.name, exc)
            self._discard(destination)
            return FinalizeResult(False, source, reason=f"copy failed: {exc}")

        fsync_path(destination)

        try:
            copied_size = destination.stat().st_size
        except OSError:
            copied_size = -1

        if copied_size <= self.settings.min_artifact_size or copied_size != source_size:
            logger.error(
                "Video copy verification failed for %s (expected %d bytes, found %d)",
                destination.name, source_size, copied_size,
            )
            self._discard(destination)
            return FinalizeResult(False, source, reason="verification failed")

        self._remember(destination)
        logger.info("Video saved: %s -> %s (%s)", source.name, destination.name, format_file_size(copied_size))
        self.clear_missing_marker(test_identity)

        try:
            source.unlink()
            logger.debug("Cleaned up source: %s", source.name)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not delete source %s: %s", source.name, exc)

        return FinalizeResult(True, source, destination, copied_size)

    def _remember(self, destination: Path) -> None:
        with self._lock:
            self._produced.add(destination.name.lower())

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove partial copy %s: %s", path.name, exc)

    # ------------------------------------------------------------------
    # Missing artifacts

    def write_missing_marker(self, test_identity: str, reason: str = "") -> Optional[Path]:
        marker = self.output_dir / missing_marker_name(test_identity)
        timestamp = datetime.fromtimestamp(self._clock()).strftime(TIMESTAMP_FORMAT)
        lines = [
            f"Video recording was expected but not found for test: {test_identity}",
            f"Timestamp: {timestamp}",
            "Test execution completed but video file was not generated or found.",
        ]
        if reason:
            lines.append(f"Reason: {reason}")
        try:
            marker.write_text("\n".join(lines) + "\n", encoding="utf-8")
        except OSError as exc:
            logger.error("Could not create video placeholder %s: %s", marker.name, exc)
            return None
        logger.info("Created video placeholder: %s", marker.name)
        return marker

    def clear_missing_marker(self, test_identity: str) -> bool:
        """Remove a placeholder left by an earlier failed attempt for this test."""
        marker = self.output_dir / missing_marker_name(test_identity)
        try:
            marker.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning("Could not remove stale placeholder %s: %s", marker.name, exc)
            return False
        logger.info("Removed stale video placeholder: %s", marker.name)
        return True


__all__ = ["ArtifactFinalizer", "FinalizeResult", "TIMESTAMP_FORMAT"]
