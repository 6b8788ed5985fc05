"""End-of-run summary of correlation outcomes."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from auto_video_recorder.core.environment import RunEnvironment
from auto_video_recorder.core.logging_utils import get_module_logger
from auto_video_recorder.core.paths import MISSING_MARKER_SUFFIX, SUMMARY_PREFIX

from .finalizer import TIMESTAMP_FORMAT
from .identity import format_file_size
from .orchestrator import CorrelationOutcome
from .probe import list_candidates

logger = get_module_logger("SummaryReporter")


@dataclass(frozen=True)
class RunSummary:
    generated_at: datetime
    directory: Path
    total_sessions: int
    matched: int
    exhausted: int
    artifacts: Tuple[Tuple[str, str, int], ...]
    missing_markers: Tuple[str, ...]
    video_files: Tuple[Tuple[str, int], ...]
    environment: Optional[RunEnvironment] = None

    @property
    def total_artifact_size(self) -> int:
        return sum(size for _, _, size in self.artifacts)

    @property
    def total_video_size(self) -> int:
        return sum(size for _, size in self.video_files)


@dataclass
class SummaryReporter:
    """Collects outcomes from every worker and renders them at shutdown."""

    environment: Optional[RunEnvironment] = None
    clock: Callable[[], float] = time.time
    _outcomes: List[CorrelationOutcome] = field(default_factory=list, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def record(self, outcome: CorrelationOutcome) -> None:
        with self._lock:
            self._outcomes.append(outcome)

    def outcomes(self) -> List[CorrelationOutcome]:
        with self._lock:
            return list(self._outcomes)

    def build(self, directory: Path, extension: str = "mp4") -> RunSummary:
        directory = Path(directory)
        outcomes = self.outcomes()

        artifacts = []
        for outcome in outcomes:
            if not outcome.matched or outcome.artifact is None:
                continue
            try:
                size = outcome.artifact.stat().st_size
            except OSError:
                size = outcome.size
            artifacts.append((outcome.test_identity, outcome.artifact.name, size))

        markers = sorted(
            candidate.name
            for candidate in list_candidates(directory, extension="txt")
            if candidate.name.endswith(MISSING_MARKER_SUFFIX)
        )
        videos = sorted(
            (candidate.name, candidate.size)
            for candidate in list_candidates(directory, extension=extension)
        )

        matched = sum(1 for outcome in outcomes if outcome.matched)
        return RunSummary(
            generated_at=datetime.fromtimestamp(self.clock()),
            directory=directory,
            total_sessions=len(outcomes),
            matched=matched,
            exhausted=len(outcomes) - matched,
            artifacts=tuple(artifacts),
            missing_markers=tuple(markers),
            video_files=tuple(videos),
            environment=self.environment,
        )

    @staticmethod
    def render(summary: RunSummary) -> str:
        lines = [
            "VIDEO RECORDING SUMMARY REPORT",
            "=====================================",
            f"Generated: {summary.generated_at.isoformat(sep=' ', timespec='seconds')}",
            f"Video Directory: {summary.directory}",
            "",
        ]

        if summary.environment is not None:
            lines.append("ENVIRONMENT:")
            lines.extend(f"- {line}" for line in summary.environment.describe())
            lines.append("")

        lines.append("SESSIONS:")
        lines.append(f"- Total: {summary.total_sessions}")
        lines.append(f"- Matched: {summary.matched}")
        lines.append(f"- Exhausted: {summary.exhausted}")
        lines.append("")

        if summary.artifacts:
            lines.append(f"ARTIFACTS ({len(summary.artifacts)}):")
            for identity, name, size in summary.artifacts:
                lines.append(f"- {identity}: {name} ({format_file_size(size)})")
            lines.append(f"TOTAL ARTIFACT SIZE: {format_file_size(summary.total_artifact_size)}")
            lines.append("")

        if summary.video_files:
            lines.append(f"VIDEO FILES ({len(summary.video_files)}):")
            for name, size in summary.video_files:
                lines.append(f"- {name} ({format_file_size(size)})")
            lines.append(f"TOTAL SIZE: {format_file_size(summary.total_video_size)}")
        else:
            lines.append("NO VIDEO FILES FOUND")

        if summary.missing_markers:
            lines.append("")
            lines.append(f"MISSING VIDEOS ({len(summary.missing_markers)}):")
            lines.extend(f"- {name}" for name in summary.missing_markers)

        return "\n".join(lines) + "\n"

    def write_report(self, directory: Path, extension: str = "mp4") -> Optional[Path]:
        directory = Path(directory)
        if not directory.is_dir():
            logger.warning("Skipping summary report, directory missing: %s", directory)
            return None

        summary = self.build(directory, extension)
        stamp = summary.generated_at.strftime(TIMESTAMP_FORMAT)
        report_path = directory / f"{SUMMARY_PREFIX}{stamp}.txt"
        try:
            report_path.write_text(self.render(summary), encoding="utf-8")
        except OSError as exc:
            logger.error("Error generating video summary report: %s", exc)
            return None

        logger.info(
            "Video summary report generated: %s (%d matched, %d missing)",
            report_path.name, summary.matched, summary.exhausted,
        )
        return report_path


__all__ = ["RunSummary", "SummaryReporter"]
