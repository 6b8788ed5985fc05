"""
VideoRecorder - the per-run entry point test frameworks call.

Tests call :meth:`VideoRecorder.start_recording` when their browser session
begins and :meth:`VideoRecorder.stop_recording` when it ends. Stopping runs
the correlation engine against the recorder sidecar's output directory and
renames the matching video to ``<test identity>.<ext>``. Nothing here raises
into the calling test; a failed correlation degrades to a missing-video
marker.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from auto_video_recorder.core.config_manager import get_config_manager
from auto_video_recorder.core.environment import RunEnvironment, get_environment
from auto_video_recorder.core.logging_utils import get_module_logger
from auto_video_recorder.core.paths import ensure_video_directory, resolve_video_directory
from auto_video_recorder.correlation.diagnostics import log_directory_report, scan_directory
from auto_video_recorder.correlation.finalizer import ArtifactFinalizer
from auto_video_recorder.correlation.housekeeping import CleanupResult, cleanup_old_videos
from auto_video_recorder.correlation.identity import is_utility_test, normalize_test_name
from auto_video_recorder.correlation.orchestrator import CorrelationOutcome, RetryOrchestrator
from auto_video_recorder.correlation.probe import inspect_directory
from auto_video_recorder.correlation.registry import UNKNOWN_NODE, SessionRegistry, VideoSession
from auto_video_recorder.correlation.settings import LOCAL, CorrelationSettings
from auto_video_recorder.correlation.stability import StabilityValidator
from auto_video_recorder.correlation.strategies import StrategyChain
from auto_video_recorder.correlation.summary import SummaryReporter


class VideoRecorder:
    """
    Owns one test run's session registry and correlation pipeline.

    Responsibilities:
    - Track which tests are recording (thread-safe registry)
    - Correlate, verify and rename each test's video when it stops
    - Write missing-video markers and the end-of-run summary
    """

    def __init__(
        self,
        video_dir: Path,
        settings: CorrelationSettings = LOCAL,
        *,
        registry: Optional[SessionRegistry] = None,
        reporter: Optional[SummaryReporter] = None,
        environment: Optional[RunEnvironment] = None,
        skip_utility_tests: bool = True,
        deadline: Optional[float] = None,
        system_diagnostics: bool = True,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.logger = get_module_logger("VideoRecorder")
        self.video_dir = Path(video_dir)
        self.settings = settings
        self.skip_utility_tests = skip_utility_tests
        self.deadline = deadline
        self.system_diagnostics = system_diagnostics
        self._clock = clock

        self.registry = registry if registry is not None else SessionRegistry()
        self.environment = environment
        self.reporter = reporter if reporter is not None else SummaryReporter(environment=environment, clock=clock)

        self.validator = StabilityValidator.from_settings(settings, sleep=sleep, clock=monotonic)
        self.finalizer = ArtifactFinalizer(self.video_dir, settings, self.validator, clock=clock)
        self.chain = StrategyChain.default(
            self.video_dir,
            settings,
            self.validator,
            is_finalized=self.finalizer.is_finalized,
            clock=clock,
        )
        self.orchestrator = RetryOrchestrator(self.chain, self.finalizer, settings, sleep=sleep, clock=monotonic)

    @classmethod
    def from_config(
        cls,
        preset: str = "local",
        *,
        config_path: Optional[Path] = None,
        video_dir: Optional[Path] = None,
        **kwargs,
    ) -> "VideoRecorder":
        """Build a recorder from the config file on top of the named preset."""
        config = get_config_manager().read_config(config_path)
        return cls._from_parsed_config(config, preset, video_dir, **kwargs)

    @classmethod
    async def from_config_async(
        cls,
        preset: str = "local",
        *,
        config_path: Optional[Path] = None,
        video_dir: Optional[Path] = None,
        **kwargs,
    ) -> "VideoRecorder":
        """Async version of from_config() for suites running on an event loop."""
        config = await get_config_manager().read_config_async(config_path)
        return cls._from_parsed_config(config, preset, video_dir, **kwargs)

    @classmethod
    def _from_parsed_config(cls, config, preset, video_dir, **kwargs) -> "VideoRecorder":
        manager = get_config_manager()
        settings = CorrelationSettings.preset(preset).from_config(config, manager)
        directory = resolve_video_directory(video_dir or manager.get_str(config, "video_dir") or None)
        kwargs.setdefault("skip_utility_tests", manager.get_bool(config, "skip_utility_tests", True))
        kwargs.setdefault("environment", get_environment())
        return cls(directory, settings, **kwargs)

    # ------------------------------------------------------------------
    # Run lifecycle

    def open(self) -> bool:
        """Prepare the video directory. Returns False if it is unusable."""
        ready = ensure_video_directory(self.video_dir)
        self.logger.info("Video recording initialized: %s", self.video_dir)
        self.logger.info(
            "Configuration [%s]: settling %.1fs, max attempts %d, retry delay %.1fs, min size %d bytes",
            self.settings.name,
            self.settings.settling_delay,
            self.settings.max_attempts,
            self.settings.retry_delay,
            self.settings.min_artifact_size,
        )
        if self.environment is not None:
            self.logger.info("Environment: %s", self.environment)
        return ready

    def close(self) -> Tuple[int, int]:
        return self.stop_all_recordings()

    def __enter__(self) -> "VideoRecorder":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Recording start/stop

    def start_recording(
        self,
        test_name: str,
        remote_session_id: Optional[str] = None,
        node_host: Optional[str] = None,
        *,
        start_time: Optional[float] = None,
    ) -> bool:
        identity = normalize_test_name(test_name)
        if not identity:
            self.logger.error("Test name cannot be empty")
            return False

        if self.skips(identity):
            self.logger.info("Skipping video recording for utility test: %s", identity)
            return True

        session = VideoSession(
            test_identity=identity,
            remote_session_id=(remote_session_id or "").strip(),
            start_time=self._clock() if start_time is None else start_time,
            node_host=(node_host or "").strip() or UNKNOWN_NODE,
        )
        stored = self.registry.register(identity, session)
        if stored is None:
            return False

        self.logger.info(
            "Video recording started for %s (session id: %s, node: %s)",
            identity, stored.remote_session_id or "<none>", stored.node_host,
        )
        return True

    def skips(self, test_name: str) -> bool:
        """True when ``test_name`` is a utility test this recorder ignores."""
        return self.skip_utility_tests and is_utility_test(normalize_test_name(test_name))

    def stop_recording(self, test_name: str) -> bool:
        """Correlate and finalize the video for ``test_name``.

        Returns True when a video was found and renamed. The session is
        claimed before correlation starts, so a concurrent stop or drain for
        the same test returns False without touching the video.
        """
        identity = normalize_test_name(test_name)
        if not identity:
            return False

        if self.skips(identity):
            return True

        session = self.registry.claim(identity)
        if session is None:
            if self.registry.is_in_flight(identity):
                self.logger.info("Video for %s is already being processed", identity)
            else:
                self.logger.warning("No video session tracked for test: %s", identity)
            return False

        try:
            return self._finalize_session(identity, session)
        finally:
            self.registry.release(identity, session)

    def _finalize_session(self, identity: str, session: VideoSession) -> bool:
        self.logger.info(
            "Processing video for %s (session id: %s, test duration: %.1fs)",
            identity, session.remote_session_id or "<none>", self._clock() - session.start_time,
        )

        try:
            outcome = self.orchestrator.correlate(identity, session, deadline=self.deadline)
        except Exception as exc:
            self.logger.exception("Error processing video for %s: %s", identity, exc)
            outcome = CorrelationOutcome.exhausted(identity, 0, f"error: {exc}")

        if outcome.matched:
            self.logger.info(
                "Video successfully processed for %s via %s: %s",
                identity, outcome.strategy, outcome.artifact,
            )
        else:
            outcome = self._handle_exhaustion(outcome)

        self.reporter.record(outcome)
        return outcome.matched

    async def stop_recording_async(self, test_name: str) -> bool:
        """Async version of stop_recording() that runs it in a worker thread."""
        return await asyncio.to_thread(self.stop_recording, test_name)

    def _handle_exhaustion(self, outcome: CorrelationOutcome) -> CorrelationOutcome:
        self.logger.warning("Video not generated within timeout for: %s", outcome.test_identity)
        try:
            report = scan_directory(
                self.video_dir,
                self.settings.video_extension,
                include_system=self.system_diagnostics,
                clock=self._clock,
            )
            log_directory_report(report)
        except Exception as exc:
            self.logger.error("Error scanning video directory: %s", exc)

        marker = self.finalizer.write_missing_marker(outcome.test_identity, outcome.reason)
        return replace(outcome, marker=marker)

    def stop_all_recordings(self) -> Tuple[int, int]:
        """Drain every active session, then write the summary report.

        Returns:
            ``(matched, total)`` for the sessions drained here.
        """
        pending = self.registry.snapshot()
        if pending:
            self.logger.info("Stopping %d active video recording(s)", len(pending))

        matched = 0
        for identity in pending:
            if self.stop_recording(identity):
                matched += 1

        if pending:
            self.logger.info("Video recordings processed: %d/%d", matched, len(pending))

        self.reporter.write_report(self.video_dir, self.settings.video_extension)
        return matched, len(pending)

    # ------------------------------------------------------------------
    # Introspection and housekeeping

    def active_sessions(self) -> Dict[str, str]:
        return self.registry.active_sessions()

    def outcomes(self):
        return self.reporter.outcomes()

    def cleanup_old_videos(self, days_old: int) -> CleanupResult:
        return cleanup_old_videos(self.video_dir, days_old, self.settings.video_extension, clock=self._clock)

    def validate_configuration(self) -> bool:
        status = inspect_directory(self.video_dir)
        if not status.exists:
            self.logger.error("Video directory does not exist: %s", self.video_dir)
            return False
        if not status.is_dir:
            self.logger.error("Video directory is not a directory: %s", self.video_dir)
            return False
        if not status.writable:
            self.logger.error("Video directory is not writable: %s", self.video_dir)
            return False
        self.logger.info("Video recording configuration validated: %s", self.video_dir)
        return True


__all__ = ["VideoRecorder"]
