"""Unit tests for RetryOrchestrator."""

from dataclasses import replace
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from auto_video_recorder.correlation.finalizer import ArtifactFinalizer, FinalizeResult
from auto_video_recorder.correlation.orchestrator import OutcomeStatus, RetryOrchestrator
from auto_video_recorder.correlation.probe import CandidateArtifact
from auto_video_recorder.correlation.registry import VideoSession
from auto_video_recorder.correlation.stability import StabilityValidator
from auto_video_recorder.correlation.strategies import StrategyChain


@pytest.fixture
def session(clock):
    return VideoSession("login_flow", "abc123def456", start_time=clock.time())


def _candidate(name="video-1.mp4"):
    return CandidateArtifact(Path("/videos") / name, 2_000_000, 0.0)


def _orchestrator(chain, finalizer, settings, clock):
    return RetryOrchestrator(chain, finalizer, settings, sleep=clock.sleep, clock=clock.monotonic)


class TestRetryLoop:

    def test_exhausts_after_max_attempts(self, fast_settings, clock, session):
        chain = MagicMock()
        chain.run.return_value = None
        finalizer = MagicMock()

        outcome = _orchestrator(chain, finalizer, fast_settings, clock).correlate("login_flow", session)

        assert outcome.status is OutcomeStatus.EXHAUSTED
        assert outcome.matched is False
        assert outcome.attempts == 3
        assert outcome.reason == "no eligible candidate"
        assert chain.run.call_count == 3
        finalizer.finalize.assert_not_called()
        # Settling delay once, then a retry delay between attempts only.
        assert clock.sleeps == [2.0, 1.0, 1.0]

    def test_match_on_later_attempt(self, fast_settings, clock, session):
        chain = MagicMock()
        chain.run.side_effect = [None, (_candidate(), "timestamp")]
        finalizer = MagicMock()
        finalizer.finalize.return_value = FinalizeResult(
            True, Path("/videos/video-1.mp4"), Path("/videos/login_flow.mp4"), 2_000_000,
        )

        outcome = _orchestrator(chain, finalizer, fast_settings, clock).correlate("login_flow", session)

        assert outcome.matched is True
        assert outcome.attempts == 2
        assert outcome.strategy == "timestamp"
        assert outcome.artifact == Path("/videos/login_flow.mp4")
        assert outcome.source_name == "video-1.mp4"
        assert outcome.size == 2_000_000

    def test_failed_finalization_counts_as_attempt(self, fast_settings, clock, session):
        chain = MagicMock()
        chain.run.return_value = (_candidate(), "most-recent")
        finalizer = MagicMock()
        finalizer.finalize.return_value = FinalizeResult(False, Path("/videos/video-1.mp4"), reason="copy failed: boom")

        outcome = _orchestrator(chain, finalizer, fast_settings, clock).correlate("login_flow", session)

        assert outcome.status is OutcomeStatus.EXHAUSTED
        assert outcome.attempts == 3
        assert outcome.reason == "finalization failed: copy failed: boom"

    def test_deadline_stops_before_retry_sleep(self, fast_settings, clock, session):
        chain = MagicMock()
        chain.run.return_value = None

        outcome = _orchestrator(chain, MagicMock(), fast_settings, clock).correlate(
            "login_flow", session, deadline=2.5,
        )

        assert outcome.attempts == 2
        assert outcome.reason == "deadline reached"
        assert clock.sleeps == [2.0, 1.0]

    def test_single_attempt_never_sleeps_after(self, fast_settings, clock, session):
        chain = MagicMock()
        chain.run.return_value = None
        settings = replace(fast_settings, max_attempts=1)

        outcome = _orchestrator(chain, MagicMock(), settings, clock).correlate("login_flow", session)

        assert outcome.attempts == 1
        assert clock.sleeps == [2.0]


def test_real_chain_and_finalizer(video_dir, fast_settings, clock, make_video, session):
    source = make_video("video-abc123def456-chrome.mp4", offset=5)
    validator = StabilityValidator.from_settings(fast_settings, sleep=clock.sleep, clock=clock.monotonic)
    finalizer = ArtifactFinalizer(video_dir, fast_settings, validator, clock=clock.time)
    chain = StrategyChain.default(
        video_dir, fast_settings, validator, is_finalized=finalizer.is_finalized, clock=clock.time,
    )

    outcome = _orchestrator(chain, finalizer, fast_settings, clock).correlate("login_flow", session)

    assert outcome.matched is True
    assert outcome.attempts == 1
    assert outcome.strategy == "session-id"
    assert outcome.artifact == video_dir / "login_flow.mp4"
    assert not source.exists()
