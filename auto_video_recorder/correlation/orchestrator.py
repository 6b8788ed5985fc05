"""Retry orchestrator - drives the strategy chain until a match or exhaustion."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from auto_video_recorder.core.logging_utils import get_module_logger

from .finalizer import ArtifactFinalizer
from .registry import VideoSession
from .settings import CorrelationSettings
from .strategies import StrategyChain

logger = get_module_logger("RetryOrchestrator")


class OutcomeStatus(Enum):
    MATCHED = "matched"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class CorrelationOutcome:
    """Result of one correlation run for one session."""

    test_identity: str
    status: OutcomeStatus
    attempts: int
    artifact: Optional[Path] = None
    strategy: Optional[str] = None
    source_name: Optional[str] = None
    size: int = 0
    reason: str = ""
    marker: Optional[Path] = None

    @property
    def matched(self) -> bool:
        return self.status is OutcomeStatus.MATCHED

    @classmethod
    def exhausted(cls, test_identity: str, attempts: int, reason: str) -> "CorrelationOutcome":
        return cls(test_identity, OutcomeStatus.EXHAUSTED, attempts, reason=reason)


class RetryOrchestrator:

    def __init__(
        self,
        chain: StrategyChain,
        finalizer: ArtifactFinalizer,
        settings: CorrelationSettings,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.chain = chain
        self.finalizer = finalizer
        self.settings = settings
        self._sleep = sleep
        self._clock = clock

    def correlate(
        self,
        test_identity: str,
        session: VideoSession,
        deadline: Optional[float] = None,
    ) -> CorrelationOutcome:
        """Find, verify and finalize the video for ``session``.

        Args:
            test_identity: Normalized identity (also the canonical file stem).
            session: Metadata captured at recording start.
            deadline: Optional limit in seconds for the whole run, settling
                delay included. ``max_attempts`` still applies.

        Returns:
            A matched outcome naming the canonical artifact, or an exhausted
            outcome with the number of attempts made.
        """
        log = logger.bind(test_identity)
        started = self._clock()
        max_attempts = self.settings.max_attempts
        last_reason = "no eligible candidate"

        log.info("Waiting %.1fs for the recorder to flush video", self.settings.settling_delay)
        self._sleep(self.settings.settling_delay)

        attempts = 0
        while attempts < max_attempts:
            attempts += 1
            log.debug("Attempt %d/%d - looking for video files", attempts, max_attempts)

            match = self.chain.run(test_identity, session)
            if match is not None:
                candidate, strategy = match
                result = self.finalizer.finalize(candidate, test_identity)
                if result.ok:
                    return CorrelationOutcome(
                        test_identity,
                        OutcomeStatus.MATCHED,
                        attempts,
                        artifact=result.destination,
                        strategy=strategy,
                        source_name=candidate.name,
                        size=result.size,
                    )
                last_reason = f"finalization failed: {result.reason}"
                log.warning("Discarding candidate %s: %s", candidate.name, result.reason)
            else:
                last_reason = "no eligible candidate"

            if attempts < max_attempts:
                if self._out_of_time(started, deadline):
                    last_reason = "deadline reached"
                    break
                log.debug("Waiting %.1fs before next attempt", self.settings.retry_delay)
                self._sleep(self.settings.retry_delay)

        log.warning("Video not found after %d attempt(s): %s", attempts, last_reason)
        return CorrelationOutcome.exhausted(test_identity, attempts, last_reason)

    def _out_of_time(self, started: float, deadline: Optional[float]) -> bool:
        return deadline is not None and (self._clock() - started) >= deadline


__all__ = ["CorrelationOutcome", "OutcomeStatus", "RetryOrchestrator"]
