"""
Correlation strategies - heuristics that pick one recorder file for a test.

Strategies run in a fixed order, most discriminating first, and the chain
stops at the first match:

1. IdentityStrategy: the file name embeds the remote browser session id.
2. TemporalStrategy: mtime closest to the recorded session start.
3. RecencyStrategy: newest large file in a short trailing window.
4. NamingPatternStrategy: common recorder naming tokens near session start.

Strategies 3 and 4 ignore session identity and can claim another worker's
video when tests finish close together; they only salvage sessions that
lack identity metadata.
"""

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from auto_video_recorder.core.logging_utils import get_module_logger

from .identity import format_file_size, looks_finalized
from .probe import (
    CandidateArtifact,
    Predicate,
    all_of,
    larger_than,
    list_candidates,
    modified_between,
    name_contains,
    newest_first,
)
from .registry import VideoSession
from .settings import CorrelationSettings
from .stability import StabilityValidator

logger = get_module_logger("Strategies")

FinalizedCheck = Callable[[str], bool]

GENERIC_NAME_TOKENS = ("video-", "test-", "session-", "recording-", "chrome-", "selenium-")
SESSION_ID_PREFIX_LENGTH = 8


class CorrelationStrategy:
    """Base class: subclasses implement :meth:`attempt`."""

    name = "strategy"

    def __init__(
        self,
        directory: Path,
        settings: CorrelationSettings,
        validator: StabilityValidator,
        *,
        is_finalized: Optional[FinalizedCheck] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.directory = Path(directory)
        self.settings = settings
        self.validator = validator
        self._is_finalized = is_finalized
        self._clock = clock

    def attempt(self, test_identity: str, session: VideoSession) -> Optional[Tuple[CandidateArtifact, str]]:
        """Return ``(candidate, strategy_label)`` or None."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Helpers shared by subclasses

    def _finalized(self, file_name: str) -> bool:
        if looks_finalized(file_name, self.settings.video_extension):
            return True
        return bool(self._is_finalized and self._is_finalized(file_name))

    def _candidates(self, predicate: Optional[Predicate] = None) -> List[CandidateArtifact]:
        return list_candidates(
            self.directory,
            predicate,
            extension=self.settings.video_extension,
            is_finalized=self._finalized,
        )

    def _first_stable(self, candidates: Sequence[CandidateArtifact]) -> Optional[CandidateArtifact]:
        for candidate in candidates:
            if self.validator.is_stable(candidate.path):
                return candidate
        return None


class IdentityStrategy(CorrelationStrategy):

    name = "session-id"

    def patterns(self, remote_session_id: str) -> List[str]:
        session_id = remote_session_id.lower()
        patterns = [
            session_id,
            session_id[:SESSION_ID_PREFIX_LENGTH],
            f"session-{session_id}",
        ]
        patterns.extend(f"{session_id}-{engine.lower()}" for engine in self.settings.engine_names)
        # Preserve order, drop duplicates (short ids make the prefix equal the id).
        return list(dict.fromkeys(patterns))

    def attempt(self, test_identity, session):
        if not session.has_remote_id:
            logger.debug("No remote session id for %s, skipping identity match", test_identity)
            return None

        for pattern in self.patterns(session.remote_session_id):
            matches = newest_first(self._candidates(name_contains(pattern)))
            if not matches:
                continue
            chosen = self._first_stable(matches)
            if chosen is not None:
                logger.info("Session-id match for %s: %s (pattern %s)", test_identity, chosen.name, pattern)
                return chosen, self.name

        logger.debug("No session-id video for %s in %s", test_identity, self.directory)
        return None


class TemporalStrategy(CorrelationStrategy):

    name = "timestamp"

    def attempt(self, test_identity, session):
        window_start = session.start_time - self.settings.temporal_lookback
        window_end = self._clock() + self.settings.temporal_lookahead
        matches = self._candidates(
            all_of(
                modified_between(window_start, window_end),
                larger_than(self.settings.min_artifact_size),
            )
        )
        if not matches:
            return None

        closest = min(matches, key=lambda candidate: abs(candidate.mtime - session.start_time))
        logger.debug(
            "Timestamp-correlated video for %s: %s (time diff: %.0fs)",
            test_identity, closest.name, abs(closest.mtime - session.start_time),
        )
        if not self.validator.is_stable(closest.path):
            return None
        logger.info("Timestamp match for %s: %s", test_identity, closest.name)
        return closest, self.name


class RecencyStrategy(CorrelationStrategy):

    name = "most-recent"

    def attempt(self, test_identity, session):
        now = self._clock()
        matches = newest_first(
            self._candidates(
                all_of(
                    modified_between(now - self.settings.recency_window, float("inf")),
                    larger_than(self.settings.recency_min_size),
                )
            )
        )
        if not matches:
            return None

        for index, candidate in enumerate(matches[:3], start=1):
            logger.debug(
                "Recent video %d. %s (%s, %.0fs old)",
                index, candidate.name, format_file_size(candidate.size), candidate.age(now),
            )

        newest = matches[0]
        if not self.validator.is_stable(newest.path):
            return None
        logger.info("Most-recent match for %s: %s", test_identity, newest.name)
        return newest, self.name


class NamingPatternStrategy(CorrelationStrategy):

    name = "pattern"

    def tokens(self) -> List[str]:
        now = datetime.fromtimestamp(self._clock())
        return [*GENERIC_NAME_TOKENS, now.strftime("%Y-%m-%d"), now.strftime("%H-%M")]

    def attempt(self, test_identity, session):
        window = self.settings.pattern_window
        for token in self.tokens():
            matches = newest_first(self._candidates(name_contains(token)))
            for candidate in matches:
                if abs(candidate.mtime - session.start_time) >= window:
                    continue
                if not self.validator.is_stable(candidate.path):
                    continue
                logger.info("Pattern match for %s: %s (pattern: %s)", test_identity, candidate.name, token)
                return candidate, f"{self.name}-{token}"
        return None


class StrategyChain:
    """Runs strategies in priority order; the first match wins."""

    def __init__(self, strategies: Sequence[CorrelationStrategy]) -> None:
        self.strategies = list(strategies)

    @classmethod
    def default(
        cls,
        directory: Path,
        settings: CorrelationSettings,
        validator: StabilityValidator,
        *,
        is_finalized: Optional[FinalizedCheck] = None,
        clock: Callable[[], float] = time.time,
    ) -> "StrategyChain":
        kwargs = dict(is_finalized=is_finalized, clock=clock)
        return cls([
            IdentityStrategy(directory, settings, validator, **kwargs),
            TemporalStrategy(directory, settings, validator, **kwargs),
            RecencyStrategy(directory, settings, validator, **kwargs),
            NamingPatternStrategy(directory, settings, validator, **kwargs),
        ])

    @property
    def names(self) -> List[str]:
        return [strategy.name for strategy in self.strategies]

    def run(self, test_identity: str, session: VideoSession) -> Optional[Tuple[CandidateArtifact, str]]:
        for strategy in self.strategies:
            try:
                match = strategy.attempt(test_identity, session)
            except OSError as exc:
                logger.error("Strategy %s failed for %s: %s", strategy.name, test_identity, exc)
                continue
            if match is not None:
                return match
        return None


__all__ = [
    "CorrelationStrategy",
    "GENERIC_NAME_TOKENS",
    "IdentityStrategy",
    "NamingPatternStrategy",
    "RecencyStrategy",
    "StrategyChain",
    "TemporalStrategy",
]
