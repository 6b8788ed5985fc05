"""Artifact correlation engine."""

from .finalizer import ArtifactFinalizer, FinalizeResult
from .identity import canonical_name, is_utility_test, normalize_test_name
from .orchestrator import CorrelationOutcome, OutcomeStatus, RetryOrchestrator
from .probe import CandidateArtifact, inspect_directory, list_candidates
from .registry import SessionRegistry, VideoSession
from .settings import CI, LOCAL, CorrelationSettings
from .stability import StabilityResult, StabilityValidator
from .strategies import (
    IdentityStrategy,
    NamingPatternStrategy,
    RecencyStrategy,
    StrategyChain,
    TemporalStrategy,
)
from .summary import RunSummary, SummaryReporter

__all__ = [
    "ArtifactFinalizer",
    "CI",
    "CandidateArtifact",
    "CorrelationOutcome",
    "CorrelationSettings",
    "FinalizeResult",
    "IdentityStrategy",
    "LOCAL",
    "NamingPatternStrategy",
    "OutcomeStatus",
    "RecencyStrategy",
    "RetryOrchestrator",
    "RunSummary",
    "SessionRegistry",
    "StabilityResult",
    "StabilityValidator",
    "StrategyChain",
    "SummaryReporter",
    "TemporalStrategy",
    "VideoSession",
    "canonical_name",
    "inspect_directory",
    "is_utility_test",
    "list_candidates",
    "normalize_test_name",
]
