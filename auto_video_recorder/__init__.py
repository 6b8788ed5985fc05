"""Correlate browser-test screen recordings with the tests that produced them."""

from __future__ import annotations

from importlib import metadata
from typing import Optional, Sequence

from .app.recorder import VideoRecorder
from .correlation.settings import CI, LOCAL, CorrelationSettings

try:
    __version__ = metadata.version("auto-video-recorder")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev
    __version__ = "0.0.0"


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line interface and return its exit code."""
    from .app.main import run as run_cli

    return run_cli(list(argv) if argv is not None else None)


__all__ = ["CI", "LOCAL", "CorrelationSettings", "VideoRecorder", "__version__", "run"]
