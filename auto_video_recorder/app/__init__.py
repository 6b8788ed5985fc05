"""Application layer: the VideoRecorder facade and the command line."""

from .recorder import VideoRecorder

__all__ = ["VideoRecorder"]
