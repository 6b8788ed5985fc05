"""Test identity normalization and artifact naming conventions."""

from __future__ import annotations

import re

_INVALID_CHARS = re.compile(r"[^a-z0-9_-]")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")

# Names the engine (or a previous run) already produced. The canonical name
# itself is tracked separately by the finalizer.
_FINALIZED_PATTERNS = (
    re.compile(r".*test.*"),
    re.compile(r".*scenario.*"),
    re.compile(r".*_\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}"),
)

_UTILITY_MARKERS = ("setup", "teardown", "beforeclass", "afterclass")


def normalize_test_name(test_name: str | None) -> str:
    """
    Normalize a free-text test name into a registry key and file stem.

    Lowercases, replaces anything outside ``[a-z0-9_-]`` with ``_``, collapses
    runs of underscores and strips leading/trailing underscores. Returns an
    empty string for blank input.
    """
    if not test_name:
        return ""
    safe = _INVALID_CHARS.sub("_", test_name.strip().lower())
    safe = _REPEATED_UNDERSCORES.sub("_", safe)
    return safe.strip("_")


def is_utility_test(test_identity: str) -> bool:
    """Setup/teardown hooks never get their own recording."""
    lowered = test_identity.lower()
    return any(marker in lowered for marker in _UTILITY_MARKERS)


def looks_finalized(file_name: str, extension: str = "mp4") -> bool:
    """True when ``file_name`` follows a finalized-artifact naming convention."""
    lowered = file_name.lower()
    suffix = f".{extension.lower().lstrip('.')}"
    if not lowered.endswith(suffix):
        return False
    stem = lowered[: -len(suffix)]
    return any(pattern.fullmatch(stem) for pattern in _FINALIZED_PATTERNS)


def canonical_name(test_identity: str, extension: str = "mp4") -> str:
    return f"{test_identity}.{extension.lstrip('.')}"


def format_file_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    if num_bytes < 1024 * 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):.1f} MB"
    return f"{num_bytes / (1024 * 1024 * 1024):.1f} GB"


__all__ = [
    "canonical_name",
    "format_file_size",
    "is_utility_test",
    "looks_finalized",
    "normalize_test_name",
]
