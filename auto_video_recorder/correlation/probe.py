"""
File probe: read-only queries over the artifact directory.

Every function here fails softly. A missing or unreadable directory yields
an empty listing; use :func:`inspect_directory` to tell "nothing there"
apart from "could not look".
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from auto_video_recorder.core.logging_utils import get_module_logger

logger = get_module_logger("FileProbe")


@dataclass(frozen=True)
class CandidateArtifact:
    """One directory entry as seen during a single correlation attempt."""

    path: Path
    size: int
    mtime: float
    finalized: bool = False

    @property
    def name(self) -> str:
        return self.path.name

    def age(self, now: float) -> float:
        return now - self.mtime


@dataclass(frozen=True)
class DirectoryStatus:
    path: Path
    exists: bool
    is_dir: bool
    readable: bool
    writable: bool

    @property
    def usable(self) -> bool:
        return self.exists and self.is_dir and self.readable


Predicate = Callable[[CandidateArtifact], bool]


def inspect_directory(directory: Path) -> DirectoryStatus:
    directory = Path(directory)
    exists = directory.exists()
    is_dir = exists and directory.is_dir()
    return DirectoryStatus(
        path=directory,
        exists=exists,
        is_dir=is_dir,
        readable=is_dir and os.access(directory, os.R_OK | os.X_OK),
        writable=is_dir and os.access(directory, os.W_OK),
    )


def stat_candidate(path: Path, *, finalized: bool = False) -> Optional[CandidateArtifact]:
    """Read size and mtime for ``path``; None if it vanished or is not a file."""
    try:
        st = path.stat()
    except OSError:
        return None
    if not path.is_file():
        return None
    return CandidateArtifact(path=path, size=st.st_size, mtime=st.st_mtime, finalized=finalized)


def list_candidates(
    directory: Path,
    predicate: Optional[Predicate] = None,
    *,
    extension: Optional[str] = None,
    is_finalized: Optional[Callable[[str], bool]] = None,
    include_finalized: bool = False,
) -> List[CandidateArtifact]:
    """List regular files in ``directory`` as candidates.

    Args:
        directory: Artifact directory to scan (not recursive).
        predicate: Optional filter applied after the extension filter.
        extension: Only keep files with this extension (case-insensitive).
        is_finalized: Callback deciding the ``finalized`` flag from a file name.
        include_finalized: Keep entries flagged as finalized (diagnostics only).

    Returns:
        Matching candidates, in directory order. Empty on any listing error.
    """
    directory = Path(directory)
    suffix = f".{extension.lower().lstrip('.')}" if extension else None

    try:
        with os.scandir(directory) as iterator:
            entries = list(iterator)
    except OSError as exc:
        logger.debug("Cannot list %s: %s", directory, exc)
        return []

    candidates: List[CandidateArtifact] = []
    for entry in entries:
        if suffix and not entry.name.lower().endswith(suffix):
            continue
        try:
            if not entry.is_file():
                continue
            st = entry.stat()
        except OSError:
            # Recorder removed or renamed it between scandir and stat.
            continue

        finalized = bool(is_finalized and is_finalized(entry.name))
        if finalized and not include_finalized:
            continue

        candidate = CandidateArtifact(
            path=Path(entry.path),
            size=st.st_size,
            mtime=st.st_mtime,
            finalized=finalized,
        )
        if predicate is not None and not predicate(candidate):
            continue
        candidates.append(candidate)

    return candidates


# ----------------------------------------------------------------------
# Predicate helpers


def name_contains(fragment: str) -> Predicate:
    needle = fragment.lower()
    return lambda candidate: needle in candidate.name.lower()


def has_extension(extension: str) -> Predicate:
    suffix = f".{extension.lower().lstrip('.')}"
    return lambda candidate: candidate.name.lower().endswith(suffix)


def modified_between(start: float, end: float) -> Predicate:
    return lambda candidate: start <= candidate.mtime <= end


def larger_than(num_bytes: int) -> Predicate:
    return lambda candidate: candidate.size > num_bytes


def all_of(*predicates: Predicate) -> Predicate:
    return lambda candidate: all(predicate(candidate) for predicate in predicates)


def newest_first(candidates: Iterable[CandidateArtifact]) -> List[CandidateArtifact]:
    return sorted(candidates, key=lambda candidate: candidate.mtime, reverse=True)


__all__ = [
    "CandidateArtifact",
    "DirectoryStatus",
    "Predicate",
    "all_of",
    "has_extension",
    "inspect_directory",
    "larger_than",
    "list_candidates",
    "modified_between",
    "name_contains",
    "newest_first",
    "stat_candidate",
]
