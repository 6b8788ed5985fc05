"""
Session registry - in-flight recordings keyed by normalized test identity.

One registry exists per test run, owned by the VideoRecorder. All methods
are safe to call from concurrent worker threads; callers never lock.

A stop claims its session: the entry leaves the registered view at once and
is tracked as in flight until released, so a concurrent drain or a second
stop never correlates it again, and a rerun of the same test may register
a fresh session meanwhile.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from auto_video_recorder.core.logging_utils import get_module_logger

from .identity import normalize_test_name

UNKNOWN_NODE = "unknown"


@dataclass(frozen=True)
class VideoSession:
    """Metadata captured when a test's recording began."""

    test_identity: str
    remote_session_id: str = ""
    start_time: float = field(default_factory=time.time)
    node_host: str = UNKNOWN_NODE

    @property
    def has_remote_id(self) -> bool:
        return bool(self.remote_session_id)


class SessionRegistry:
    """Lock-protected mapping of test identity -> VideoSession."""

    def __init__(self) -> None:
        self.logger = get_module_logger("SessionRegistry")
        self._lock = threading.Lock()
        self._sessions: Dict[str, VideoSession] = {}
        self._in_flight: Dict[str, List[VideoSession]] = {}

    def register(self, identity: str, session: VideoSession) -> Optional[VideoSession]:
        """Store ``session`` under the normalized ``identity``.

        Returns the stored session (with its identity normalized), or None
        when the identity normalizes to empty. A stale entry for the same
        identity is replaced; it is presumed abandoned.
        """
        key = normalize_test_name(identity)
        if not key:
            self.logger.error("Refusing to register a session with an empty test identity")
            return None

        stored = session if session.test_identity == key else replace(session, test_identity=key)
        with self._lock:
            previous = self._sessions.get(key)
            self._sessions[key] = stored

        if previous is not None:
            self.logger.warning(
                "Replacing stale session for %s (previous session id: %s)",
                key, previous.remote_session_id or "<none>",
            )
        return stored

    def get(self, identity: str) -> Optional[VideoSession]:
        key = normalize_test_name(identity)
        with self._lock:
            return self._sessions.get(key)

    def remove(self, identity: str, expected: Optional[VideoSession] = None) -> Optional[VideoSession]:
        """Drop the session for ``identity``. Removing an absent key is a no-op.

        With ``expected``, the entry is dropped only if it is that very
        session object; a newer registration under the same key is kept.
        """
        key = normalize_test_name(identity)
        with self._lock:
            current = self._sessions.get(key)
            if current is None or (expected is not None and current is not expected):
                return None
            return self._sessions.pop(key)

    def claim(self, identity: str) -> Optional[VideoSession]:
        """Atomically take the registered session for ``identity`` for finalization.

        Returns None when nothing is registered (never started, or already
        claimed by another stop). Pair every successful claim with release().
        """
        key = normalize_test_name(identity)
        with self._lock:
            session = self._sessions.pop(key, None)
            if session is not None:
                self._in_flight.setdefault(key, []).append(session)
            return session

    def release(self, identity: str, session: VideoSession) -> None:
        """Forget a claimed session once its stop has finished."""
        key = normalize_test_name(identity)
        with self._lock:
            claimed = self._in_flight.get(key, [])
            self._in_flight[key] = [s for s in claimed if s is not session]
            if not self._in_flight[key]:
                del self._in_flight[key]

    def is_in_flight(self, identity: str) -> bool:
        key = normalize_test_name(identity)
        with self._lock:
            return key in self._in_flight

    def in_flight(self) -> List[str]:
        with self._lock:
            return sorted(self._in_flight)

    def snapshot(self) -> Dict[str, VideoSession]:
        """Point-in-time copy of registered sessions; claimed ones are excluded."""
        with self._lock:
            return dict(self._sessions)

    def active_sessions(self) -> Dict[str, str]:
        return {key: session.remote_session_id for key, session in self.snapshot().items()}

    def __contains__(self, identity: object) -> bool:
        if not isinstance(identity, str):
            return False
        return self.get(identity) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = ["UNKNOWN_NODE", "SessionRegistry", "VideoSession"]
