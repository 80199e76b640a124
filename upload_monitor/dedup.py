"""Per-session admission bookkeeping.

A path is admitted for upload at most once per session.  Admission is a
test-and-set under the session lock, so when two checks race for the
same path exactly one of them wins.
"""

from __future__ import annotations

import threading


class Deduplicator:
    """Set of paths accepted for upload in the current session."""

    def __init__(self, lock: threading.RLock | None = None):
        self._lock = lock if lock is not None else threading.RLock()
        self._accepted = set()  # type: set[str]

    def try_admit(self, path: str) -> bool:
        """Claim *path*; False if it is already claimed or done."""
        with self._lock:
            if path in self._accepted:
                return False
            self._accepted.add(path)
            return True

    def release(self, path: str) -> None:
        """Drop the claim on *path* so a later event can try it again."""
        with self._lock:
            self._accepted.discard(path)

    def already_seen(self, path: str) -> bool:
        with self._lock:
            return path in self._accepted

    def clear(self) -> None:
        with self._lock:
            self._accepted.clear()

    @property
    def accepted_count(self) -> int:
        with self._lock:
            return len(self._accepted)
