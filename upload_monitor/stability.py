"""Write-stability detection for Upload Monitor.

A file is considered finished once its size and modification time have
not changed for ``stable_seconds``.  Each path moves through a two-state
machine: unstable (still changing, or not quiet long enough) and stable.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from upload_monitor.errors import StatFailure

logger = logging.getLogger(__name__)

STABILITY_THRESHOLD = 2.0


@dataclass
class StabilityRecord:
    """Last observed state of one path."""
    size: int
    mtime_ns: int
    stable_since: float


def stat_path(path: str) -> os.stat_result:
    """Stat *path*, raising StatFailure instead of OSError."""
    try:
        return os.stat(path)
    except OSError as exc:
        raise StatFailure(path, exc) from exc


class StabilityTracker:
    """Tracks size/mtime history per path until the file stops changing."""

    def __init__(
        self,
        stable_seconds: float = STABILITY_THRESHOLD,
        lock: threading.RLock | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._stable_seconds = stable_seconds
        self._lock = lock if lock is not None else threading.RLock()
        self._clock = clock
        # path -> StabilityRecord
        self._records = {}  # type: dict[str, StabilityRecord]

    @property
    def stable_seconds(self) -> float:
        return self._stable_seconds

    def check(self, path: str) -> bool:
        """Return True once *path* has been unchanged for the threshold."""
        try:
            st = stat_path(path)
        except StatFailure as exc:
            logger.debug("Not stable yet: %s", exc)
            return False

        now = self._clock()
        with self._lock:
            record = self._records.get(path)
            if record is None:
                self._records[path] = StabilityRecord(st.st_size, st.st_mtime_ns, now)
                logger.debug("Tracking %s (size=%d)", path, st.st_size)
                return False

            if st.st_size != record.size or st.st_mtime_ns != record.mtime_ns:
                record.size = st.st_size
                record.mtime_ns = st.st_mtime_ns
                record.stable_since = now
                return False

            return now - record.stable_since >= self._stable_seconds

    def discard(self, path: str) -> None:
        """Forget *path* (accepted for upload, or gone)."""
        with self._lock:
            self._records.pop(path, None)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def record_for(self, path: str) -> StabilityRecord | None:
        with self._lock:
            return self._records.get(path)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._records)

    @property
    def pending_files(self) -> list[str]:
        with self._lock:
            return list(self._records)
