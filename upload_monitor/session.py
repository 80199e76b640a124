"""State owned by one watch-and-process cycle."""

from __future__ import annotations

import logging
import threading

from upload_monitor.dedup import Deduplicator
from upload_monitor.logstream import LogStream
from upload_monitor.stability import STABILITY_THRESHOLD, StabilityTracker

logger = logging.getLogger(__name__)


class RunSession:
    """
    One contiguous watch-and-process lifetime.

    Built fresh by ``UploadMonitor.start`` and discarded by ``stop``.  The
    stability table and the accepted set share one lock, and every unit of
    work spawned for the session holds a reference to it rather than to
    module-level state.
    """

    def __init__(
        self,
        watch_target: str,
        log: LogStream,
        stable_seconds: float = STABILITY_THRESHOLD,
    ):
        self.watch_target = watch_target
        self.log = log
        self.lock = threading.RLock()
        self.tracker = StabilityTracker(stable_seconds, lock=self.lock)
        self.dedup = Deduplicator(lock=self.lock)
        self._active = threading.Event()
        self._active.set()
        # Cancellation signal: set once, never cleared.
        self.stopped = threading.Event()

    def is_active(self) -> bool:
        return self._active.is_set()

    def deactivate(self) -> bool:
        """End the session.  Returns False if it had already ended."""
        with self.lock:
            if not self._active.is_set():
                return False
            self._active.clear()
            self.stopped.set()
            self.tracker.clear()
            self.dedup.clear()
        logger.debug("Session for %s deactivated", self.watch_target)
        return True
