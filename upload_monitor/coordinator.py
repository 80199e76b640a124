"""
Ingestion coordinator for Upload Monitor.

Every detected path goes through the same steps: filter (already handled,
directory, naming convention), wait until its writes have settled,
claim it for upload, upload it, and report the outcome on the log stream.

Paths that are not yet stable are kept as PendingCheck entries and
advanced by a single poll thread per session.  The poll thread sleeps on
the session's cancellation signal, so stopping the session halts all
outstanding re-checks at the next tick.

A failed upload releases its claim but is not rescheduled: the file is
tried again only when a new creation event arrives for it.
"""

from __future__ import annotations

import logging
import os
import stat
import threading
from dataclasses import dataclass

from upload_monitor.errors import StatFailure, UploadError
from upload_monitor.naming import matches_name
from upload_monitor.session import RunSession
from upload_monitor.stability import stat_path
from upload_monitor.uploader import Uploader

logger = logging.getLogger(__name__)

CHECK_INTERVAL = 0.5


@dataclass
class PendingCheck:
    """A path waiting for its writes to settle."""
    path: str
    name: str
    checks: int = 0


class IngestionCoordinator:
    """Drives detected paths from detection to a logged upload result."""

    def __init__(
        self,
        session: RunSession,
        uploader: Uploader,
        check_interval: float = CHECK_INTERVAL,
    ):
        self._session = session
        self._uploader = uploader
        self._check_interval = check_interval
        # path -> PendingCheck, guarded by the session lock
        self._pending = {}  # type: dict[str, PendingCheck]
        self._uploads = []  # type: list[threading.Thread]
        self._thread = threading.Thread(
            target=self._poll, daemon=True, name="StabilityPoller"
        )

    # ---- lifecycle ----

    def start(self) -> None:
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the poll thread and any uploads still in flight."""
        if self._thread.is_alive():
            self._thread.join(timeout)
        with self._session.lock:
            uploads = list(self._uploads)
        for t in uploads:
            if t.is_alive():
                t.join(timeout)

    @property
    def pending_count(self) -> int:
        with self._session.lock:
            return len(self._pending)

    # ---- detection ----

    def submit(self, path: str) -> None:
        """Handle a newly created *path*."""
        if not self._session.is_active():
            return
        path = os.path.abspath(path)
        if not self._eligible(path):
            return

        if self._session.tracker.check(path):
            self._admit(path)
            return

        with self._session.lock:
            if not self._session.is_active():
                return
            if path not in self._pending:
                self._pending[path] = PendingCheck(path, os.path.basename(path))
                logger.debug("Waiting for %s to settle", path)

    def _eligible(self, path: str) -> bool:
        """Return True if *path* is an unhandled file that follows the naming convention."""
        if self._session.dedup.already_seen(path):
            return False
        try:
            st = stat_path(path)
        except StatFailure as exc:
            logger.debug("Dropping %s", exc)
            return False
        if stat.S_ISDIR(st.st_mode):
            return False
        return matches_name(os.path.basename(path))

    # ---- stability polling ----

    def _poll(self) -> None:
        while not self._session.stopped.wait(timeout=self._check_interval):
            try:
                self._tick()
            except Exception:
                logger.exception("Error while checking pending files")

    def _tick(self) -> None:
        with self._session.lock:
            pending = list(self._pending.values())

        for check in pending:
            if not self._session.is_active():
                return
            check.checks += 1
            if not self._eligible(check.path):
                self._forget(check.path)
                continue
            if self._session.tracker.check(check.path):
                logger.info("File stable after %d checks: %s", check.checks, check.name)
                self._admit(check.path)

    def _forget(self, path: str) -> None:
        with self._session.lock:
            self._pending.pop(path, None)
            self._session.tracker.discard(path)

    # ---- admission and upload ----

    def _admit(self, path: str) -> None:
        session = self._session
        if not session.is_active():
            return
        with session.lock:
            admitted = session.is_active() and session.dedup.try_admit(path)
            if admitted:
                session.tracker.discard(path)
            self._pending.pop(path, None)
        if not admitted:
            return

        thread = threading.Thread(
            target=self._upload,
            args=(path,),
            daemon=True,
            name=f"Upload-{os.path.basename(path)}",
        )
        with session.lock:
            self._uploads = [t for t in self._uploads if t.is_alive()]
            self._uploads.append(thread)
        thread.start()

    def _upload(self, path: str) -> None:
        session = self._session
        name = os.path.basename(path)
        session.log.emit(f"Processing file: {name}")
        try:
            self._uploader.upload(path)
        except UploadError as exc:
            session.log.emit(f"Error uploading {name}: {exc}", logging.ERROR)
            session.dedup.release(path)
            return
        except Exception as exc:
            logger.exception("Unexpected error uploading %s", path)
            session.log.emit(f"Error uploading {name}: {exc}", logging.ERROR)
            session.dedup.release(path)
            return
        session.log.emit(f"File uploaded successfully: {name}")
