"""
Session control for Upload Monitor.

``UploadMonitor`` is what a front end drives: ``start(folder)`` opens a
new session against one folder and ``stop()`` ends it.  Everything the
session produces comes out of ``log_stream`` as plain-text events.
"""

from __future__ import annotations

import logging
import os
import threading

from upload_monitor import __app_name__
from upload_monitor.config import DEFAULT_ENDPOINT, Config
from upload_monitor.coordinator import CHECK_INTERVAL, IngestionCoordinator
from upload_monitor.errors import ConfigurationError, WatchSetupError
from upload_monitor.logstream import LogStream
from upload_monitor.session import RunSession
from upload_monitor.stability import STABILITY_THRESHOLD
from upload_monitor.uploader import DEFAULT_TIMEOUT, Uploader
from upload_monitor.watcher import SETTLE_DELAY, DirectoryWatcher

logger = logging.getLogger(__name__)


class UploadMonitor:
    """
    Starts and stops watch sessions.

    Only one session is active at a time; starting a new one stops the
    previous one first.  Per-session state (stability records, accepted
    paths) is discarded on stop.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        stable_seconds: float = STABILITY_THRESHOLD,
        check_interval: float = CHECK_INTERVAL,
        settle_delay: float = SETTLE_DELAY,
        upload_timeout: float = DEFAULT_TIMEOUT,
        uploader: Uploader | None = None,
        log_stream: LogStream | None = None,
    ):
        self._stable_seconds = stable_seconds
        self._check_interval = check_interval
        self._settle_delay = settle_delay
        self._uploader = uploader or Uploader(endpoint, timeout=upload_timeout)
        self._log = log_stream or LogStream()
        # Serialises start/stop; _lock only guards the published fields.
        self._control = threading.Lock()
        self._lock = threading.Lock()
        self._session: RunSession | None = None
        self._coordinator: IngestionCoordinator | None = None
        self._watcher: DirectoryWatcher | None = None

    @classmethod
    def from_config(cls, cfg: Config, **kwargs) -> "UploadMonitor":
        """Build a monitor from the persisted settings."""
        return cls(
            endpoint=cfg.upload_endpoint,
            stable_seconds=cfg.stable_time,
            check_interval=cfg.check_interval,
            settle_delay=cfg.settle_delay,
            upload_timeout=cfg.upload_timeout,
            **kwargs,
        )

    # ---- status ----

    @property
    def log_stream(self) -> LogStream:
        return self._log

    @property
    def is_active(self) -> bool:
        session = self._session
        return session is not None and session.is_active()

    @property
    def watch_target(self) -> str | None:
        session = self._session
        return session.watch_target if session is not None else None

    @property
    def coordinator(self) -> IngestionCoordinator | None:
        return self._coordinator

    # ---- session control ----

    def start(self, directory: str) -> None:
        """Begin a new session watching *directory*.

        Raises ConfigurationError or WatchSetupError if the folder cannot
        be watched; the failure is also published on the log stream.
        """
        with self._control:
            self._stop_current()

            if not directory:
                self._log.emit("Error: no folder selected for watching", logging.ERROR)
                raise ConfigurationError("No folder selected for watching")

            directory = os.path.abspath(directory)
            session = RunSession(directory, self._log, self._stable_seconds)
            coordinator = IngestionCoordinator(
                session, self._uploader, check_interval=self._check_interval
            )
            watcher = DirectoryWatcher(
                directory,
                coordinator.submit,
                session.stopped,
                self._log.emit,
                on_failure=lambda exc: self._on_session_failure(session, exc),
                settle_delay=self._settle_delay,
            )

            try:
                watcher.start()
            except (ConfigurationError, WatchSetupError) as exc:
                session.deactivate()
                self._log.emit(f"Error: {exc}", logging.ERROR)
                raise

            coordinator.start()
            with self._lock:
                self._session = session
                self._coordinator = coordinator
                self._watcher = watcher
            logger.info("%s session started for %s", __app_name__, directory)

    def stop(self) -> None:
        """End the current session.  Safe to call repeatedly."""
        with self._control:
            self._stop_current()

    def close(self) -> None:
        """Stop any session and release the HTTP session."""
        self.stop()
        self._uploader.close()

    # ---- internals ----

    def _detach(self, session: RunSession | None = None):
        """Unpublish the current session (only if it is *session*, when given)."""
        with self._lock:
            current = self._session
            if current is None or (session is not None and current is not session):
                return None, None
            watcher = self._watcher
            self._session = None
            self._coordinator = None
            self._watcher = None
        return current, watcher

    def _teardown(self, session: RunSession, watcher: DirectoryWatcher | None) -> None:
        session.deactivate()
        if watcher is not None:
            watcher.stop()
        logger.info("Session for %s stopped", session.watch_target)

    def _stop_current(self) -> None:
        # Caller holds self._control.
        session, watcher = self._detach()
        if session is not None:
            self._teardown(session, watcher)

    def _on_session_failure(self, session: RunSession, exc: Exception) -> None:
        """Called from the watch loop when the watcher dies on its own.

        Runs on the watch-loop thread, which ``stop()`` may be joining while
        it holds the control lock, so this path only takes the state lock.
        """
        detached, watcher = self._detach(session)
        if detached is None:
            # Already replaced or stopped, or not yet published by start().
            session.deactivate()
            return
        self._log.emit(f"Watcher failed: {exc}", logging.ERROR)
        self._teardown(detached, watcher)
