"""File system watcher for Upload Monitor.

Uses the watchdog library to monitor one folder (non-recursively) for
files created in it or renamed into it, and hands each of them to the ingestion coordinator.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from typing import Any

from watchdog.events import FileCreatedEvent, FileMovedEvent, FileSystemEventHandler
from watchdog.observers import Observer

from upload_monitor.errors import ConfigurationError, WatchSetupError

logger = logging.getLogger(__name__)

SETTLE_DELAY = 0.1
_LOOP_INTERVAL = 0.5


class NewFileHandler(FileSystemEventHandler):
    """Watchdog handler that forwards new files after a short settle delay.

    A file counts as new when it is created in, or renamed into, *directory*.
    """

    def __init__(
        self,
        directory: str,
        on_file: Callable[[str], None],
        stop_event: threading.Event,
        on_error: Callable[[Exception], None],
        settle_delay: float = SETTLE_DELAY,
    ):
        super().__init__()
        self._directory = os.path.normcase(os.path.abspath(directory))
        self._on_file = on_file
        self._stop_event = stop_event
        self._on_error = on_error
        self._settle_delay = settle_delay

    def on_created(self, event: FileCreatedEvent) -> None:  # type: ignore[override]
        """Handle a new file creation event without blocking the observer."""
        if event.is_directory:
            return
        self._schedule(os.fsdecode(event.src_path))

    def on_moved(self, event: FileMovedEvent) -> None:  # type: ignore[override]
        """Handle a rename whose destination lands in the watched folder."""
        if event.is_directory:
            return
        dest = os.fsdecode(event.dest_path)
        if os.path.normcase(os.path.dirname(os.path.abspath(dest))) != self._directory:
            return
        self._schedule(dest)

    def _schedule(self, path: str) -> None:
        threading.Thread(
            target=self._dispatch,
            args=(path,),
            daemon=True,
            name=f"Detect-{os.path.basename(path)}",
        ).start()

    def _dispatch(self, path: str) -> None:
        # Let the filesystem metadata settle; a stop during the wait drops the event.
        if self._stop_event.wait(timeout=self._settle_delay):
            return
        try:
            self._on_file(path)
        except Exception as exc:
            logger.exception("Error handling %s", path)
            self._on_error(exc)


class DirectoryWatcher:
    """
    Watches one directory for the lifetime of a session.

    Usage:
        watcher = DirectoryWatcher(folder, coordinator.submit, session.stopped, log)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        directory: str,
        on_file: Callable[[str], None],
        stop_event: threading.Event,
        emit: Callable[[str], Any],
        on_failure: Callable[[Exception], None] | None = None,
        settle_delay: float = SETTLE_DELAY,
    ):
        self.directory = directory
        self._stop_event = stop_event
        self._emit = emit
        self._on_failure = on_failure
        self._handler = NewFileHandler(
            directory, on_file, stop_event, self._report_error, settle_delay
        )
        self._observer: Any | None = None
        self._loop: threading.Thread | None = None

    # ---- lifecycle ----

    def start(self) -> None:
        """Attach to the directory and start the watch loop."""
        if not os.path.isdir(self.directory):
            logger.error("Watch folder does not exist: %s", self.directory)
            raise ConfigurationError(f"Folder not found: {self.directory}")

        observer = Observer()
        try:
            observer.schedule(self._handler, self.directory, recursive=False)
            observer.start()
        except Exception as exc:
            raise WatchSetupError(f"Could not watch {self.directory}: {exc}") from exc
        self._observer = observer

        self._emit(f"Watching folder: {self.directory}")
        self._loop = threading.Thread(
            target=self._watch_loop, args=(observer,), daemon=True, name="WatchLoop"
        )
        self._loop.start()

    def stop(self) -> None:
        """Detach from the directory and wait for the watch loop to exit."""
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            if observer.is_alive():
                observer.join(timeout=5)
        loop = self._loop
        if loop is not None and loop is not threading.current_thread() and loop.is_alive():
            loop.join(timeout=5)

    @property
    def is_running(self) -> bool:
        """Return whether the watcher is currently attached."""
        observer = self._observer
        return observer is not None and observer.is_alive()

    # ---- internals ----

    def _watch_loop(self, observer: Any) -> None:
        failure = None
        while not self._stop_event.wait(timeout=_LOOP_INTERVAL):
            # The session sets the stop signal before stopping the observer.
            if not observer.is_alive() and not self._stop_event.is_set():
                failure = WatchSetupError("file watcher stopped unexpectedly")
                break

        if failure is None:
            self._emit("File processing stopped")
            return
        logger.error("Watch loop ended: %s", failure)
        if self._on_failure is not None:
            self._on_failure(failure)

    def _report_error(self, exc: Exception) -> None:
        self._emit(f"Watcher error: {exc}")
