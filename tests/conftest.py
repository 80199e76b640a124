from __future__ import annotations

import threading
import time
from collections.abc import Callable

import pytest

from upload_monitor.errors import ServerError
from upload_monitor.logstream import LogStream


class FakeUploader:
    """Stands in for Uploader; records calls and can be told to fail."""

    def __init__(self, error: Exception | None = None, delay: float = 0.0):
        self.error = error
        self.delay = delay
        self.calls: list[str] = []
        self.sizes: list[int] = []
        self._lock = threading.Lock()

    def upload(self, path: str) -> None:
        import os

        with self._lock:
            self.calls.append(path)
            self.sizes.append(os.path.getsize(path))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error

    def close(self) -> None:
        pass


class CollectedLog:
    """Accumulates every message drained from a LogStream."""

    def __init__(self, stream: LogStream):
        self.stream = stream
        self.messages: list[str] = []

    def refresh(self) -> list[str]:
        self.messages.extend(e.message for e in self.stream.drain())
        return self.messages

    def count(self, prefix: str) -> int:
        return sum(1 for m in self.refresh() if m.startswith(prefix))


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


@pytest.fixture
def uploader() -> FakeUploader:
    return FakeUploader()


@pytest.fixture
def failing_uploader() -> FakeUploader:
    return FakeUploader(error=ServerError(500, "internal error"))
