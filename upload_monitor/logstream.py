"""
Log-message stream between the ingestion core and its display.

The core pushes plain-text events into an unbounded queue; whatever
displays them keeps only the most recent entries.  Every event is also
written to the regular application log.
"""

import logging
import queue
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)

DEFAULT_HISTORY = 100


@dataclass(frozen=True)
class LogEvent:
    """A single timestamped message."""
    message: str
    timestamp: datetime = field(default_factory=datetime.now)

    def format(self) -> str:
        """Render the message with its wall-clock prefix."""
        return f"[{self.timestamp.strftime('%H:%M:%S')}] {self.message}"


class LogStream:
    """Unbounded, thread-safe producer side of the log."""

    def __init__(self) -> None:
        self._queue: "queue.Queue[LogEvent]" = queue.Queue()

    def emit(self, message: str, level: int = logging.INFO) -> LogEvent:
        """Publish *message* and return the event that was queued."""
        event = LogEvent(message)
        logger.log(level, message)
        self._queue.put(event)
        return event

    def get(self, timeout: float | None = None) -> LogEvent | None:
        """Return the next event, or None if none arrives within *timeout*."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[LogEvent]:
        """Return every event queued so far without blocking."""
        events = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events


class LogBuffer:
    """Bounded consumer side: keeps the last *maxlen* events."""

    def __init__(self, maxlen: int = DEFAULT_HISTORY):
        self._events: deque[LogEvent] = deque(maxlen=maxlen)

    def append(self, event: LogEvent) -> None:
        self._events.append(event)

    def extend(self, events: list[LogEvent]) -> None:
        self._events.extend(events)

    def lines(self) -> list[str]:
        return [e.format() for e in self._events]

    def text(self) -> str:
        return "\n".join(self.lines())

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)
