from __future__ import annotations

import logging
from datetime import datetime

import pytest

from upload_monitor.logstream import LogBuffer, LogEvent, LogStream


def test_event_format_has_timestamp_prefix() -> None:
    event = LogEvent("Processing file: abc__a.csv", datetime(2024, 5, 1, 9, 3, 7))
    assert event.format() == "[09:03:07] Processing file: abc__a.csv"


def test_events_are_immutable() -> None:
    event = LogEvent("x")
    with pytest.raises(AttributeError):
        event.message = "y"  # type: ignore[misc]


def test_stream_preserves_order() -> None:
    stream = LogStream()
    for i in range(5):
        stream.emit(f"m{i}")
    assert [e.message for e in stream.drain()] == ["m0", "m1", "m2", "m3", "m4"]
    assert stream.drain() == []


def test_get_times_out() -> None:
    stream = LogStream()
    assert stream.get(timeout=0.01) is None
    stream.emit("hello")
    event = stream.get(timeout=0.01)
    assert event is not None and event.message == "hello"


def test_emit_mirrors_to_logging(caplog: pytest.LogCaptureFixture) -> None:
    stream = LogStream()
    with caplog.at_level(logging.INFO, logger="upload_monitor.logstream"):
        stream.emit("File uploaded successfully: abc__a.csv")
        stream.emit("Error uploading abc__b.csv: boom", logging.ERROR)
    assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
        (logging.INFO, "File uploaded successfully: abc__a.csv"),
        (logging.ERROR, "Error uploading abc__b.csv: boom"),
    ]


def test_buffer_keeps_most_recent_hundred() -> None:
    stream = LogStream()
    buffer = LogBuffer()
    for i in range(250):
        stream.emit(f"line {i}")
    buffer.extend(stream.drain())

    assert len(buffer) == 100
    lines = buffer.lines()
    assert lines[0].endswith("line 150")
    assert lines[-1].endswith("line 249")
    assert buffer.text().count("\n") == 99

    buffer.clear()
    assert len(buffer) == 0
