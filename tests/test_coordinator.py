from __future__ import annotations

import os
import threading
import time
from pathlib import Path

import pytest

from upload_monitor.coordinator import IngestionCoordinator
from upload_monitor.errors import TransportError
from upload_monitor.logstream import LogStream
from upload_monitor.session import RunSession

from conftest import CollectedLog, FakeUploader, wait_for

STABLE = 0.2
INTERVAL = 0.05


@pytest.fixture
def session(tmp_path: Path):
    s = RunSession(str(tmp_path), LogStream(), stable_seconds=STABLE)
    yield s
    s.deactivate()


def _coordinator(session: RunSession, uploader: FakeUploader) -> IngestionCoordinator:
    coordinator = IngestionCoordinator(session, uploader, check_interval=INTERVAL)
    coordinator.start()
    return coordinator


def test_stable_file_is_uploaded_once(session, uploader, tmp_path: Path) -> None:
    log = CollectedLog(session.log)
    coordinator = _coordinator(session, uploader)
    path = tmp_path / "abc__data.csv"
    path.write_bytes(b"1,2,3\n")

    coordinator.submit(str(path))
    assert coordinator.pending_count == 1
    assert wait_for(lambda: log.count("File uploaded successfully: abc__data.csv") == 1)

    assert uploader.calls == [str(path)]
    assert log.count("Processing file: abc__data.csv") == 1
    assert coordinator.pending_count == 0
    assert session.tracker.pending_count == 0
    assert session.dedup.already_seen(str(path))

    # A repeat creation event for the same path produces nothing.
    coordinator.submit(str(path))
    time.sleep(STABLE * 2)
    assert uploader.calls == [str(path)]
    assert log.refresh() == [
        "Processing file: abc__data.csv",
        "File uploaded successfully: abc__data.csv",
    ]


def test_failed_upload_is_released_and_retried_on_new_event(
    session, failing_uploader, tmp_path: Path
) -> None:
    log = CollectedLog(session.log)
    coordinator = _coordinator(session, failing_uploader)
    path = tmp_path / "abc__data.csv"
    path.write_bytes(b"1,2,3\n")

    coordinator.submit(str(path))
    assert wait_for(lambda: log.count("Error uploading abc__data.csv") == 1)
    assert "500 - internal error" in log.messages[-1]
    assert wait_for(lambda: not session.dedup.already_seen(str(path)))

    # No automatic retry.
    time.sleep(STABLE * 2)
    assert len(failing_uploader.calls) == 1

    failing_uploader.error = None
    coordinator.submit(str(path))
    assert wait_for(lambda: log.count("File uploaded successfully: abc__data.csv") == 1)
    assert len(failing_uploader.calls) == 2
    assert log.count("Processing file: abc__data.csv") == 2


def test_transport_error_is_logged(session, tmp_path: Path) -> None:
    uploader = FakeUploader(error=TransportError("request failed: connection refused"))
    log = CollectedLog(session.log)
    coordinator = _coordinator(session, uploader)
    path = tmp_path / "abcd__x.csv"
    path.write_bytes(b"x")

    coordinator.submit(str(path))
    assert wait_for(lambda: log.count("Error uploading abcd__x.csv") == 1)
    assert "connection refused" in log.messages[-1]


def test_unexpected_uploader_error_does_not_escape(session, tmp_path: Path) -> None:
    uploader = FakeUploader(error=ValueError("bad"))
    log = CollectedLog(session.log)
    coordinator = _coordinator(session, uploader)
    path = tmp_path / "abc__x.csv"
    path.write_bytes(b"x")

    coordinator.submit(str(path))
    assert wait_for(lambda: log.count("Error uploading abc__x.csv: bad") == 1)
    assert wait_for(lambda: not session.dedup.already_seen(str(path)))


def test_stop_before_stability_prevents_upload(session, uploader, tmp_path: Path) -> None:
    log = CollectedLog(session.log)
    coordinator = _coordinator(session, uploader)
    path = tmp_path / "abc__a.csv"
    path.write_bytes(b"x")

    coordinator.submit(str(path))
    session.deactivate()

    time.sleep(STABLE * 3)
    coordinator.join(timeout=1)
    assert uploader.calls == []
    assert log.refresh() == []


def test_submit_after_stop_is_dropped(session, uploader, tmp_path: Path) -> None:
    coordinator = _coordinator(session, uploader)
    path = tmp_path / "abc__a.csv"
    path.write_bytes(b"x")
    session.deactivate()

    coordinator.submit(str(path))
    assert coordinator.pending_count == 0
    assert session.tracker.pending_count == 0


@pytest.mark.parametrize("name", ["ab__x.csv", "12c__x.csv", "notes.txt"])
def test_non_matching_names_are_ignored(session, uploader, tmp_path: Path, name: str) -> None:
    coordinator = _coordinator(session, uploader)
    path = tmp_path / name
    path.write_bytes(b"x")

    coordinator.submit(str(path))
    assert coordinator.pending_count == 0
    time.sleep(STABLE * 2)
    assert uploader.calls == []


def test_directories_and_missing_paths_are_ignored(session, uploader, tmp_path: Path) -> None:
    coordinator = _coordinator(session, uploader)
    folder = tmp_path / "abc__folder"
    folder.mkdir()

    coordinator.submit(str(folder))
    coordinator.submit(str(tmp_path / "abc__missing.csv"))
    assert coordinator.pending_count == 0
    assert session.tracker.pending_count == 0


def test_waits_for_writer_to_finish(session, uploader, tmp_path: Path) -> None:
    coordinator = _coordinator(session, uploader)
    path = tmp_path / "abc__growing.csv"
    path.write_bytes(b"")

    coordinator.submit(str(path))
    with open(path, "ab") as fh:
        for _ in range(8):
            fh.write(b"row\n")
            fh.flush()
            os.fsync(fh.fileno())
            time.sleep(STABLE / 4)
    final_size = path.stat().st_size

    assert wait_for(lambda: uploader.calls != [])
    assert uploader.sizes == [final_size]


def test_vanished_file_is_forgotten(session, uploader, tmp_path: Path) -> None:
    coordinator = _coordinator(session, uploader)
    path = tmp_path / "abc__tmp.csv"
    path.write_bytes(b"x")

    coordinator.submit(str(path))
    path.unlink()
    assert wait_for(lambda: coordinator.pending_count == 0)
    assert session.tracker.pending_count == 0
    assert uploader.calls == []


def test_overlapping_events_upload_once(tmp_path: Path) -> None:
    session = RunSession(str(tmp_path), LogStream(), stable_seconds=0.0)
    uploader = FakeUploader(delay=0.1)
    coordinator = _coordinator(session, uploader)
    path = tmp_path / "abc__race.csv"
    path.write_bytes(b"x")

    workers = 16
    barrier = threading.Barrier(workers)

    def _detect() -> None:
        barrier.wait()
        coordinator.submit(str(path))

    threads = [threading.Thread(target=_detect) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    time.sleep(0.3)
    coordinator.join(timeout=0.1)
    assert uploader.calls == [str(path)]
    session.deactivate()


def test_relative_paths_are_made_absolute(session, uploader, tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    coordinator = _coordinator(session, uploader)
    (tmp_path / "abc__rel.csv").write_bytes(b"x")

    coordinator.submit("abc__rel.csv")
    assert wait_for(lambda: uploader.calls != [])
    assert uploader.calls == [str(tmp_path / "abc__rel.csv")]
