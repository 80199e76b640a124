"""
Headless runner for Upload Monitor.

Runs one watch session in the foreground and prints every log event
with its timestamp, keeping the most recent ones in memory:

    python -m upload_monitor                 Watch the configured folder
                                             (default: ~/Downloads)
    python -m upload_monitor /path/to/dir    Watch the given folder
"""

import logging
import logging.handlers
import signal
import sys
import threading

from upload_monitor import __app_name__, __version__
from upload_monitor.config import Config, get_log_path
from upload_monitor.errors import UploadMonitorError
from upload_monitor.logstream import LogBuffer, LogStream
from upload_monitor.monitor import UploadMonitor

logger = logging.getLogger(__name__)


def setup_logging(cfg: Config) -> None:
    """Configure rotating file log and stderr handler."""
    level = getattr(logging, cfg.log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    # Rotating file handler
    max_bytes = cfg.max_log_size_mb * 1024 * 1024
    fh = logging.handlers.RotatingFileHandler(
        str(get_log_path()),
        maxBytes=max_bytes,
        backupCount=cfg.log_backup_count,
        encoding="utf-8",
    )
    fh.setLevel(level)
    fh.setFormatter(fmt)
    root_logger.addHandler(fh)

    # Stderr handler only for warnings; the console shows the event stream
    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(max(level, logging.WARNING))
    sh.setFormatter(fmt)
    root_logger.addHandler(sh)


def consume(log: LogStream, buffer: LogBuffer, stop: threading.Event, out=None) -> None:
    """Print events from *log* into *buffer* until *stop* is set."""
    out = out or sys.stdout
    while not stop.is_set():
        event = log.get(timeout=0.25)
        if event is None:
            continue
        buffer.append(event)
        print(event.format(), file=out, flush=True)
    for event in log.drain():
        buffer.append(event)
        print(event.format(), file=out, flush=True)


def run_foreground(folder: str | None = None, cfg: Config | None = None) -> int:
    """Watch *folder* until SIGINT/SIGTERM.  Returns a process exit code."""
    cfg = cfg or Config()
    setup_logging(cfg)
    logger.info("%s %s starting.", __app_name__, __version__)

    monitor = UploadMonitor.from_config(cfg)
    buffer = LogBuffer(cfg.log_history_size)
    stop = threading.Event()

    def _handler(sig, frame):
        stop.set()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)

    try:
        target = folder or cfg.resolve_watch_folder()
        monitor.start(target)
    except UploadMonitorError as exc:
        logger.error("Cannot start: %s", exc)
        stop.set()
        consume(monitor.log_stream, buffer, stop)
        monitor.close()
        return 1

    print(f"{__app_name__} running (press Ctrl-C to stop)…")
    finished = threading.Event()
    consumer = threading.Thread(
        target=consume,
        args=(monitor.log_stream, buffer, finished),
        daemon=True,
        name="LogConsumer",
    )
    consumer.start()
    while not stop.wait(timeout=1):
        if not monitor.is_active:
            # The watcher failed and ended the session on its own.
            stop.set()
    monitor.close()
    finished.set()
    consumer.join(timeout=5)
    print(f"{__app_name__} stopped.")
    return 0


def main() -> None:
    """Entry point for the console script."""
    folder = sys.argv[1] if len(sys.argv) > 1 else None
    sys.exit(run_foreground(folder))
