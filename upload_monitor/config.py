"""Configuration management for Upload Monitor.

Stores and retrieves user settings from a JSON config file
in the platform-appropriate application data directory.
"""

import json
import logging
from pathlib import Path
from typing import Any

from upload_monitor.platform_utils import (
    get_config_dir as _platform_config_dir,
)
from upload_monitor.platform_utils import (
    get_downloads_dir,
)
from upload_monitor.platform_utils import (
    get_log_path as _platform_log_path,
)

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = (
    "https://otlglcc10g.execute-api.ap-south-1.amazonaws.com/api/statements/upload"
)

DEFAULT_CONFIG: dict[str, Any] = {
    "watch_folder": "",  # Empty = the user's Downloads folder
    "upload_endpoint": DEFAULT_ENDPOINT,
    "stable_time_seconds": 2.0,
    "check_interval_seconds": 0.5,
    "settle_delay_seconds": 0.1,
    "upload_timeout_seconds": 30,
    "log_level": "INFO",
    # ---- log rotation ----
    "max_log_size_mb": 10,  # rotate log when it exceeds this size
    "log_backup_count": 3,  # number of rotated log files to keep
    # ---- on-screen history ----
    "log_history_size": 100,
}


def get_config_dir() -> Path:
    """Return the platform-appropriate application config directory."""
    return _platform_config_dir()


def get_config_path() -> Path:
    """Return the path to the configuration file."""
    return get_config_dir() / "config.json"


def get_log_path() -> Path:
    """Return the path to the log file."""
    return _platform_log_path()


class Config:
    """Configuration manager backed by a JSON file."""

    def __init__(self, path: Path | None = None):
        """Load config from *path*, falling back to the platform default."""
        self._path = path or get_config_path()
        self._data: dict[str, Any] = dict(DEFAULT_CONFIG)
        self.load()

    # ---- persistence ----

    def load(self) -> None:
        """Load configuration from disk, applying defaults for missing keys."""
        if self._path.exists():
            try:
                with open(self._path, encoding="utf-8") as fh:
                    stored = json.load(fh)
                if not isinstance(stored, dict):
                    raise ValueError("top-level JSON value is not an object")
                # Merge stored values over defaults so new keys get defaults
                self._data = {**DEFAULT_CONFIG, **stored}
                logger.info("Configuration loaded from %s", self._path)
            except (ValueError, OSError) as exc:
                logger.warning("Could not read config (%s); using defaults.", exc)
                self._data = dict(DEFAULT_CONFIG)
        else:
            self._data = dict(DEFAULT_CONFIG)
            self.save()
            logger.info("Created default configuration at %s", self._path)

    def save(self) -> None:
        """Persist the current configuration to disk."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=2)
            logger.info("Configuration saved.")
        except OSError as exc:
            logger.error("Failed to save configuration: %s", exc)

    # ---- accessors ----

    @property
    def watch_folder(self) -> str:
        """Return the configured watch folder (empty = Downloads)."""
        return self._data.get("watch_folder", "")

    @watch_folder.setter
    def watch_folder(self, value: str) -> None:
        self._data["watch_folder"] = value.strip()

    @property
    def upload_endpoint(self) -> str:
        """Return the URL files are POSTed to."""
        return self._data.get("upload_endpoint") or DEFAULT_ENDPOINT

    @upload_endpoint.setter
    def upload_endpoint(self, value: str) -> None:
        self._data["upload_endpoint"] = value.strip() or DEFAULT_ENDPOINT

    @property
    def stable_time(self) -> float:
        """Return the quiet period, in seconds, before a file counts as stable."""
        return float(self._data.get("stable_time_seconds", 2.0))

    @stable_time.setter
    def stable_time(self, value: float) -> None:
        """Set the stability threshold (minimum 0 s)."""
        self._data["stable_time_seconds"] = max(0.0, float(value))

    @property
    def check_interval(self) -> float:
        """Return the stability re-check interval in seconds."""
        return float(self._data.get("check_interval_seconds", 0.5))

    @check_interval.setter
    def check_interval(self, value: float) -> None:
        """Set the re-check interval (minimum 0.05 s)."""
        self._data["check_interval_seconds"] = max(0.05, float(value))

    @property
    def settle_delay(self) -> float:
        """Return the delay between a create event and the first check."""
        return float(self._data.get("settle_delay_seconds", 0.1))

    @settle_delay.setter
    def settle_delay(self, value: float) -> None:
        self._data["settle_delay_seconds"] = max(0.0, float(value))

    @property
    def upload_timeout(self) -> float:
        """Return the HTTP request timeout in seconds."""
        return float(self._data.get("upload_timeout_seconds", 30))

    @upload_timeout.setter
    def upload_timeout(self, value: float) -> None:
        """Set the HTTP request timeout (minimum 1 s)."""
        self._data["upload_timeout_seconds"] = max(1.0, float(value))

    @property
    def log_level(self) -> str:
        """Return the current logging level name."""
        return self._data.get("log_level", "INFO")

    @log_level.setter
    def log_level(self, value: str) -> None:
        self._data["log_level"] = value

    # ---- log rotation ----

    @property
    def max_log_size_mb(self) -> int:
        """Return the maximum log file size in MB before rotation."""
        return int(self._data.get("max_log_size_mb", 10))

    @max_log_size_mb.setter
    def max_log_size_mb(self, value: int) -> None:
        """Set the maximum log file size in MB (minimum 1)."""
        self._data["max_log_size_mb"] = max(1, int(value))

    @property
    def log_backup_count(self) -> int:
        """Return the number of rotated log backups to keep."""
        return int(self._data.get("log_backup_count", 3))

    @log_backup_count.setter
    def log_backup_count(self, value: int) -> None:
        self._data["log_backup_count"] = max(0, int(value))

    @property
    def log_history_size(self) -> int:
        """Return how many log lines the display keeps."""
        return int(self._data.get("log_history_size", 100))

    @log_history_size.setter
    def log_history_size(self, value: int) -> None:
        self._data["log_history_size"] = max(1, int(value))

    # ---- convenience ----

    def resolve_watch_folder(self) -> str:
        """Return the configured watch folder, or the Downloads default.

        Raises ConfigurationError when no folder is configured and the
        default cannot be resolved.
        """
        if self.watch_folder:
            return self.watch_folder
        return str(get_downloads_dir())
