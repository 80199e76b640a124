"""
Cross-platform utilities for Upload Monitor.

Centralises all OS-detection logic so every other module can import
a single canonical set of helpers rather than scattering ``sys.platform``
checks throughout the codebase.

Supported platforms:
  - Windows 10/11
  - macOS 12+ (Monterey and newer)
  - Linux
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from upload_monitor.errors import ConfigurationError

logger = logging.getLogger(__name__)

# ---- platform flags ----------------------------------------------------

IS_WINDOWS: bool = sys.platform == "win32"
IS_MACOS: bool = sys.platform == "darwin"
IS_LINUX: bool = sys.platform.startswith("linux")

# ---- directories -------------------------------------------------------


def get_config_dir() -> Path:
    """
    Return the application config directory, created if needed.

    - Windows : ``%APPDATA%\\UploadMonitor``
    - macOS   : ``~/Library/Application Support/UploadMonitor``
    - Linux   : ``$XDG_CONFIG_HOME/UploadMonitor`` (default ``~/.config``)
    """
    if IS_WINDOWS:
        base = os.environ.get("APPDATA", str(Path.home()))
    elif IS_MACOS:
        base = str(Path.home() / "Library" / "Application Support")
    else:
        base = os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config"))

    config_dir = Path(base) / "UploadMonitor"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_log_path() -> Path:
    """Return the path to the log file (inside the config directory)."""
    return get_config_dir() / "upload_monitor.log"


def get_downloads_dir() -> Path:
    """
    Return the user's Downloads folder, the default watch target.

    Raises ConfigurationError on an unsupported platform or when the
    folder does not exist.
    """
    if not (IS_WINDOWS or IS_MACOS or IS_LINUX):
        raise ConfigurationError(f"Unsupported operating system: {sys.platform}")

    try:
        home = Path.home()
    except RuntimeError as exc:
        raise ConfigurationError(f"Could not resolve the home directory: {exc}") from exc

    downloads = home / "Downloads"
    if not downloads.is_dir():
        raise ConfigurationError(f"Downloads folder not found: {downloads}")
    return downloads
