"""Exception types for Upload Monitor."""

from __future__ import annotations


class UploadMonitorError(Exception):
    """Base class for all Upload Monitor errors."""


class ConfigurationError(UploadMonitorError):
    """The watch folder is missing or cannot be resolved on this platform."""


class WatchSetupError(UploadMonitorError):
    """The filesystem watcher could not be created, attached or kept alive."""


class StatFailure(UploadMonitorError):
    """A path vanished or became inaccessible while being checked.

    Always transient: the path is simply re-examined on a later event.
    """

    def __init__(self, path: str, cause: OSError):
        super().__init__(f"cannot stat {path}: {cause}")
        self.path = path
        self.cause = cause


class UploadError(UploadMonitorError):
    """Base class for failed uploads."""


class TransportError(UploadError):
    """The endpoint could not be reached or the file could not be read."""


class ServerError(UploadError):
    """The endpoint answered with a status other than 200/201."""

    def __init__(self, status: int, body: str):
        super().__init__(f"server returned an error: {status} - {body}")
        self.status = status
        self.body = body
