"""
HTTP upload of finished files.

Each file is sent as a ``multipart/form-data`` POST with a single part
named ``file``.  HTTP 200 and 201 count as success; anything else is a
ServerError carrying the response body.  No retries happen here: a file
that fails to upload becomes eligible again on its next filesystem event.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import requests

from upload_monitor import __version__
from upload_monitor.config import DEFAULT_ENDPOINT
from upload_monitor.errors import ServerError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
_SUCCESS_STATUSES = (200, 201)


class Uploader:
    """
    Posts files to the collection endpoint.

    Parameters
    ----------
    endpoint : str
        URL that receives the multipart POST.
    timeout : float
        Seconds allowed for connecting and for each read of the response.
        requests has no whole-request deadline; a server that keeps
        trickling bytes can hold the call open longer.
    session : requests.Session, optional
        Pre-built session (tests pass a fake one).
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
        session: Any | None = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": f"upload-monitor/{__version__}"})
        self._session = session

    def upload(self, path: str) -> None:
        """Send *path*; raises TransportError or ServerError on failure."""
        name = os.path.basename(path)
        try:
            fh = open(path, "rb")
        except OSError as exc:
            raise TransportError(f"could not open file: {exc}") from exc

        with fh:
            logger.info("POST %s -> %s", name, self.endpoint)
            try:
                resp = self._session.post(
                    self.endpoint,
                    files={"file": (name, fh)},
                    timeout=self.timeout,
                )
            except requests.RequestException as exc:
                raise TransportError(f"request failed: {exc}") from exc
            except OSError as exc:
                raise TransportError(f"could not read file: {exc}") from exc

        if resp.status_code not in _SUCCESS_STATUSES:
            raise ServerError(resp.status_code, resp.text)
        logger.debug("Upload of %s answered %d", name, resp.status_code)

    def close(self) -> None:
        self._session.close()
