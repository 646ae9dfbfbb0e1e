"""Fetch repository-relative paths from a single endpoint.

Supports ``http(s)://`` through httpx and ``file://`` for repositories on
disk. "Not found" is an answer (``None``), anything else that goes wrong is a
TransferError: the caller only falls through to the next endpoint on the
former.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx

from ..errors import TransferError

if TYPE_CHECKING:
    from .session import RemoteRepositoryEndpoint

logger = logging.getLogger(__name__)

NOT_FOUND_STATUSES = (404, 410)
DEFAULT_TIMEOUT = 30.0


def join_url(base: str, path: str) -> str:
    return base.rstrip("/") + "/" + path.lstrip("/")


class RepositoryTransport:
    """Reads files from remote repositories."""

    def __init__(self, client: httpx.Client | None = None, timeout: float = DEFAULT_TIMEOUT):
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout, follow_redirects=True)
        return self._client

    def fetch(self, endpoint: RemoteRepositoryEndpoint, path: str) -> bytes | None:
        """Fetch ``path`` from ``endpoint``.

        Returns:
            File content, or None when the endpoint does not have the file

        Raises:
            TransferError: Endpoint unreachable or answered with an error status
        """
        url = join_url(endpoint.url, path)
        if url.startswith("file:"):
            return self._fetch_file(url)
        return self._fetch_http(url)

    def _fetch_file(self, url: str) -> bytes | None:
        file_path = Path(url2pathname(urlparse(url).path))
        if not file_path.is_file():
            logger.debug(f"Not found: {url}")
            return None
        try:
            return file_path.read_bytes()
        except OSError as e:
            raise TransferError(url, str(e)) from e

    def _fetch_http(self, url: str) -> bytes | None:
        try:
            response = self.client.get(url)
        except httpx.HTTPError as e:
            raise TransferError(url, str(e) or type(e).__name__) from e

        if response.status_code in NOT_FOUND_STATUSES:
            logger.debug(f"Not found ({response.status_code}): {url}")
            return None
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransferError(url, f"HTTP {response.status_code}") from e
        return response.content

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None
