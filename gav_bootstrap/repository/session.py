"""Repository sessions: remote endpoints, local cache and download events.

``new_session`` plays the part of the repository system factory. A session is
scoped to one resolution; nothing about downloads is kept in module globals.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

import httpx

from .local import LocalRepository
from .transport import RepositoryTransport

logger = logging.getLogger(__name__)

CENTRAL_URL = "https://repo1.maven.org/maven2/"
DEFAULT_CACHE_DIR = Path(".m2") / "repository"


@dataclass(frozen=True)
class RemoteRepositoryEndpoint:
    """A remote repository in Maven 2 layout."""

    id: str
    kind: str
    url: str

    def __str__(self) -> str:
        return f"{self.id} ({self.url})"


def central_endpoint() -> RemoteRepositoryEndpoint:
    return RemoteRepositoryEndpoint("central", "default", CENTRAL_URL)


def custom_endpoint(url: str) -> RemoteRepositoryEndpoint:
    return RemoteRepositoryEndpoint("custom", "default", url)


@dataclass
class DownloadRecord:
    """A completed download and how long it took."""

    coordinate: str
    elapsed_ms: float


class DownloadEventLog:
    """Per-session download timing.

    Purely observational: subscribers are called synchronously and their
    errors are logged, never raised into the resolution.
    """

    def __init__(self) -> None:
        self._started: dict[str, float] = {}
        self._subscribers: list[Callable[[DownloadRecord], None]] = []
        self.records: list[DownloadRecord] = []

    def subscribe(self, handler: Callable[[DownloadRecord], None]) -> None:
        """Subscribe a handler to receive every completed download."""
        self._subscribers.append(handler)

    def on_download_start(self, coordinate: str) -> None:
        self._started[coordinate] = time.perf_counter()
        logger.info(f"Downloading {coordinate}...")

    def on_download_complete(self, coordinate: str) -> None:
        started = self._started.pop(coordinate, None)
        if started is None:
            logger.debug(f"Download of {coordinate} completed without a recorded start")
            return

        record = DownloadRecord(coordinate=coordinate, elapsed_ms=(time.perf_counter() - started) * 1000)
        self.records.append(record)
        logger.info(f"Downloaded {coordinate} in {record.elapsed_ms:.1f}ms.")

        for handler in self._subscribers:
            try:
                handler(record)
            except Exception:
                logger.exception(f"Error in download event handler {getattr(handler, '__name__', handler)!r}")

    def on_download_failed(self, coordinate: str) -> None:
        self._started.pop(coordinate, None)

    @property
    def pending(self) -> list[str]:
        return list(self._started)


@dataclass
class RepositorySession:
    """Everything one resolution needs to talk to repositories."""

    endpoints: tuple[RemoteRepositoryEndpoint, ...]
    local: LocalRepository
    transport: RepositoryTransport
    events: DownloadEventLog = field(default_factory=DownloadEventLog)

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> RepositorySession:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def new_session(
    repository_url: str | None = None,
    cache_dir: str | Path | None = None,
    client: httpx.Client | None = None,
    endpoints: tuple[RemoteRepositoryEndpoint, ...] | None = None,
) -> RepositorySession:
    """Create a resolution session.

    Args:
        repository_url: Replaces the central repository when set
        cache_dir: Local cache directory (default: ./.m2/repository)
        client: httpx client to use for http(s) endpoints (created lazily otherwise)
        endpoints: Explicit ordered endpoints; takes precedence over repository_url

    Returns:
        RepositorySession ready for dependency resolution
    """
    if endpoints is None:
        if repository_url:
            logger.info(f"Will load artifacts from {repository_url}")
            endpoints = (custom_endpoint(repository_url),)
        else:
            endpoints = (central_endpoint(),)
    if not endpoints:
        raise ValueError("Must specify at least one remote repository.")

    local = LocalRepository(Path(cache_dir) if cache_dir is not None else DEFAULT_CACHE_DIR)
    logger.debug(f"Repository session: endpoints={[str(e) for e in endpoints]} cache={local.basedir}")
    return RepositorySession(endpoints=tuple(endpoints), local=local, transport=RepositoryTransport(client))
