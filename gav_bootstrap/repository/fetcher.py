"""Cache-first artifact download across ordered remote repositories."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from ..coordinates import ArtifactCoordinate
from ..errors import ArtifactNotFoundError
from ..versions import Version
from .local import artifact_path
from .local import metadata_path
from .session import RepositorySession
from .xmlutil import parse_xml

logger = logging.getLogger(__name__)


def parse_metadata_versions(data: bytes) -> list[str]:
    """Versions listed in a ``maven-metadata.xml`` document."""
    root = parse_xml(data)
    return [v.text.strip() for v in root.findall("versioning/versions/version") if v.text and v.text.strip()]


class ArtifactFetcher:
    """Materializes artifacts in the session's local cache.

    Endpoints are tried in priority order and the first one that has the file
    wins. A cached file is never downloaded again.
    """

    def __init__(self, session: RepositorySession):
        self.session = session

    def find(self, coordinate: ArtifactCoordinate) -> Path | None:
        """Return the local file for coordinate, downloading it if needed.

        Returns:
            Path in the local cache, or None if no endpoint has the artifact

        Raises:
            TransferError: An endpoint failed for a reason other than "not found"
        """
        cached = self.session.local.find(coordinate)
        if cached is not None:
            logger.debug(f"Using cached {coordinate.label}: {cached}")
            return cached

        label = coordinate.label
        remote_path = artifact_path(coordinate)
        events = self.session.events
        events.on_download_start(label)
        for endpoint in self.session.endpoints:
            try:
                data = self.session.transport.fetch(endpoint, remote_path)
            except BaseException:
                events.on_download_failed(label)
                raise
            if data is None:
                logger.debug(f"{label} not found in {endpoint}")
                continue
            stored = self.session.local.store(coordinate, data)
            events.on_download_complete(label)
            return stored

        events.on_download_failed(label)
        return None

    def fetch(self, coordinate: ArtifactCoordinate) -> Path:
        """Like find, but a missing artifact is an error.

        Raises:
            ArtifactNotFoundError: No endpoint has the artifact
        """
        path = self.find(coordinate)
        if path is None:
            searched = ", ".join(str(e) for e in self.session.endpoints)
            raise ArtifactNotFoundError(coordinate.label, detail=f"searched {searched}")
        return path

    def available_versions(self, group: str, name: str) -> list[Version]:
        """All versions of ``group:name`` the repositories know about, ascending.

        Listings from every endpoint are merged. When no endpoint serves a
        listing, copies cached by earlier runs are used instead.
        """
        remote_path = metadata_path(group, name)
        documents: list[bytes] = []
        for endpoint in self.session.endpoints:
            data = self.session.transport.fetch(endpoint, remote_path)
            if data is None:
                continue
            self.session.local.store_metadata(group, name, endpoint.id, data)
            documents.append(data)

        if not documents:
            documents = self.session.local.cached_metadata(group, name)
            if documents:
                logger.debug(f"Using cached version listing for {group}:{name}")

        versions: set[Version] = set()
        for data in documents:
            try:
                versions.update(Version(v) for v in parse_metadata_versions(data))
            except ET.ParseError as e:
                logger.warning(f"Ignoring malformed version listing for {group}:{name}: {e}")
        return sorted(versions)
