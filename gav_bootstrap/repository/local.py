"""Local artifact cache in Maven 2 repository layout.

``<basedir>/org/example/lib/1.0/lib-1.0.jar``

The cache is shared by every run and keyed by coordinate. There is no
locking between processes; writes go to a temporary sibling first so a
reader never sees a half written file under the final name.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from ..coordinates import ArtifactCoordinate
from ..errors import InvalidCoordinateError

logger = logging.getLogger(__name__)

METADATA_FILE = "maven-metadata.xml"


def artifact_path(coordinate: ArtifactCoordinate) -> str:
    """Repository-relative path of an artifact, with ``/`` separators."""
    version = coordinate.version_spec
    file_name = f"{coordinate.name}-{version}"
    if coordinate.classifier:
        file_name += f"-{coordinate.classifier}"
    file_name += f".{coordinate.extension}"
    return "/".join((*coordinate.group.split("."), coordinate.name, version, file_name))


def metadata_path(group: str, name: str) -> str:
    """Repository-relative path of the version listing for ``group:name``."""
    return "/".join((*group.split("."), name, METADATA_FILE))


class LocalRepository:
    """Coordinate keyed file cache."""

    def __init__(self, basedir: Path):
        self.basedir = basedir

    def path_for(self, coordinate: ArtifactCoordinate) -> Path:
        return self._inside(artifact_path(coordinate).split("/"), coordinate)

    def find(self, coordinate: ArtifactCoordinate) -> Path | None:
        """Return the cached file for coordinate, if present."""
        path = self.path_for(coordinate)
        return path if path.is_file() else None

    def store(self, coordinate: ArtifactCoordinate, data: bytes) -> Path:
        """Write downloaded content into the cache."""
        return self._write(self.path_for(coordinate), data)

    def metadata_path_for(self, group: str, name: str, repository_id: str) -> Path:
        file_name = METADATA_FILE.replace(".xml", f"-{repository_id}.xml")
        return self._inside([*group.split("."), name, file_name], f"{group}:{name}")

    def store_metadata(self, group: str, name: str, repository_id: str, data: bytes) -> Path:
        return self._write(self.metadata_path_for(group, name, repository_id), data)

    def cached_metadata(self, group: str, name: str) -> list[bytes]:
        """Previously downloaded version listings for ``group:name``, from any repository."""
        directory = self._inside([*group.split("."), name], f"{group}:{name}")
        if not directory.is_dir():
            return []
        return [p.read_bytes() for p in sorted(directory.glob("maven-metadata-*.xml"))]

    def _inside(self, parts: list[str], coordinate: object) -> Path:
        """Join parts below basedir, refusing anything that normalizes to a path outside it."""
        path = self.basedir.joinpath(*parts)
        base = os.path.normpath(os.path.abspath(self.basedir))
        if os.path.commonpath((base, os.path.normpath(os.path.abspath(path)))) != base:
            raise InvalidCoordinateError(str(coordinate), f"cache path {path} is outside {self.basedir}")
        return path

    def _write(self, target: Path, data: bytes) -> Path:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".part", dir=target.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Cached {target}")
        return target
