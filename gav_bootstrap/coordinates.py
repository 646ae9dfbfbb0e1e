"""Artifact coordinates and coordinate normalization.

A coordinate is ``group:name:version``. The version part may be an exact
version or a range expression such as ``[0,)``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import replace

from .errors import InvalidCoordinateError
from .errors import NullInputError

GAV_DELIMITER = ":"

# Any available version, nothing enforced beyond zero.
OPEN_RANGE = "[0,)"

# Coordinates become cache paths; none of these may appear in a token.
_PATH_CHARACTERS = ("/", "\\", "\x00")
_RELATIVE_SEGMENTS = (".", "..")


@dataclass(frozen=True)
class ArtifactCoordinate:
    """Identity of a distributable artifact.

    Mediation only looks at ``key``; two coordinates with the same group and
    name are the same artifact whatever their version.
    """

    group: str
    name: str
    version_spec: str
    extension: str = "jar"
    classifier: str = ""

    def __post_init__(self):
        for field_name in ("group", "name", "version_spec", "extension", "classifier"):
            value = getattr(self, field_name)
            if any(c in value for c in _PATH_CHARACTERS):
                raise InvalidCoordinateError(str(self), f"{field_name} {value!r} contains a path separator")
            if field_name != "classifier" and value in _RELATIVE_SEGMENTS:
                raise InvalidCoordinateError(str(self), f"{field_name} {value!r} is a relative path segment")

    @classmethod
    def parse(cls, text: str) -> ArtifactCoordinate:
        """Parse a canonical ``group:name:version`` string."""
        if text is None:
            raise NullInputError("Coordinate must not be None")
        tokens = text.split(GAV_DELIMITER)
        if len(tokens) != 3 or not all(tokens):
            raise InvalidCoordinateError(text)
        return cls(group=tokens[0], name=tokens[1], version_spec=tokens[2])

    @property
    def key(self) -> tuple[str, str]:
        return (self.group, self.name)

    @property
    def label(self) -> str:
        """``group:name:version``, with extension and classifier when they are not a plain jar."""
        if self.extension == "jar" and not self.classifier:
            return str(self)
        parts = [self.group, self.name, self.extension]
        if self.classifier:
            parts.append(self.classifier)
        parts.append(self.version_spec)
        return GAV_DELIMITER.join(parts)

    def with_version(self, version: str) -> ArtifactCoordinate:
        return replace(self, version_spec=version)

    def with_extension(self, extension: str) -> ArtifactCoordinate:
        return replace(self, extension=extension)

    def __str__(self) -> str:
        return GAV_DELIMITER.join((self.group, self.name, self.version_spec))


def resolve_coordinate(raw: str | None, version_defaults: Mapping[str, str] | None = None) -> str:
    """Normalize a user supplied coordinate to ``group:name:version``.

    Args:
        raw: ``group:name`` or ``group:name:version``
        version_defaults: Default versions keyed by ``group:name``

    Returns:
        The canonical coordinate string. A 3-token input is returned as is;
        a 2-token input gets its default version, or the open range ``[0,)``.

    Raises:
        NullInputError: raw is None
        InvalidCoordinateError: raw does not have 2 or 3 non-empty tokens
    """
    if raw is None:
        raise NullInputError("Must specify groupId:artifactId[:version]")

    tokens = raw.split(GAV_DELIMITER)
    if not 1 < len(tokens) < 4 or not all(tokens):
        raise InvalidCoordinateError(raw)

    if len(tokens) == 3:
        return raw

    defaults = version_defaults or {}
    if raw in defaults:
        return GAV_DELIMITER.join((tokens[0], tokens[1], defaults[raw]))
    return GAV_DELIMITER.join((tokens[0], tokens[1], OPEN_RANGE))
