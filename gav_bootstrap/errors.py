"""Error taxonomy for gav-bootstrap.

Every error is fatal to the run: nothing is retried and there is no partial
result. The CLI turns any BootstrapError into a message and a non-zero exit.
"""

from __future__ import annotations

from typing import Any


class BootstrapError(Exception):
    """Base class for all bootstrap failures."""


class NullInputError(BootstrapError):
    """Raised when a required input is missing."""


class InvalidCoordinateError(BootstrapError):
    """Raised when a coordinate does not have 2 or 3 non-empty tokens, or a token cannot be used as a path."""

    def __init__(self, coordinate: str, reason: str | None = None):
        self.coordinate = coordinate
        self.reason = reason
        if reason:
            super().__init__(f"Invalid coordinate '{coordinate}': {reason}")
        else:
            super().__init__(f"Invalid coordinate '{coordinate}'. Require groupId:artifactId[:version]")


class ArtifactNotFoundError(BootstrapError):
    """Raised when no configured repository has the artifact."""

    def __init__(self, coordinate: Any, detail: str | None = None):
        self.coordinate = coordinate
        message = f"Could not find artifact {coordinate}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class TransferError(BootstrapError):
    """Raised when a repository could not be contacted or answered with an error."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Could not transfer {url}: {reason}")


class DescriptorError(BootstrapError):
    """Raised when an artifact descriptor (POM) cannot be used for collection."""


class StaleArtifactError(BootstrapError):
    """Raised when a resolved artifact disappeared before it could be loaded."""

    def __init__(self, path: Any):
        self.path = path
        super().__init__(f"Resolved artifact no longer exists: {path}")


class CorruptArtifactError(BootstrapError):
    """Raised when a cached artifact cannot be opened as an archive."""

    def __init__(self, path: Any, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Artifact {path} is damaged ({reason}). Delete it from the cache and run again")


class ClassLoadError(BootstrapError):
    """Raised when the entry class cannot be loaded from the isolated scope."""

    def __init__(self, name: str, reason: str | None = None):
        self.name = name
        message = f"Could not load class '{name}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class EntryPointMissingError(BootstrapError):
    """Raised when the entry class has no usable main(args) function."""

    def __init__(self, name: str, reason: str | None = None):
        self.name = name
        message = f"Class '{name}' has no static main(args) entry point"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class InvocationError(BootstrapError):
    """Wraps an exception raised by the invoked program.

    The original exception is kept as ``__cause__`` and as ``original``.
    """

    def __init__(self, name: str, original: BaseException):
        self.name = name
        self.original = original
        detail = str(original) or "(no additional details)"
        super().__init__(f"{name}.main raised {type(original).__name__}: {detail}")


class InvalidVersionError(BootstrapError):
    """Raised when a version or version range expression cannot be parsed."""

    def __init__(self, spec: str, reason: str):
        self.spec = spec
        super().__init__(f"Invalid version specification '{spec}': {reason}")


class SettingsError(BootstrapError):
    """Raised when settings files or environment values are invalid."""
