"""gav-bootstrap - run entry points straight from Maven-layout repositories."""

from .bootstrap import Bootstrap
from .bootstrap import for_gav
from .coordinates import ArtifactCoordinate
from .coordinates import resolve_coordinate
from .errors import ArtifactNotFoundError
from .errors import BootstrapError
from .errors import ClassLoadError
from .errors import CorruptArtifactError
from .errors import DescriptorError
from .errors import EntryPointMissingError
from .errors import InvalidCoordinateError
from .errors import InvalidVersionError
from .errors import InvocationError
from .errors import NullInputError
from .errors import SettingsError
from .errors import StaleArtifactError
from .errors import TransferError
from .loading import IsolatedScope

__all__ = [
    "ArtifactCoordinate",
    "ArtifactNotFoundError",
    "Bootstrap",
    "BootstrapError",
    "ClassLoadError",
    "CorruptArtifactError",
    "DescriptorError",
    "EntryPointMissingError",
    "InvalidCoordinateError",
    "InvalidVersionError",
    "InvocationError",
    "IsolatedScope",
    "NullInputError",
    "SettingsError",
    "StaleArtifactError",
    "TransferError",
    "for_gav",
    "resolve_coordinate",
]
