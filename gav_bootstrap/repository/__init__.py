"""Remote repositories, the local cache and artifact descriptors."""

from .descriptor import ArtifactDescriptor
from .descriptor import DeclaredDependency
from .descriptor import DescriptorReader
from .fetcher import ArtifactFetcher
from .local import LocalRepository
from .session import DownloadEventLog
from .session import RemoteRepositoryEndpoint
from .session import RepositorySession
from .session import central_endpoint
from .session import custom_endpoint
from .session import new_session
from .transport import RepositoryTransport

__all__ = [
    "ArtifactDescriptor",
    "ArtifactFetcher",
    "DeclaredDependency",
    "DescriptorReader",
    "DownloadEventLog",
    "LocalRepository",
    "RemoteRepositoryEndpoint",
    "RepositorySession",
    "RepositoryTransport",
    "central_endpoint",
    "custom_endpoint",
    "new_session",
]
