"""Resolve an artifact, load it in isolation and run its entry point.

    Bootstrap(settings).run("joda-time:joda-time", "org.example.Main", ["x"])

or, to get the isolated scope without running anything::

    with Bootstrap().load("org.example:tool:1.2") as scope:
        tool = scope.load_class("org.example.tool.Tool")
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from .coordinates import GAV_DELIMITER
from .coordinates import resolve_coordinate
from .errors import NullInputError
from .loading.invoker import invoke_entry_point
from .loading.scope import IsolatedScope
from .loading.scope import build_isolated_scope
from .repository.session import RepositorySession
from .repository.session import new_session
from .resolution.graph import DependencyGraphResolver
from .resolution.graph import ResolvedArtifact
from .settings import BootstrapSettings

logger = logging.getLogger(__name__)


class Bootstrap:
    """Wires coordinate normalization, resolution, loading and invocation together."""

    def __init__(self, settings: BootstrapSettings | None = None, client: httpx.Client | None = None):
        """Initialize.

        Args:
            settings: Effective settings (default: built-in defaults)
            client: httpx client for remote repositories (default: one per session)
        """
        self.settings = settings or BootstrapSettings()
        self.client = client

    def resolve_coordinate(self, raw: str | None) -> str:
        """Canonical ``group:name:version`` for a user supplied coordinate."""
        # The defaults file only matters when the version is omitted
        needs_defaults = raw is not None and raw.count(GAV_DELIMITER) == 1
        return resolve_coordinate(raw, self.settings.version_defaults() if needs_defaults else None)

    def new_session(self) -> RepositorySession:
        return new_session(
            repository_url=self.settings.repository_url,
            cache_dir=self.settings.cache_dir,
            client=self.client,
        )

    def resolve(self, gav: str) -> list[ResolvedArtifact]:
        """Resolve a canonical coordinate and its compile dependencies to local files."""
        with self.new_session() as session:
            return DependencyGraphResolver(session).resolve(gav)

    def load(self, gav: str) -> IsolatedScope:
        """Resolve gav and open the result as an isolated scope (caller closes it)."""
        return build_isolated_scope(self.resolve(gav))

    def run(self, coordinate: str | None, entry_class: str | None, args: Sequence[str] = ()) -> None:
        """Resolve coordinate, then call ``entry_class.main(args)`` in an isolated scope.

        The scope is closed when main returns or raises.

        Raises:
            BootstrapError: Any resolution, loading or invocation failure
        """
        if coordinate is None or entry_class is None:
            raise NullInputError("Must specify groupId:artifactId[:version] and classname!")

        gav = self.resolve_coordinate(coordinate)
        logger.info(f"Requested {coordinate}, will load artifact and dependencies for {gav}.")

        with self.load(gav) as scope:
            invoke_entry_point(scope, entry_class, args)


def for_gav(gav: str, settings: BootstrapSettings | None = None) -> IsolatedScope:
    """Isolated scope for ``gav`` resolved against the configured (default: central) repository."""
    if gav is None:
        raise NullInputError("Coordinate must not be None")
    return Bootstrap(settings).load(gav)
