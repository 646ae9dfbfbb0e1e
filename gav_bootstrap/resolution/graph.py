"""Transitive dependency collection, version mediation and download.

The graph is walked breadth first from the root. Because every edge at depth
``d`` is seen before any edge at depth ``d + 1``, and edges of one depth are
seen in declaration order, the first edge met for a ``(group, name)`` is the
mediation winner: nearest wins, then first declared wins. Edges that lose are
recorded as omitted and their subtrees are never expanded.
"""

from __future__ import annotations

import itertools
import logging
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

from ..coordinates import ArtifactCoordinate
from ..errors import ArtifactNotFoundError
from ..repository.descriptor import COMPILE_SCOPE
from ..repository.descriptor import DescriptorReader
from ..repository.descriptor import is_excluded
from ..repository.fetcher import ArtifactFetcher
from ..repository.session import RepositorySession
from ..versions import parse_version_spec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependencyEdge:
    """One declared dependency at one position of the traversal."""

    source: ArtifactCoordinate | None
    target: ArtifactCoordinate
    requested_version_spec: str
    depth: int
    declaration_order: int
    exclusions: frozenset[tuple[str, str]] = frozenset()

    @property
    def rank(self) -> tuple[int, int]:
        """Mediation order: smaller wins."""
        return (self.depth, self.declaration_order)


@dataclass
class DependencyNode:
    """A mediation winner; ``coordinate`` carries the selected version."""

    coordinate: ArtifactCoordinate
    edge: DependencyEdge
    children: list[DependencyNode] = field(default_factory=list)

    @property
    def depth(self) -> int:
        return self.edge.depth

    def walk(self) -> Iterator[DependencyNode]:
        """Pre-order: the node, then each child subtree in declaration order."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class ResolvedArtifact:
    coordinate: ArtifactCoordinate
    path: Path


@dataclass
class CollectResult:
    root: DependencyNode
    omitted: list[tuple[DependencyEdge, DependencyNode]] = field(default_factory=list)


def flatten(root: DependencyNode) -> list[ArtifactCoordinate]:
    """Pre-order list of coordinates, first occurrence per ``(group, name)`` kept."""
    seen: set[tuple[str, str]] = set()
    ordered = []
    for node in root.walk():
        if node.coordinate.key in seen:
            continue
        seen.add(node.coordinate.key)
        ordered.append(node.coordinate)
    return ordered


class DependencyGraphResolver:
    """Resolves a root coordinate to the ordered list of files to load."""

    def __init__(self, session: RepositorySession):
        self.session = session
        self.fetcher = ArtifactFetcher(session)
        self.descriptors = DescriptorReader(self.fetcher)

    def resolve(self, gav: str) -> list[ResolvedArtifact]:
        """Collect, mediate, flatten and download.

        Args:
            gav: Canonical ``group:name:version`` (version may be a range)

        Returns:
            ResolvedArtifact list, root first, each file present in the local cache

        Raises:
            ArtifactNotFoundError: The root, a dependency or a matching version is nowhere to be found
        """
        result = self.collect(gav)
        resolved = []
        for coordinate in flatten(result.root):
            resolved.append(ResolvedArtifact(coordinate=coordinate, path=self.fetcher.fetch(coordinate)))

        logger.debug(f"Resolved {gav} to {len(resolved)} artifacts: {[a.coordinate.label for a in resolved]}")
        return resolved

    def collect(self, gav: str) -> CollectResult:
        """Build the mediated compile-scope dependency tree of ``gav``."""
        requested = ArtifactCoordinate.parse(gav)
        root_edge = DependencyEdge(
            source=None,
            target=requested,
            requested_version_spec=requested.version_spec,
            depth=0,
            declaration_order=0,
        )
        root = DependencyNode(coordinate=self.select_version(requested), edge=root_edge)
        result = CollectResult(root=root)

        winners: dict[tuple[str, str], DependencyNode] = {root.coordinate.key: root}
        order = itertools.count(1)
        queue = deque([root])

        while queue:
            node = queue.popleft()
            descriptor = self.descriptors.read(node.coordinate)

            for declared in descriptor.dependencies:
                if declared.scope != COMPILE_SCOPE:
                    logger.debug(f"Skipping {declared.group}:{declared.name} ({declared.scope}) of {node.coordinate}")
                    continue
                if declared.optional and node.depth > 0:
                    logger.debug(f"Skipping optional {declared.group}:{declared.name} of {node.coordinate}")
                    continue
                if is_excluded(declared.key, node.edge.exclusions):
                    logger.debug(f"Excluded {declared.group}:{declared.name} below {node.coordinate}")
                    continue

                target = declared.coordinate(declared_by=node.coordinate)
                edge = DependencyEdge(
                    source=node.coordinate,
                    target=target,
                    requested_version_spec=target.version_spec,
                    depth=node.depth + 1,
                    declaration_order=next(order),
                    exclusions=node.edge.exclusions | declared.exclusions,
                )

                winner = winners.get(declared.key)
                if winner is not None:
                    result.omitted.append((edge, winner))
                    if edge.requested_version_spec != winner.edge.requested_version_spec:
                        logger.debug(
                            f"Omitted {target} requested by {node.coordinate} (conflict with {winner.coordinate})"
                        )
                    continue

                child = DependencyNode(coordinate=self.select_version(target), edge=edge)
                node.children.append(child)
                winners[declared.key] = child
                queue.append(child)

        return result

    def select_version(self, coordinate: ArtifactCoordinate) -> ArtifactCoordinate:
        """Turn a version spec into a concrete version.

        A plain version is taken as is. A range picks the highest version the
        repositories list that falls inside it.

        Raises:
            ArtifactNotFoundError: No available version satisfies the range
        """
        constraint = parse_version_spec(coordinate.version_spec)
        if not constraint.is_range:
            return coordinate

        available = self.fetcher.available_versions(coordinate.group, coordinate.name)
        selected = constraint.select(available)
        if selected is None:
            raise ArtifactNotFoundError(
                coordinate.label,
                detail=f"no version matching {constraint.spec} among {[str(v) for v in available] or 'none'}",
            )
        logger.debug(f"Selected {selected} for {coordinate.group}:{coordinate.name}:{constraint.spec}")
        return coordinate.with_version(selected.text)
