"""Dependency graph resolution."""

from .graph import CollectResult
from .graph import DependencyEdge
from .graph import DependencyGraphResolver
from .graph import DependencyNode
from .graph import ResolvedArtifact
from .graph import flatten

__all__ = [
    "CollectResult",
    "DependencyEdge",
    "DependencyGraphResolver",
    "DependencyNode",
    "ResolvedArtifact",
    "flatten",
]
