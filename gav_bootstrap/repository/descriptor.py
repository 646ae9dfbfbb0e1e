"""Declared dependencies of an artifact, read from its POM.

Only what dependency collection needs is read: coordinates, properties,
parent inheritance, managed versions and the dependency list with scope,
optional flag, type, classifier and exclusions. Profiles, plugins and
``import`` scoped BOMs are not interpreted.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from dataclasses import field

from ..coordinates import ArtifactCoordinate
from ..errors import DescriptorError
from ..errors import InvalidCoordinateError
from .fetcher import ArtifactFetcher
from .xmlutil import parse_xml
from .xmlutil import text_of

logger = logging.getLogger(__name__)

COMPILE_SCOPE = "compile"
WILDCARD = "*"

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")
_MAX_INTERPOLATION_PASSES = 10

# Dependency type -> (extension, classifier)
_TYPE_MAPPING = {
    "test-jar": ("jar", "tests"),
    "ejb": ("jar", ""),
    "ejb-client": ("jar", "client"),
    "bundle": ("jar", ""),
    "maven-plugin": ("jar", ""),
    "java-source": ("jar", "sources"),
    "javadoc": ("jar", "javadoc"),
}


@dataclass(frozen=True)
class DeclaredDependency:
    """One ``<dependency>`` entry after interpolation and management."""

    group: str
    name: str
    version_spec: str | None
    scope: str = COMPILE_SCOPE
    optional: bool = False
    extension: str = "jar"
    classifier: str = ""
    exclusions: frozenset[tuple[str, str]] = frozenset()

    @property
    def key(self) -> tuple[str, str]:
        return (self.group, self.name)

    def coordinate(self, declared_by: ArtifactCoordinate) -> ArtifactCoordinate:
        if not self.version_spec or "${" in self.version_spec:
            raise DescriptorError(
                f"Dependency {self.group}:{self.name} declared by {declared_by} has no resolvable version"
                f" (got {self.version_spec!r})"
            )
        try:
            return ArtifactCoordinate(
                group=self.group,
                name=self.name,
                version_spec=self.version_spec,
                extension=self.extension,
                classifier=self.classifier,
            )
        except InvalidCoordinateError as e:
            raise DescriptorError(
                f"Dependency {self.group}:{self.name} declared by {declared_by} is unusable: {e.reason}"
            ) from e


@dataclass
class ArtifactDescriptor:
    coordinate: ArtifactCoordinate
    dependencies: list[DeclaredDependency] = field(default_factory=list)
    properties: dict[str, str] = field(default_factory=dict)
    managed_versions: dict[tuple[str, str], str] = field(default_factory=dict)
    missing: bool = False


@dataclass
class _Model:
    """A POM merged with its parents, strings not yet interpolated."""

    group: str | None
    name: str
    version: str | None
    parent: tuple[str, str, str] | None
    properties: dict[str, str]
    managed: dict[tuple[str, str], ET.Element]
    dependencies: list[ET.Element]


def is_excluded(key: tuple[str, str], exclusions: frozenset[tuple[str, str]]) -> bool:
    """True when ``key`` matches an exclusion; ``*`` matches any group or name."""
    group, name = key
    return any(g in (group, WILDCARD) and n in (name, WILDCARD) for g, n in exclusions)


def _type_to_extension(dep_type: str, classifier: str) -> tuple[str, str]:
    extension, implied_classifier = _TYPE_MAPPING.get(dep_type, (dep_type, ""))
    return extension, classifier or implied_classifier


class DescriptorReader:
    """Reads and caches artifact descriptors for one resolution session."""

    def __init__(self, fetcher: ArtifactFetcher):
        self.fetcher = fetcher
        self._models: dict[tuple[str, str, str], _Model | None] = {}
        self._descriptors: dict[tuple[str, str, str], ArtifactDescriptor] = {}

    def read(self, coordinate: ArtifactCoordinate) -> ArtifactDescriptor:
        """Descriptor for a coordinate with a concrete version.

        A missing POM is not an error: the artifact is treated as having no
        dependencies.

        Raises:
            DescriptorError: POM is malformed or its parent chain is cyclic
        """
        gav = (coordinate.group, coordinate.name, coordinate.version_spec)
        if gav in self._descriptors:
            return self._descriptors[gav]

        model = self._load_model(gav, seen=())
        if model is None:
            logger.warning(f"The POM for {coordinate} is missing, no dependency information available")
            descriptor = ArtifactDescriptor(coordinate=coordinate, missing=True)
        else:
            descriptor = self._build(coordinate, model)
        self._descriptors[gav] = descriptor
        return descriptor

    def _load_model(self, gav: tuple[str, str, str], seen: tuple[tuple[str, str, str], ...]) -> _Model | None:
        if gav in self._models:
            return self._models[gav]

        pom = ArtifactCoordinate(group=gav[0], name=gav[1], version_spec=gav[2], extension="pom")
        path = self.fetcher.find(pom)
        if path is None:
            self._models[gav] = None
            return None

        try:
            root = parse_xml(path.read_bytes())
        except ET.ParseError as e:
            raise DescriptorError(f"Malformed POM for {pom}: {e}") from e

        parent_model = None
        parent = None
        parent_el = root.find("parent")
        if parent_el is not None:
            parent = (
                text_of(parent_el, "groupId", ""),
                text_of(parent_el, "artifactId", ""),
                text_of(parent_el, "version", ""),
            )
            if not all(parent):
                raise DescriptorError(f"POM for {pom} declares an incomplete parent")
            if parent in seen or parent == gav:
                raise DescriptorError(f"Cyclic parent chain: {' -> '.join(':'.join(p) for p in (*seen, gav, parent))}")
            parent_model = self._load_model(parent, seen=(*seen, gav))
            if parent_model is None:
                logger.warning(f"Parent POM {':'.join(parent)} of {pom} is missing")

        model = _Model(
            group=text_of(root, "groupId") or (parent[0] if parent else None),
            name=text_of(root, "artifactId", gav[1]),
            version=text_of(root, "version") or (parent[2] if parent else None),
            parent=parent,
            properties=dict(parent_model.properties) if parent_model else {},
            managed=dict(parent_model.managed) if parent_model else {},
            dependencies=[],
        )

        props_el = root.find("properties")
        if props_el is not None:
            for prop in props_el:
                if isinstance(prop.tag, str):
                    model.properties[prop.tag] = (prop.text or "").strip()

        for dep in root.findall("dependencyManagement/dependencies/dependency"):
            model.managed[(text_of(dep, "groupId", ""), text_of(dep, "artifactId", ""))] = dep

        own = root.findall("dependencies/dependency")
        own_keys = {(text_of(d, "groupId", ""), text_of(d, "artifactId", "")) for d in own}
        inherited = parent_model.dependencies if parent_model else []
        model.dependencies = own + [
            d for d in inherited if (text_of(d, "groupId", ""), text_of(d, "artifactId", "")) not in own_keys
        ]

        self._models[gav] = model
        return model

    def _build(self, coordinate: ArtifactCoordinate, model: _Model) -> ArtifactDescriptor:
        properties = dict(model.properties)
        builtins = {
            "groupId": model.group or coordinate.group,
            "artifactId": model.name,
            "version": model.version or coordinate.version_spec,
        }
        for prefix in ("project.", "pom.", ""):
            for key, value in builtins.items():
                properties[prefix + key] = value
        if model.parent:
            for prefix in ("project.parent.", "parent."):
                properties[prefix + "groupId"] = model.parent[0]
                properties[prefix + "artifactId"] = model.parent[1]
                properties[prefix + "version"] = model.parent[2]

        def interpolate(value: str | None) -> str | None:
            if value is None:
                return None
            for _ in range(_MAX_INTERPOLATION_PASSES):
                expanded = _PLACEHOLDER.sub(lambda m: properties.get(m.group(1), m.group(0)), value)
                if expanded == value:
                    break
                value = expanded
            return value

        def field_of(element: ET.Element, path: str) -> str | None:
            return interpolate(text_of(element, path))

        managed: dict[tuple[str, str], ET.Element] = {}
        managed_versions: dict[tuple[str, str], str] = {}
        for element in model.managed.values():
            key = (field_of(element, "groupId") or "", field_of(element, "artifactId") or "")
            managed[key] = element
            version = field_of(element, "version")
            if version:
                managed_versions[key] = version

        dependencies = []
        for element in model.dependencies:
            group = field_of(element, "groupId") or ""
            name = field_of(element, "artifactId") or ""
            if not group or not name:
                raise DescriptorError(f"POM for {coordinate} declares a dependency without groupId/artifactId")
            managed_el = managed.get((group, name))

            version = field_of(element, "version") or managed_versions.get((group, name))
            scope = field_of(element, "scope")
            if scope is None and managed_el is not None:
                scope = field_of(managed_el, "scope")
            extension, classifier = _type_to_extension(
                field_of(element, "type") or "jar",
                field_of(element, "classifier") or "",
            )

            exclusions = set()
            for source in (element, managed_el):
                if source is None:
                    continue
                for exclusion in source.findall("exclusions/exclusion"):
                    exclusions.add(
                        (field_of(exclusion, "groupId") or WILDCARD, field_of(exclusion, "artifactId") or WILDCARD)
                    )

            dependencies.append(
                DeclaredDependency(
                    group=group,
                    name=name,
                    version_spec=version,
                    scope=scope or COMPILE_SCOPE,
                    optional=(field_of(element, "optional") or "false").lower() == "true",
                    extension=extension,
                    classifier=classifier,
                    exclusions=frozenset(exclusions),
                )
            )

        return ArtifactDescriptor(
            coordinate=coordinate,
            dependencies=dependencies,
            properties=properties,
            managed_versions=managed_versions,
        )
