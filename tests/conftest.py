"""Pytest configuration for gav-bootstrap tests.

Remote repositories are directories in Maven 2 layout served through
``file://`` URLs, so nothing here touches the network.
"""

import zipfile
from pathlib import Path
from textwrap import dedent
from xml.sax.saxutils import escape

import pytest

from gav_bootstrap.coordinates import ArtifactCoordinate
from gav_bootstrap.repository.session import RemoteRepositoryEndpoint
from gav_bootstrap.repository.session import new_session
from gav_bootstrap.resolution.graph import ResolvedArtifact


def _dependency_xml(dep) -> str:
    if isinstance(dep, str):
        dep = {"gav": dep}
    parts = dep["gav"].split(":")
    lines = [f"<groupId>{parts[0]}</groupId>", f"<artifactId>{parts[1]}</artifactId>"]
    if len(parts) > 2:
        lines.append(f"<version>{escape(parts[2])}</version>")
    for tag in ("scope", "type", "classifier"):
        if tag in dep:
            lines.append(f"<{tag}>{dep[tag]}</{tag}>")
    if dep.get("optional"):
        lines.append("<optional>true</optional>")
    if dep.get("exclusions"):
        exclusions = "".join(
            f"<exclusion><groupId>{g}</groupId><artifactId>{a}</artifactId></exclusion>"
            for g, a in (e.split(":") for e in dep["exclusions"])
        )
        lines.append(f"<exclusions>{exclusions}</exclusions>")
    return "<dependency>" + "".join(lines) + "</dependency>"


def make_pom(group: str, name: str, version: str, dependencies=(), extra: str = "") -> str:
    deps = "".join(_dependency_xml(d) for d in dependencies)
    return dedent(f"""\
        <?xml version="1.0" encoding="UTF-8"?>
        <project xmlns="http://maven.apache.org/POM/4.0.0">
          <modelVersion>4.0.0</modelVersion>
          <groupId>{group}</groupId>
          <artifactId>{name}</artifactId>
          <version>{version}</version>
          {extra}
          <dependencies>{deps}</dependencies>
        </project>
        """)


class RepoBuilder:
    """Publishes artifacts into a Maven-layout directory."""

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    @property
    def url(self) -> str:
        return self.root.as_uri() + "/"

    def endpoint(self, repo_id: str = "test") -> RemoteRepositoryEndpoint:
        return RemoteRepositoryEndpoint(repo_id, "default", self.url)

    def artifact_dir(self, gav: str) -> Path:
        group, name, version = gav.split(":")
        return self.root.joinpath(*group.split("."), name, version)

    def jar_path(self, gav: str) -> Path:
        _, name, version = gav.split(":")
        return self.artifact_dir(gav) / f"{name}-{version}.jar"

    def pom_path(self, gav: str) -> Path:
        _, name, version = gav.split(":")
        return self.artifact_dir(gav) / f"{name}-{version}.pom"

    def publish(
        self,
        gav: str,
        dependencies=(),
        modules: dict[str, str] | None = None,
        pom: str | bool = True,
        jar: bool = True,
        extra_pom: str = "",
    ) -> None:
        """Publish gav with a POM declaring dependencies and a jar holding modules."""
        group, name, version = gav.split(":")
        self.artifact_dir(gav).mkdir(parents=True, exist_ok=True)

        if isinstance(pom, str):
            self.pom_path(gav).write_text(pom)
        elif pom:
            self.pom_path(gav).write_text(make_pom(group, name, version, dependencies, extra_pom))

        if jar:
            with zipfile.ZipFile(self.jar_path(gav), "w") as zf:
                zf.writestr("META-INF/MANIFEST.MF", "Manifest-Version: 1.0\n")
                for member, source in (modules or {}).items():
                    zf.writestr(member, dedent(source))

        self._add_version(group, name, version)

    def _add_version(self, group: str, name: str, version: str) -> None:
        metadata = self.root.joinpath(*group.split("."), name, "maven-metadata.xml")
        versions = []
        if metadata.exists():
            text = metadata.read_text()
            versions = [v.split("</version>")[0] for v in text.split("<version>")[1:]]
        if version not in versions:
            versions.append(version)
        listed = "".join(f"<version>{v}</version>" for v in versions)
        metadata.write_text(
            f"<metadata><groupId>{group}</groupId><artifactId>{name}</artifactId>"
            f"<versioning><versions>{listed}</versions></versioning></metadata>"
        )


@pytest.fixture
def repo(tmp_path):
    """A file:// repository."""
    return RepoBuilder(tmp_path / "remote")


@pytest.fixture
def repo_factory(tmp_path):
    """Create additional file:// repositories by name."""

    def _create(name: str) -> RepoBuilder:
        return RepoBuilder(tmp_path / name)

    return _create


@pytest.fixture
def artifact_factory(tmp_path):
    """Write a standalone archive and return it as a resolved artifact."""

    def _create(name: str, modules: dict[str, str]) -> ResolvedArtifact:
        path = tmp_path / "jars" / f"{name}-1.0.jar"
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w") as zf:
            for member, source in modules.items():
                zf.writestr(member, dedent(source))
        return ResolvedArtifact(ArtifactCoordinate("org.example", name, "1.0"), path)

    return _create


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def session(repo, cache_dir):
    """Session over the single file:// repository."""
    with new_session(cache_dir=cache_dir, endpoints=(repo.endpoint(),)) as s:
        yield s
