"""Tests for cache-first artifact download across endpoints."""

import httpx
import pytest

from gav_bootstrap.coordinates import ArtifactCoordinate
from gav_bootstrap.errors import ArtifactNotFoundError
from gav_bootstrap.errors import InvalidCoordinateError
from gav_bootstrap.errors import TransferError
from gav_bootstrap.repository.fetcher import ArtifactFetcher
from gav_bootstrap.repository.fetcher import parse_metadata_versions
from gav_bootstrap.repository.local import LocalRepository
from gav_bootstrap.repository.local import artifact_path
from gav_bootstrap.repository.session import RemoteRepositoryEndpoint
from gav_bootstrap.repository.session import new_session

LIB = ArtifactCoordinate.parse("org.example:lib:1.0")


def test_artifact_path():
    assert artifact_path(LIB) == "org/example/lib/1.0/lib-1.0.jar"
    assert artifact_path(LIB.with_extension("pom")) == "org/example/lib/1.0/lib-1.0.pom"
    tests_jar = ArtifactCoordinate("org.example", "lib", "1.0", classifier="tests")
    assert artifact_path(tests_jar) == "org/example/lib/1.0/lib-1.0-tests.jar"


def test_parse_metadata_versions():
    data = b"""<?xml version="1.0"?>
    <metadata>
      <versioning>
        <versions><version>1.0</version><version> 1.1 </version><version/></versions>
      </versioning>
    </metadata>"""
    assert parse_metadata_versions(data) == ["1.0", "1.1"]


def test_cache_paths_stay_inside_basedir(cache_dir):
    local = LocalRepository(cache_dir)

    assert local.path_for(LIB).is_relative_to(cache_dir)
    with pytest.raises(InvalidCoordinateError, match="outside"):
        local.metadata_path_for("org.example", "lib", "../../../../../../escaped")
    with pytest.raises(InvalidCoordinateError, match="outside"):
        local.store_metadata("org.example", "lib", "../../../../../../escaped", b"<metadata/>")
    assert not list(cache_dir.parent.rglob("*escaped*"))


class TestFind:
    def test_downloads_into_cache(self, repo, session, cache_dir):
        repo.publish("org.example:lib:1.0")

        path = ArtifactFetcher(session).find(LIB)

        assert path == cache_dir / "org" / "example" / "lib" / "1.0" / "lib-1.0.jar"
        assert path.read_bytes() == repo.jar_path("org.example:lib:1.0").read_bytes()
        assert [r.coordinate for r in session.events.records] == ["org.example:lib:1.0"]

    def test_cached_artifact_is_not_downloaded_again(self, repo, session):
        repo.publish("org.example:lib:1.0")
        fetcher = ArtifactFetcher(session)
        first = fetcher.find(LIB)

        repo.jar_path("org.example:lib:1.0").unlink()
        second = fetcher.find(LIB)

        assert second == first
        assert len(session.events.records) == 1

    def test_cache_is_shared_between_sessions(self, repo, cache_dir):
        repo.publish("org.example:lib:1.0")
        with new_session(cache_dir=cache_dir, endpoints=(repo.endpoint(),)) as first:
            ArtifactFetcher(first).find(LIB)

        repo.jar_path("org.example:lib:1.0").unlink()
        with new_session(cache_dir=cache_dir, endpoints=(repo.endpoint(),)) as second:
            assert ArtifactFetcher(second).find(LIB) is not None
            assert second.events.records == []

    def test_missing_everywhere(self, session):
        assert ArtifactFetcher(session).find(LIB) is None
        assert session.events.records == []
        assert session.events.pending == []

    def test_falls_through_to_next_endpoint(self, repo_factory, cache_dir):
        empty = repo_factory("empty")
        full = repo_factory("full")
        full.publish("org.example:lib:1.0")

        with new_session(cache_dir=cache_dir, endpoints=(empty.endpoint("a"), full.endpoint("b"))) as session:
            path = ArtifactFetcher(session).find(LIB)

        assert path is not None
        assert path.read_bytes() == full.jar_path("org.example:lib:1.0").read_bytes()

    def test_first_endpoint_wins(self, repo_factory, cache_dir):
        first = repo_factory("first")
        second = repo_factory("second")
        first.publish("org.example:lib:1.0", modules={"lib.py": "SOURCE = 'first'\n"})
        second.publish("org.example:lib:1.0", modules={"lib.py": "SOURCE = 'second'\n"})

        with new_session(cache_dir=cache_dir, endpoints=(first.endpoint("a"), second.endpoint("b"))) as session:
            path = ArtifactFetcher(session).find(LIB)

        assert path.read_bytes() == first.jar_path("org.example:lib:1.0").read_bytes()

    def test_http_not_found_falls_through_but_errors_do_not(self, cache_dir):
        def handler(request):
            if request.url.host == "missing.example":
                return httpx.Response(404)
            if request.url.host == "broken.example":
                return httpx.Response(500)
            return httpx.Response(200, content=b"jar")

        endpoints = (
            RemoteRepositoryEndpoint("missing", "default", "https://missing.example/m2/"),
            RemoteRepositoryEndpoint("good", "default", "https://good.example/m2/"),
        )
        client = httpx.Client(transport=httpx.MockTransport(handler))
        with new_session(cache_dir=cache_dir, endpoints=endpoints, client=client) as session:
            assert ArtifactFetcher(session).find(LIB).read_bytes() == b"jar"

        endpoints = (
            RemoteRepositoryEndpoint("broken", "default", "https://broken.example/m2/"),
            RemoteRepositoryEndpoint("good", "default", "https://good.example/m2/"),
        )
        other = ArtifactCoordinate.parse("org.example:other:1.0")
        with new_session(cache_dir=cache_dir, endpoints=endpoints, client=client) as session:
            with pytest.raises(TransferError, match="HTTP 500"):
                ArtifactFetcher(session).find(other)
            assert session.events.pending == []


class TestFetch:
    def test_missing_artifact_raises(self, session):
        with pytest.raises(ArtifactNotFoundError) as exc_info:
            ArtifactFetcher(session).fetch(LIB)

        assert exc_info.value.coordinate == "org.example:lib:1.0"
        assert "Could not find artifact org.example:lib:1.0" in str(exc_info.value)

    def test_returns_path(self, repo, session):
        repo.publish("org.example:lib:1.0")
        assert ArtifactFetcher(session).fetch(LIB).is_file()


class TestAvailableVersions:
    def test_sorted_versions(self, repo, session):
        for version in ("1.10", "1.2", "1.0"):
            repo.publish(f"org.example:lib:{version}")

        versions = ArtifactFetcher(session).available_versions("org.example", "lib")

        assert [str(v) for v in versions] == ["1.0", "1.2", "1.10"]

    def test_merges_endpoints(self, repo_factory, cache_dir):
        a = repo_factory("a")
        b = repo_factory("b")
        a.publish("org.example:lib:1.0")
        b.publish("org.example:lib:2.0")
        b.publish("org.example:lib:1.0")

        with new_session(cache_dir=cache_dir, endpoints=(a.endpoint("a"), b.endpoint("b"))) as session:
            versions = ArtifactFetcher(session).available_versions("org.example", "lib")

        assert [str(v) for v in versions] == ["1.0", "2.0"]

    def test_unknown_artifact(self, session):
        assert ArtifactFetcher(session).available_versions("org.example", "nothing") == []

    def test_falls_back_to_cached_listing(self, repo, session, cache_dir):
        repo.publish("org.example:lib:1.0")
        fetcher = ArtifactFetcher(session)
        fetcher.available_versions("org.example", "lib")
        assert (cache_dir / "org" / "example" / "lib" / "maven-metadata-test.xml").is_file()

        (repo.root / "org" / "example" / "lib" / "maven-metadata.xml").unlink()

        assert [str(v) for v in fetcher.available_versions("org.example", "lib")] == ["1.0"]
