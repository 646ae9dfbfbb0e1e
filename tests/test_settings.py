"""Tests for settings loading and the version defaults properties file."""

from pathlib import Path

import pytest

from gav_bootstrap.errors import SettingsError
from gav_bootstrap.repository.session import DEFAULT_CACHE_DIR
from gav_bootstrap.settings import ENV_VARS
from gav_bootstrap.settings import BootstrapSettings
from gav_bootstrap.settings import SettingsManager
from gav_bootstrap.settings import load_properties
from gav_bootstrap.settings import parse_properties


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for env_var in ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def manager(tmp_path):
    return SettingsManager(project_dir=tmp_path / "project", user_dir=tmp_path / "user")


def write_settings(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


class TestParseProperties:
    def test_coordinate_keys_keep_colons(self):
        props = parse_properties("joda-time:joda-time=2.10.14\norg.example:lib = 1.0\n")
        assert props == {"joda-time:joda-time": "2.10.14", "org.example:lib": "1.0"}

    def test_whitespace_separator(self):
        assert parse_properties("org.example:lib 1.0") == {"org.example:lib": "1.0"}

    def test_comments_and_blank_lines(self):
        text = "# comment\n! also a comment\n\n   \ng:a=1\n"
        assert parse_properties(text) == {"g:a": "1"}

    def test_escaped_colon(self):
        """Escaped colons written by Java tools read the same as plain ones."""
        assert parse_properties(r"org.example\:lib=1.0") == {"org.example:lib": "1.0"}

    def test_continuation_lines(self):
        text = "g:a=1.\\\n    2.\\\n    3\n"
        assert parse_properties(text) == {"g:a": "1.2.3"}

    def test_unicode_escape(self):
        assert parse_properties("key=caf\\u00e9") == {"key": "café"}

    def test_last_entry_wins(self):
        assert parse_properties("g:a=1\ng:a=2") == {"g:a": "2"}

    def test_key_without_value(self):
        assert parse_properties("g:a") == {"g:a": ""}


class TestLoadProperties:
    def test_reads_file(self, tmp_path):
        path = tmp_path / "bootstrap.properties"
        path.write_text("g:a=1.0\n")
        assert load_properties(path) == {"g:a": "1.0"}

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(SettingsError):
            load_properties(tmp_path / "missing.properties")


class TestBootstrapSettings:
    def test_defaults(self):
        settings = BootstrapSettings()
        assert settings.repository_url is None
        assert settings.cache_dir == DEFAULT_CACHE_DIR
        assert settings.log_level == "INFO"

    def test_version_defaults_missing_file(self, tmp_path):
        settings = BootstrapSettings(defaults_file=tmp_path / "nope.properties")
        assert settings.version_defaults() == {}

    def test_version_defaults(self, tmp_path):
        path = tmp_path / "defaults.properties"
        path.write_text("org.example:lib=3.1\n")
        assert BootstrapSettings(defaults_file=path).version_defaults() == {"org.example:lib": "3.1"}


class TestSettingsManager:
    def test_no_files(self, manager):
        settings = manager.load()
        assert settings == BootstrapSettings()

    def test_project_overrides_user(self, manager):
        write_settings(manager.user_settings_file, "repository_url: https://user.example/repo\nlog_level: DEBUG\n")
        write_settings(manager.project_settings_file, "repository_url: https://project.example/repo\n")

        settings = manager.load()

        assert settings.repository_url == "https://project.example/repo"
        assert settings.log_level == "DEBUG"

    def test_env_overrides_files(self, manager, monkeypatch):
        write_settings(manager.project_settings_file, "repository_url: https://project.example/repo\n")
        monkeypatch.setenv("GAV_BOOTSTRAP_REPO_URL", "https://env.example/repo")
        monkeypatch.setenv("GAV_BOOTSTRAP_CACHE_DIR", "/tmp/env-cache")

        settings = manager.load()

        assert settings.repository_url == "https://env.example/repo"
        assert settings.cache_dir == Path("/tmp/env-cache")

    def test_overrides_win_and_none_is_ignored(self, manager, monkeypatch):
        monkeypatch.setenv("GAV_BOOTSTRAP_REPO_URL", "https://env.example/repo")

        settings = manager.load(repository_url="https://cli.example/repo", log_level=None)

        assert settings.repository_url == "https://cli.example/repo"
        assert settings.log_level == "INFO"

    def test_unknown_keys_are_ignored(self, manager, caplog):
        write_settings(manager.project_settings_file, "log_level: WARNING\nmystery: 1\n")

        settings = manager.load()

        assert settings.log_level == "WARNING"
        assert "mystery" in caplog.text

    def test_invalid_yaml(self, manager):
        write_settings(manager.project_settings_file, "repository_url: [unclosed\n")
        with pytest.raises(SettingsError, match="Could not read settings"):
            manager.load()

    def test_non_mapping(self, manager):
        write_settings(manager.user_settings_file, "- just\n- a list\n")
        with pytest.raises(SettingsError, match="must contain a mapping"):
            manager.load()

    def test_invalid_value(self, manager):
        write_settings(manager.project_settings_file, "log_level: [1, 2]\n")
        with pytest.raises(SettingsError, match="Invalid settings"):
            manager.load()
