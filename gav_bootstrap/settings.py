"""Settings for gav-bootstrap.

Resolution order (first match wins):
1. Explicit overrides (CLI options)
2. Environment variables (GAV_BOOTSTRAP_REPO_URL, ...)
3. Project settings (.gav-bootstrap/settings.yaml)
4. User settings (~/.gav-bootstrap/settings.yaml)
5. Defaults

Default versions for ``group:name`` coordinates live in a separate
properties file (``bootstrap.properties`` unless configured otherwise).
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import ValidationError

from .errors import SettingsError
from .repository.session import DEFAULT_CACHE_DIR

logger = logging.getLogger(__name__)

DEFAULT_PROPERTIES_FILE = Path("bootstrap.properties")

ENV_VARS = {
    "repository_url": "GAV_BOOTSTRAP_REPO_URL",
    "cache_dir": "GAV_BOOTSTRAP_CACHE_DIR",
    "defaults_file": "GAV_BOOTSTRAP_PROPERTIES",
    "log_level": "GAV_BOOTSTRAP_LOG_LEVEL",
}

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_ESCAPE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)")


class BootstrapSettings(BaseModel):
    """Effective settings of one run."""

    repository_url: str | None = None
    cache_dir: Path = DEFAULT_CACHE_DIR
    defaults_file: Path = DEFAULT_PROPERTIES_FILE
    log_level: str = "INFO"

    def version_defaults(self) -> dict[str, str]:
        """Default versions keyed by ``group:name``; empty when the file does not exist."""
        if not self.defaults_file.is_file():
            logger.debug(f"No version defaults file at {self.defaults_file}")
            return {}
        return load_properties(self.defaults_file)


class SettingsManager:
    """Merges settings from user and project files, environment and overrides."""

    def __init__(self, project_dir: Path | None = None, user_dir: Path | None = None):
        """Initialize with standard paths.

        Args:
            project_dir: Directory holding project settings (default: ./.gav-bootstrap)
            user_dir: Directory holding user settings (default: ~/.gav-bootstrap)
        """
        if project_dir is None:
            project_dir = Path(".gav-bootstrap")
        if user_dir is None:
            user_dir = Path.home() / ".gav-bootstrap"

        self.user_settings_file = user_dir / "settings.yaml"
        self.project_settings_file = project_dir / "settings.yaml"

    def load(self, **overrides: Any) -> BootstrapSettings:
        """Build the effective settings.

        Args:
            **overrides: Field values that win over every other source; None is ignored

        Raises:
            SettingsError: A value does not validate
        """
        merged: dict[str, Any] = {}
        merged.update(self._read_settings(self.user_settings_file))
        merged.update(self._read_settings(self.project_settings_file))
        for field_name, env_var in ENV_VARS.items():
            if value := os.environ.get(env_var):
                merged[field_name] = value
        merged.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return BootstrapSettings(**merged)
        except ValidationError as e:
            raise SettingsError(f"Invalid settings: {e}") from e

    def _read_settings(self, path: Path) -> dict[str, Any]:
        """Read one settings file; a missing file is empty."""
        if not path.exists():
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise SettingsError(f"Could not read settings from {path}: {e}") from e

        if not isinstance(data, dict):
            raise SettingsError(f"Settings file {path} must contain a mapping")

        known = {k: v for k, v in data.items() if k in BootstrapSettings.model_fields}
        unknown = sorted(set(data) - set(known))
        if unknown:
            logger.warning(f"Ignoring unknown settings in {path}: {', '.join(map(str, unknown))}")
        return known


def _unescape(text: str) -> str:
    def replace(match: re.Match[str]) -> str:
        escaped = match.group(1)
        if escaped.startswith("u") and len(escaped) == 5:
            return chr(int(escaped[1:], 16))
        return _ESCAPES.get(escaped, escaped)

    return _ESCAPE.sub(replace, text)


def _split_entry(line: str) -> tuple[str, str]:
    # Keys are coordinates, so ':' belongs to the key; '=' or whitespace ends it
    i = 0
    while i < len(line):
        char = line[i]
        if char == "\\":
            i += 2
            continue
        if char == "=" or char.isspace():
            break
        i += 1
    key, rest = line[:i], line[i:].lstrip()
    if rest.startswith("="):
        rest = rest[1:].lstrip()
    return _unescape(key), _unescape(rest)


def parse_properties(text: str) -> dict[str, str]:
    """Parse properties file content.

    ``key=value`` and ``key value`` entries, ``#`` and ``!`` comments,
    backslash line continuations and escapes (``\\:``, ``\\=``, ``\\uXXXX``).
    """
    entries: dict[str, str] = {}
    pending = ""
    for raw_line in text.splitlines():
        line = raw_line.lstrip()
        if not pending and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending += line[:-1]
            continue
        key, value = _split_entry(pending + line)
        pending = ""
        if key:
            entries[key] = value
    if pending:
        key, value = _split_entry(pending)
        if key:
            entries[key] = value
    return entries


def load_properties(path: Path) -> dict[str, str]:
    """Load a properties file.

    Raises:
        SettingsError: The file cannot be read
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SettingsError(f"Could not read {path}: {e}") from e
    return parse_properties(text)
