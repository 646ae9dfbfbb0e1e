"""Isolated code loading from resolved artifact archives.

An IsolatedScope sees exactly two things: the Python sources inside its
archives and the interpreter's standard library. It never looks at
``sys.path`` or ``sys.modules`` for anything else, so the invoking program's
own packages (and whatever is installed next to it) are invisible, and two
scopes built from different artifacts never share a module.

Isolation works at the import statement level: every module defined by a
scope gets builtins whose ``__import__`` resolves through the scope.
Importing ``builtins`` or ``importlib`` from inside the scope yields proxies
whose ``__import__`` and ``import_module`` do the same. Code that digs into
``sys.modules`` can still reach the host; the scope keeps programs apart, it
does not sandbox them.
"""

from __future__ import annotations

import builtins
import importlib
import importlib.util
import logging
import sys
import zipfile
from collections.abc import Sequence
from dataclasses import dataclass
from importlib.machinery import ModuleSpec
from pathlib import Path
from types import ModuleType
from typing import Any

from ..errors import ClassLoadError
from ..errors import CorruptArtifactError
from ..errors import StaleArtifactError
from ..resolution.graph import ResolvedArtifact

logger = logging.getLogger(__name__)

# Always visible, always taken from the host interpreter (parent first)
HOST_MODULES = frozenset(sys.stdlib_module_names) | frozenset(sys.builtin_module_names)


class _Archive:
    """Index over one artifact archive."""

    def __init__(self, path: Path):
        self.path = path
        self._zip = zipfile.ZipFile(path)
        self.names = set(self._zip.namelist())
        self.dirs: set[str] = set()
        for name in self.names:
            parts = name.split("/")[:-1]
            for i in range(1, len(parts) + 1):
                self.dirs.add("/".join(parts[:i]))

    def read(self, member: str) -> bytes:
        return self._zip.read(member)

    def location(self, member: str) -> str:
        return f"{self.path}/{member}"

    def close(self) -> None:
        self._zip.close()


@dataclass
class _Location:
    archive: _Archive | None
    member: str | None
    is_package: bool
    search_locations: list[str]


class ScopeLoader:
    """``__loader__`` of every module an IsolatedScope defines."""

    def __init__(self, scope: IsolatedScope):
        self.scope = scope

    def get_data(self, path: str) -> bytes:
        data = self.scope.get_resource(path)
        if data is None:
            raise FileNotFoundError(path)
        return data

    def __repr__(self) -> str:
        return f"<ScopeLoader {len(self.scope.paths)} archives>"


class _ScopedImportlib(ModuleType):
    """``importlib`` as seen from inside a scope."""

    def __init__(self, scope: IsolatedScope):
        super().__init__("importlib", importlib.__doc__)
        self.import_module = scope.import_module
        self.__import__ = scope._import

    def __getattr__(self, attr: str) -> Any:
        return getattr(importlib, attr)


class _ScopedBuiltins(ModuleType):
    """``builtins`` as seen from inside a scope."""

    def __init__(self, scope: IsolatedScope):
        super().__init__("builtins", builtins.__doc__)
        self.__import__ = scope._import

    def __getattr__(self, attr: str) -> Any:
        return getattr(builtins, attr)


class IsolatedScope:
    """A module namespace backed only by a fixed list of archives.

    Use as a context manager; closing releases the archives and forgets every
    module the scope defined.
    """

    def __init__(self, archives: list[_Archive], artifacts: Sequence[ResolvedArtifact] = ()):
        self.artifacts = tuple(artifacts)
        self._archives = archives
        self._modules: dict[str, ModuleType] = {}
        self.loader = ScopeLoader(self)
        self._importlib = _ScopedImportlib(self)
        self._builtins = dict(builtins.__dict__)
        self._builtins["__import__"] = self._import
        # Host modules that hand out the host's import machinery
        self._proxies: dict[str, ModuleType] = {"importlib": self._importlib, "builtins": _ScopedBuiltins(self)}
        self.closed = False

    @property
    def paths(self) -> list[Path]:
        return [a.path for a in self._archives]

    @property
    def modules(self) -> dict[str, ModuleType]:
        """Modules defined so far, by name (a copy)."""
        return dict(self._modules)

    def import_module(self, name: str, package: str | None = None) -> ModuleType:
        """``importlib.import_module`` restricted to this scope.

        Raises:
            ModuleNotFoundError: Neither the archives nor the standard library provide the module
        """
        if name.startswith("."):
            if not package:
                raise TypeError(f"the 'package' argument is required to perform a relative import for {name!r}")
            name = importlib.util.resolve_name(name, package)
        return self._load(name)

    def load_class(self, name: str) -> type:
        """Load ``package.module.ClassName`` (or ``package.module:Outer.Inner``).

        Raises:
            ClassLoadError: The module cannot be imported, lacks the attribute or it is not a class
        """
        if ":" in name:
            module_name, _, attr_path = name.partition(":")
        else:
            module_name, _, attr_path = name.rpartition(".")
        if not module_name or not attr_path:
            raise ClassLoadError(name, "expected package.module.ClassName")

        try:
            module = self.import_module(module_name)
        except ImportError as e:
            raise ClassLoadError(name, str(e)) from e
        except Exception as e:
            raise ClassLoadError(name, f"module {module_name} failed to initialize: {type(e).__name__}: {e}") from e

        obj: Any = module
        for part in attr_path.split("."):
            try:
                obj = getattr(obj, part)
            except AttributeError as e:
                raise ClassLoadError(name, f"{module_name} has no attribute {attr_path}") from e
        if not isinstance(obj, type):
            raise ClassLoadError(name, f"{attr_path} is a {type(obj).__name__}, not a class")
        return obj

    def get_resource(self, name: str) -> bytes | None:
        """Content of ``name`` from the first archive that has it."""
        self._check_open()
        member = name.lstrip("/")
        for archive in self._archives:
            if member in archive.names:
                return archive.read(member)
            prefix = f"{archive.path}/"
            if name.startswith(prefix) and name[len(prefix) :] in archive.names:
                return archive.read(name[len(prefix) :])
        return None

    def close(self) -> None:
        for archive in self._archives:
            archive.close()
        self._modules.clear()
        self.closed = True

    def __enter__(self) -> IsolatedScope:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"IsolatedScope({[str(p) for p in self.paths]})"

    def _check_open(self) -> None:
        if self.closed:
            raise RuntimeError("Isolated scope is closed")

    @staticmethod
    def _is_host_module(name: str) -> bool:
        return name.partition(".")[0] in HOST_MODULES

    def _load(self, fullname: str) -> ModuleType:
        self._check_open()
        if self._is_host_module(fullname):
            module = importlib.import_module(fullname)
            return self._proxies.get(fullname, module)

        if fullname in self._modules:
            return self._modules[fullname]

        parent_name, _, child = fullname.rpartition(".")
        parent = self._load(parent_name) if parent_name else None
        # Loading the parent may have imported us already
        if fullname in self._modules:
            return self._modules[fullname]

        module = self._define(fullname)
        if parent is not None:
            setattr(parent, child, module)
        return module

    def _locate(self, fullname: str) -> _Location | None:
        base = fullname.replace(".", "/")
        portions = []
        for archive in self._archives:
            init = f"{base}/__init__.py"
            if init in archive.names:
                return _Location(archive, init, True, [archive.location(base)])
            module_file = f"{base}.py"
            if module_file in archive.names:
                return _Location(archive, module_file, False, [])
            if base in archive.dirs:
                portions.append(archive.location(base))
        if portions:
            return _Location(None, None, True, portions)
        return None

    def _define(self, fullname: str) -> ModuleType:
        location = self._locate(fullname)
        if location is None:
            raise ModuleNotFoundError(f"No module named '{fullname}' in isolated scope", name=fullname)

        origin = location.archive.location(location.member) if location.archive and location.member else None
        spec = ModuleSpec(fullname, self.loader, origin=origin, is_package=location.is_package)
        spec.has_location = origin is not None

        module = ModuleType(fullname)
        module.__spec__ = spec
        module.__loader__ = self.loader
        if location.is_package:
            spec.submodule_search_locations = list(location.search_locations)
            module.__path__ = list(location.search_locations)
            module.__package__ = fullname
        else:
            module.__package__ = fullname.rpartition(".")[0]
        if origin is not None:
            module.__file__ = origin
        module.__builtins__ = self._builtins
        module.__scope__ = self

        self._modules[fullname] = module
        if location.archive is None or location.member is None:
            logger.debug(f"Namespace package {fullname}: {location.search_locations}")
            return module

        try:
            source = importlib.util.decode_source(location.archive.read(location.member))
            code = compile(source, origin, "exec", dont_inherit=True)
            exec(code, module.__dict__)
        except BaseException:
            self._modules.pop(fullname, None)
            raise
        logger.debug(f"Loaded {fullname} from {origin}")
        return module

    def _import(
        self,
        name: str,
        globals: dict[str, Any] | None = None,
        locals: dict[str, Any] | None = None,
        fromlist: Sequence[str] | None = (),
        level: int = 0,
    ) -> ModuleType:
        """``__import__`` for code running inside the scope."""
        if level > 0:
            name = importlib.util.resolve_name("." * level + name, self._package_of(globals))

        if self._is_host_module(name):
            module = builtins.__import__(name, None, None, fromlist or (), 0)
            top = name if fromlist else name.partition(".")[0]
            return self._proxies.get(top, module)

        module = self._load(name)
        if not fromlist:
            return self._load(name.partition(".")[0]) if level == 0 else module

        if hasattr(module, "__path__"):
            for item in fromlist:
                if item == "*":
                    for sub in getattr(module, "__all__", ()):
                        self._load_submodule(module, name, sub)
                else:
                    self._load_submodule(module, name, item)
        return module

    def _load_submodule(self, module: ModuleType, name: str, item: str) -> None:
        if hasattr(module, item):
            return
        try:
            self._load(f"{name}.{item}")
        except ModuleNotFoundError as e:
            # ``from pkg import attr`` that is neither attribute nor submodule
            # surfaces as ImportError at the import statement
            if e.name != f"{name}.{item}":
                raise

    @staticmethod
    def _package_of(globals: dict[str, Any] | None) -> str:
        if not globals:
            raise ImportError("attempted relative import with no known parent package")
        package = globals.get("__package__")
        if package is None:
            spec = globals.get("__spec__")
            package = spec.parent if spec is not None else globals.get("__name__", "").rpartition(".")[0]
        if not package:
            raise ImportError("attempted relative import with no known parent package")
        return package


def build_isolated_scope(artifacts: Sequence[ResolvedArtifact]) -> IsolatedScope:
    """Open every resolved archive into a new IsolatedScope.

    Artifacts that are not zip archives (``pom`` typed dependencies, for
    instance) contribute nothing and are skipped.

    Raises:
        StaleArtifactError: A resolved file no longer exists
        CorruptArtifactError: A resolved file looks like an archive but cannot be opened
    """
    archives: list[_Archive] = []
    try:
        for artifact in artifacts:
            path = Path(artifact.path)
            if not path.is_file():
                raise StaleArtifactError(path)
            if not zipfile.is_zipfile(path):
                logger.debug(f"Skipping {artifact.coordinate.label}: not an archive")
                continue
            try:
                archives.append(_Archive(path))
            except FileNotFoundError as e:
                raise StaleArtifactError(path) from e
            except (zipfile.BadZipFile, OSError) as e:
                raise CorruptArtifactError(path, str(e) or type(e).__name__) from e
    except BaseException:
        for archive in archives:
            archive.close()
        raise

    logger.debug(f"Isolated scope over {len(archives)} archives")
    return IsolatedScope(archives, artifacts)
