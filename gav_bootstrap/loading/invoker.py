"""Invoke an entry class's ``main(args)`` inside an isolated scope."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from collections.abc import Sequence

from ..errors import EntryPointMissingError
from ..errors import InvocationError
from .scope import IsolatedScope

logger = logging.getLogger(__name__)

ENTRY_FUNCTION = "main"


def locate_entry_function(cls: type, name: str | None = None) -> Callable[[list[str]], object]:
    """Find the static ``main`` of cls that accepts one positional argument.

    Both ``@staticmethod`` and ``@classmethod`` qualify; a plain function
    would need an instance and does not.

    Raises:
        EntryPointMissingError: No such function
    """
    name = name or cls.__qualname__
    raw = inspect.getattr_static(cls, ENTRY_FUNCTION, None)
    if raw is None:
        raise EntryPointMissingError(name)
    if not isinstance(raw, staticmethod | classmethod):
        raise EntryPointMissingError(name, f"{ENTRY_FUNCTION} is not a staticmethod or classmethod")

    entry = getattr(cls, ENTRY_FUNCTION)
    try:
        inspect.signature(entry).bind([])
    except TypeError as e:
        raise EntryPointMissingError(name, f"{ENTRY_FUNCTION} must accept exactly one argument: {e}") from e
    except ValueError:
        # No signature available (builtin); trust the call
        pass
    return entry


def invoke_entry_point(scope: IsolatedScope, class_name: str, args: Sequence[str]) -> None:
    """Load ``class_name`` from scope and call its main with ``args``.

    The scope is passed explicitly: code inside the entry point finds it as
    the ``__scope__`` global of any module the scope loaded (and through
    ``__loader__.scope``). No process or thread state is changed.

    Raises:
        ClassLoadError: The class cannot be loaded from the scope
        EntryPointMissingError: The class has no usable main
        InvocationError: main raised; the original exception is the cause
    """
    cls = scope.load_class(class_name)
    entry = locate_entry_function(cls, class_name)

    entry_args = list(args)
    logger.debug(f"Invoking {class_name}.{ENTRY_FUNCTION}({entry_args!r})")
    try:
        entry(entry_args)
    except Exception as e:
        raise InvocationError(class_name, e) from e
