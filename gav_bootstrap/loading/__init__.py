"""Isolated loading of resolved artifacts and entry point invocation."""

from .invoker import invoke_entry_point
from .invoker import locate_entry_function
from .scope import IsolatedScope
from .scope import build_isolated_scope

__all__ = [
    "IsolatedScope",
    "build_isolated_scope",
    "invoke_entry_point",
    "locate_entry_function",
]
