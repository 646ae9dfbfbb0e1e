"""Error message formatting for console output.

BootstrapError messages are written for the user and are shown as they are.
Anything else gets its type name in front, and exceptions whose str() is
empty (TimeoutError, KeyboardInterrupt) get a friendly fallback.
"""

from __future__ import annotations

from rich.markup import escape as _escape_markup

from ..errors import BootstrapError

# Exception types known to have an empty str()
FRIENDLY_MESSAGES: dict[type, str] = {
    TimeoutError: "Request timed out. The repository may be slow or unreachable.",
    ConnectionResetError: "Connection was reset by the server.",
    BrokenPipeError: "Connection was closed unexpectedly.",
    KeyboardInterrupt: "Operation interrupted by user.",
}


def format_error_message(e: BaseException, *, include_type: bool | None = None) -> str:
    """Format an exception into a non-empty display message.

    Args:
        e: The exception to format
        include_type: Prefix the type name; by default only for non-BootstrapError exceptions

    Examples:
        >>> format_error_message(ValueError("invalid input"))
        'ValueError: invalid input'

        >>> format_error_message(KeyboardInterrupt())
        'KeyboardInterrupt: Operation interrupted by user.'
    """
    if include_type is None:
        include_type = not isinstance(e, BootstrapError)

    error_str = str(e)
    error_type = type(e).__name__

    if not error_str:
        friendly = next((msg for exc_type, msg in FRIENDLY_MESSAGES.items() if isinstance(e, exc_type)), None)
        return f"{error_type}: {friendly or '(no additional details)'}"

    if include_type and error_type not in error_str:
        return f"{error_type}: {error_str}"
    return error_str


def escape_markup(value: object) -> str:
    """Escape a value for interpolation into Rich markup strings.

    Rich reads ``[a-z...]`` as a tag, so paths, class names and messages
    coming from repositories are escaped before printing.
    """
    return _escape_markup(str(value))
