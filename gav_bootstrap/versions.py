"""Maven style version ordering and version range expressions.

Ordering follows the generic Maven scheme closely enough for dependency
mediation: numeric tokens compare numerically, qualifiers have a fixed
precedence and trailing zeros are insignificant (``1.0 == 1``).

Ranges use the usual interval notation::

    [1.0,2.0)   1.0 <= v < 2.0
    (,1.0]      v <= 1.0
    [1.5]       exactly 1.5
    [0,)        anything
    [1,2),[3,)  union of intervals
"""

from __future__ import annotations

import functools
import itertools
import re
from collections.abc import Iterable
from dataclasses import dataclass

from .errors import InvalidVersionError

_TOKEN = re.compile(r"\d+|[a-z]+")
_RANGE = re.compile(r"([\[(])([^\[\]()]*)([\])])")
_RANGE_LIST = re.compile(r"\s*[\[(][^\[\]()]*[\])](\s*,\s*[\[(][^\[\]()]*[\])])*\s*")

_QUALIFIER_ALIASES = {
    "a": "alpha",
    "b": "beta",
    "m": "milestone",
    "cr": "rc",
    "ga": "",
    "final": "",
    "release": "",
}
_QUALIFIER_ORDER = ["alpha", "beta", "milestone", "rc", "snapshot", "", "sp"]


def _qualifier_rank(qualifier: str) -> tuple[int, str]:
    if qualifier in _QUALIFIER_ORDER:
        return (_QUALIFIER_ORDER.index(qualifier), "")
    # Unknown qualifiers sort after the known ones, lexically among themselves
    return (len(_QUALIFIER_ORDER), qualifier)


def _is_null(item: int | str) -> bool:
    return item == 0 or item == ""


def _parse_items(text: str) -> tuple[int | str, ...]:
    items: list[int | str] = []
    for token in _TOKEN.findall(text.lower()):
        if token.isdigit():
            items.append(int(token))
            continue
        # 1.0-alpha is the same version as 1-alpha
        while items and _is_null(items[-1]):
            items.pop()
        items.append(_QUALIFIER_ALIASES.get(token, token))
    while items and _is_null(items[-1]):
        items.pop()
    return tuple(items)


def _compare_items(left: int | str | None, right: int | str | None) -> int:
    if left is None and right is None:
        return 0
    if left is None:
        return -_compare_items(right, None)
    if isinstance(left, int):
        if right is None:
            return 0 if left == 0 else 1
        if isinstance(right, int):
            return (left > right) - (left < right)
        return 1
    if right is None:
        right = ""
    elif isinstance(right, int):
        return -1
    left_rank = _qualifier_rank(left)
    right_rank = _qualifier_rank(right)
    return (left_rank > right_rank) - (left_rank < right_rank)


@functools.total_ordering
class Version:
    """A comparable version string."""

    def __init__(self, text: str):
        text = text.strip()
        if not text:
            raise InvalidVersionError(text, "empty version")
        self.text = text
        self.items = _parse_items(text)

    def compare(self, other: Version) -> int:
        for left, right in itertools.zip_longest(self.items, other.items):
            result = _compare_items(left, right)
            if result:
                return result
        return 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: Version) -> bool:
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash(self.items)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Version({self.text!r})"


@dataclass(frozen=True)
class VersionRange:
    """One interval of versions; a missing bound is unbounded."""

    lower: Version | None
    lower_inclusive: bool
    upper: Version | None
    upper_inclusive: bool

    @classmethod
    def parse(cls, text: str) -> VersionRange:
        match = _RANGE.fullmatch(text.strip())
        if not match:
            raise InvalidVersionError(text, "not a range")
        opening, body, closing = match.groups()
        lower_inclusive = opening == "["
        upper_inclusive = closing == "]"

        bounds = [part.strip() for part in body.split(",")]
        if len(bounds) == 1:
            if not (lower_inclusive and upper_inclusive) or not bounds[0]:
                raise InvalidVersionError(text, "single version ranges must look like [1.0]")
            exact = Version(bounds[0])
            return cls(exact, True, exact, True)
        if len(bounds) != 2:
            raise InvalidVersionError(text, "too many bounds")

        lower = Version(bounds[0]) if bounds[0] else None
        upper = Version(bounds[1]) if bounds[1] else None
        if lower is not None and upper is not None and upper < lower:
            raise InvalidVersionError(text, "upper bound is below lower bound")
        return cls(lower, lower_inclusive, upper, upper_inclusive)

    def contains(self, version: Version) -> bool:
        if self.lower is not None:
            result = version.compare(self.lower)
            if result < 0 or (result == 0 and not self.lower_inclusive):
                return False
        if self.upper is not None:
            result = version.compare(self.upper)
            if result > 0 or (result == 0 and not self.upper_inclusive):
                return False
        return True


@dataclass(frozen=True)
class VersionConstraint:
    """A parsed version spec: a soft requirement or a set of ranges."""

    spec: str
    recommended: Version | None
    ranges: tuple[VersionRange, ...] = ()

    @property
    def is_range(self) -> bool:
        return bool(self.ranges)

    def contains(self, version: Version) -> bool:
        if not self.ranges:
            return self.recommended is not None and version == self.recommended
        return any(r.contains(version) for r in self.ranges)

    def select(self, available: Iterable[Version]) -> Version | None:
        """Pick the highest available version satisfying the constraint."""
        matching = [v for v in available if self.contains(v)]
        return max(matching) if matching else None


def parse_version_spec(spec: str) -> VersionConstraint:
    """Parse an exact version or a (union of) range expression(s).

    Raises:
        InvalidVersionError: spec is empty or a malformed range
    """
    spec = (spec or "").strip()
    if not spec:
        raise InvalidVersionError(spec, "empty version")

    if spec[0] not in "[(":
        return VersionConstraint(spec=spec, recommended=Version(spec))

    if not _RANGE_LIST.fullmatch(spec):
        raise InvalidVersionError(spec, "malformed range")
    ranges = tuple(VersionRange.parse(m.group(0)) for m in _RANGE.finditer(spec))
    return VersionConstraint(spec=spec, recommended=None, ranges=ranges)
