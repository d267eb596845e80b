"""Helpers for parsing and comparing release versions.

Version strings reach this module from release tags (``v1.2.3``), from the
marker file written next to the installed binary, or as the ``"unknown"``
sentinel when no marker exists.  Only the leading ``MAJOR.MINOR.PATCH`` triple
is significant; anything after it (pre-release labels, build metadata) is
ignored.  Inputs without such a prefix cannot be ordered and compare as
:attr:`Ordering.INDETERMINATE`, which callers must treat as "an update may be
available" rather than as equality.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import NamedTuple

from packaging.version import Version


__all__ = [
    "Ordering",
    "SemanticVersion",
    "compare_versions",
    "is_update_available",
    "normalize_version",
    "parse_version",
]

_SEMVER_PREFIX = re.compile(r"^(\d+)\.(\d+)\.(\d+)")


class SemanticVersion(NamedTuple):
    major: int
    minor: int
    patch: int

    def as_version(self) -> Version:
        return Version(f"{self.major}.{self.minor}.{self.patch}")

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


class Ordering(str, Enum):
    """Result of comparing a current version against a candidate."""

    LESS = "less"
    EQUAL = "equal"
    GREATER = "greater"
    INDETERMINATE = "indeterminate"


def normalize_version(version: object) -> str:
    """Trim ``version`` and strip a single leading ``v`` or ``V``."""

    if version is None:
        return ""
    text = str(version).strip()
    if text[:1] in {"v", "V"}:
        text = text[1:]
    return text


def parse_version(version: object) -> SemanticVersion | None:
    """Return the leading semantic version triple, or ``None`` when absent."""

    match = _SEMVER_PREFIX.match(normalize_version(version))
    if match is None:
        return None
    major, minor, patch = (int(part) for part in match.groups())
    return SemanticVersion(major, minor, patch)


def compare_versions(current: object, candidate: object) -> Ordering:
    """Compare ``current`` against ``candidate``.

    ``LESS`` means ``current`` is older than ``candidate``.
    """

    current_parsed = parse_version(current)
    candidate_parsed = parse_version(candidate)
    if current_parsed is None or candidate_parsed is None:
        return Ordering.INDETERMINATE

    left = current_parsed.as_version()
    right = candidate_parsed.as_version()
    if left < right:
        return Ordering.LESS
    if left > right:
        return Ordering.GREATER
    return Ordering.EQUAL


def is_update_available(current: object, latest: object) -> bool:
    """Return ``True`` unless ``current`` is known to equal ``latest``.

    A locally newer build also reports ``True`` so the published release can be
    reinstalled over it.
    """

    return compare_versions(current, latest) is not Ordering.EQUAL
