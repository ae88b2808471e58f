"""Semantic version ordering for NuGet version strings.

Handles ``1.2.3``, ``1.2`` (as ``1.2.0``), four-part legacy versions
(``1.2.3.4``), pre-release labels (``1.0.0-beta.2``) and build metadata
(``1.0.0+sha.abc``, ignored for precedence).
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class ParsedVersion:
    release: Tuple[int, ...]
    prerelease: Optional[Tuple[str, ...]]


def _to_int(part: str) -> int:
    digits = ""
    for char in part:
        if not char.isdigit():
            break
        digits += char
    return int(digits) if digits else 0


def parse_version(version: str) -> ParsedVersion:
    clean = (version or "").strip()
    if clean[:1] in ("v", "V"):
        clean = clean[1:]
    clean, _, _build = clean.partition("+")
    core, sep, prerelease = clean.partition("-")

    numbers = [_to_int(part) for part in core.split(".")] if core else []
    while len(numbers) < 3:
        numbers.append(0)

    labels = tuple(prerelease.split(".")) if sep and prerelease else None
    return ParsedVersion(release=tuple(numbers), prerelease=labels)


def _compare_labels(a: str, b: str) -> int:
    a_numeric = a.isdigit()
    b_numeric = b.isdigit()
    if a_numeric and b_numeric:
        return (int(a) > int(b)) - (int(a) < int(b))
    # Numeric identifiers have lower precedence than alphanumeric ones
    if a_numeric:
        return -1
    if b_numeric:
        return 1
    a_key, b_key = a.casefold(), b.casefold()
    return (a_key > b_key) - (a_key < b_key)


def compare_versions(a: str, b: str) -> int:
    """Return a negative number if ``a < b``, positive if ``a > b``, zero if equal."""
    left = parse_version(a)
    right = parse_version(b)

    width = max(len(left.release), len(right.release))
    left_release = left.release + (0,) * (width - len(left.release))
    right_release = right.release + (0,) * (width - len(right.release))
    if left_release != right_release:
        return 1 if left_release > right_release else -1

    if left.prerelease is None and right.prerelease is None:
        return 0
    # A release outranks any pre-release of the same version
    if left.prerelease is None:
        return 1
    if right.prerelease is None:
        return -1

    for left_label, right_label in zip(left.prerelease, right.prerelease):
        result = _compare_labels(left_label, right_label)
        if result:
            return result

    return (len(left.prerelease) > len(right.prerelease)) - (len(left.prerelease) < len(right.prerelease))


version_sort_key = cmp_to_key(compare_versions)


def sort_versions_descending(versions: Iterable[str]) -> List[str]:
    return sorted(versions, key=version_sort_key, reverse=True)
