"""
Version ordering for package-manager version strings.

Versions are compared token by token after the epoch prefix is removed:
numeric runs by magnitude, other runs lexically. Plain string comparison
would put "22.3.4.9" after "22.3.4.16".
"""

import re
from dataclasses import dataclass
from typing import Iterable

EPOCH_PATTERN = re.compile(r"^\d+:")
TOKEN_PATTERN = re.compile(r"\d+|\D+")

# Text sorts before numbers when both appear at the same position.
_TEXT = 0
_NUMBER = 1


@dataclass(frozen=True, order=True)
class VersionKey:
    """
    Comparable form of a version string.

    Each token is a `(kind, value)` pair so numbers and text never get
    compared with each other directly. Tuple ordering makes a missing
    trailing token sort before any present one ("22.3" < "22.3.4").
    """

    tokens: tuple[tuple[int, int | str], ...]


def strip_epoch(version: str) -> str:
    """Remove a leading `<digits>:` epoch, e.g. `1:22.3.4-1` -> `22.3.4-1`."""
    return EPOCH_PATTERN.sub("", version, count=1)


def version_key(version: str) -> VersionKey:
    """Build the comparison key for a version string. Never fails."""
    tokens: list[tuple[int, int | str]] = []
    for run in TOKEN_PATTERN.findall(strip_epoch(version)):
        if run.isdigit():
            tokens.append((_NUMBER, int(run)))
        else:
            tokens.append((_TEXT, run))
    return VersionKey(tuple(tokens))


def version_sort_key(version: str) -> tuple[VersionKey, str]:
    """
    Total sort key: version order first, raw string on ties.

    "1.01" and "1.1" are equal as versions; the raw string keeps
    their relative position stable regardless of input order.
    """
    return version_key(version), version


def compare_versions(a: str, b: str) -> int:
    """
    Compare two version strings.

    Returns:
        A negative number if a < b, zero if equal, positive if a > b
    """
    key_a, key_b = version_key(a), version_key(b)
    if key_a < key_b:
        return -1
    if key_a > key_b:
        return 1
    return 0


def sort_versions(versions: Iterable[str]) -> list[str]:
    """Sort version strings ascending."""
    return sorted(versions, key=version_sort_key)


def extract_minor(version: str) -> str:
    """
    Return the minor branch of a version.

    Examples:
        `1:22.3.4.3-1` -> `22.3`
        `22.3-1.el8` -> `22.3`
        `7` -> `7`
    """
    curated = strip_epoch(version)
    if "-" in curated:
        curated = curated[: curated.rindex("-")]
    parts = curated.split(".")
    if len(parts) <= 1:
        return curated
    return f"{parts[0]}.{parts[1]}"
