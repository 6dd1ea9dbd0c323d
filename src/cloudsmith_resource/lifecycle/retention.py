"""
Retention decisions for published versions.

Decides which versions to purge under a keep-last-N rule, ordered either
by version or by upload date, and which purge candidates to spare because
they are the last patch of an older minor line.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Collection, Iterable, Mapping

from cloudsmith_resource.versions.catalog import VersionAggregate
from cloudsmith_resource.versions.ordering import extract_minor, version_sort_key

logger = logging.getLogger(__name__)

MINOR_PATCHES_WITHOUT_VERSION_ORDER = (
    "keep_last_minor_patches should only be used with order_by: version"
)

_NO_UPLOAD = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class RetentionDecision:
    """
    Outcome of a retention run.

    `candidates` is what the keep-last-N rule selected; `exceptions` are
    candidates spared as last minor patches; `delete` is what remains.
    `keep` and `delete` partition every known version.
    """

    keep: list[str] = field(default_factory=list)
    delete: list[str] = field(default_factory=list)
    candidates: list[str] = field(default_factory=list)
    exceptions: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def should_delete(self, version: str) -> bool:
        return version in self.delete

    def is_exception(self, version: str) -> bool:
        return version in self.exceptions


def _chronological_key(aggregate: VersionAggregate) -> tuple:
    return (aggregate.last_upload or _NO_UPLOAD, *version_sort_key(aggregate.version))


def _version_key(aggregate: VersionAggregate) -> tuple:
    return version_sort_key(aggregate.version)


def filter_for_deletion(
    aggregates: Collection[VersionAggregate],
    keep_last_n: int,
    order_by_version: bool,
) -> list[str]:
    """
    Select the versions to delete so that `keep_last_n` remain.

    Args:
        aggregates: One aggregate per known version
        keep_last_n: Number of most recent versions to keep
        order_by_version: Rank by version order when True, by last upload otherwise

    Returns:
        Versions to delete, oldest first
    """
    if not aggregates:
        return []
    if keep_last_n <= 0:
        return [aggregate.version for aggregate in sorted(aggregates, key=_version_key)]
    if keep_last_n >= len(aggregates):
        return []

    sort_key = _version_key if order_by_version else _chronological_key
    ranked = sorted(aggregates, key=sort_key)
    return [aggregate.version for aggregate in ranked[: len(ranked) - keep_last_n]]


def latest_minor(versions: Iterable[str]) -> str | None:
    """Return the minor branch of the highest version, or None if there are none."""
    versions = list(versions)
    if not versions:
        return None
    return extract_minor(max(versions, key=version_sort_key))


def last_minor_patches(current_latest_minor: str | None, candidates: Iterable[str]) -> list[str]:
    """
    Pick the newest candidate of every superseded minor branch.

    The branch equal to `current_latest_minor` is left alone: its patches
    are governed by the keep-last-N rule only.
    """
    branches: dict[str, list[str]] = defaultdict(list)
    for version in candidates:
        minor = extract_minor(version)
        if minor != current_latest_minor:
            branches[minor].append(version)

    patches = [max(members, key=version_sort_key) for members in branches.values()]
    return sorted(patches, key=version_sort_key)


def decide_retention(
    catalog: Mapping[str, VersionAggregate],
    keep_last_n: int,
    order_by_version: bool,
    keep_last_minor_patches: bool = False,
) -> RetentionDecision:
    """
    Decide which versions to keep and which to delete.

    Combining `keep_last_minor_patches` with date ordering still runs the
    minor-patch exceptions, but the decision carries a warning.
    """
    decision = RetentionDecision()
    decision.candidates = filter_for_deletion(
        list(catalog.values()), keep_last_n, order_by_version
    )

    if keep_last_minor_patches:
        decision.exceptions = last_minor_patches(
            latest_minor(catalog.keys()), decision.candidates
        )
        if not order_by_version:
            logger.warning(MINOR_PATCHES_WITHOUT_VERSION_ORDER)
            decision.warnings.append(MINOR_PATCHES_WITHOUT_VERSION_ORDER)

    spared = set(decision.exceptions)
    decision.delete = [v for v in decision.candidates if v not in spared]
    doomed = set(decision.delete)
    decision.keep = [v for v in catalog if v not in doomed]
    return decision
