"""
New version detection for the `check` step.

A version is reported only once every one of its files finished
publication; otherwise a pipeline could fetch a partial release.
"""

from typing import Iterable

from cloudsmith_resource.core.models import PackageArtifact
from cloudsmith_resource.versions.catalog import build_catalog
from cloudsmith_resource.versions.ordering import sort_versions, version_key


def check_for_new_versions(
    current_version: str | None,
    artifacts: Iterable[PackageArtifact],
) -> list[str]:
    """
    Return the ready versions at or after `current_version`, ascending.

    Args:
        current_version: Last version the pipeline has seen, if any. It is
            always part of the result, whatever its current sync state.
        artifacts: Package snapshot from the store

    Returns:
        Distinct version strings sorted by version order
    """
    ready = {
        version
        for version, aggregate in build_catalog(artifacts).items()
        if not aggregate.has_incomplete
    }

    if current_version is None:
        return sort_versions(ready)

    ready.add(current_version)
    floor = version_key(current_version)
    return sort_versions(v for v in ready if version_key(v) >= floor)
