"""
Version catalog - groups package artifacts into per-version aggregates.

A release usually spans several files (one per architecture or
distribution); retention and detection decide per version, not per file.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from cloudsmith_resource.core.models import PackageArtifact
from cloudsmith_resource.versions.ordering import VersionKey, version_key


@dataclass
class VersionAggregate:
    """All artifacts sharing one version string."""

    version: str
    artifacts: list[PackageArtifact] = field(default_factory=list)
    last_upload: datetime | None = None
    has_incomplete: bool = False

    def consider(self, artifact: PackageArtifact) -> None:
        """Fold one artifact into the aggregate."""
        self.artifacts.append(artifact)
        if self.last_upload is None or artifact.uploaded_at > self.last_upload:
            self.last_upload = artifact.uploaded_at
        self.has_incomplete = self.has_incomplete or artifact.is_incomplete

    @property
    def key(self) -> VersionKey:
        return version_key(self.version)


def build_catalog(artifacts: Iterable[PackageArtifact]) -> dict[str, VersionAggregate]:
    """
    Build one aggregate per version string.

    The result preserves first-seen order of versions; the aggregates
    themselves do not depend on the order of `artifacts`.
    """
    catalog: dict[str, VersionAggregate] = {}
    for artifact in artifacts:
        aggregate = catalog.get(artifact.version)
        if aggregate is None:
            aggregate = VersionAggregate(version=artifact.version)
            catalog[artifact.version] = aggregate
        aggregate.consider(artifact)
    return catalog
