"""
Base class for package stores.

All stores must inherit from PackageStore and implement the search,
upload, status, delete, and download calls. Retrying is the store's
concern: callers treat every call as already guarded.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from cloudsmith_resource.core.models import ArtifactRef, PackageArtifact, SearchCriteria


class PackageStore(ABC):
    """Remote package repository seen through request/response calls."""

    @abstractmethod
    def find(self, criteria: SearchCriteria) -> list[PackageArtifact]:
        """Return every package matching `criteria`, across all result pages."""

    @abstractmethod
    def upload(
        self,
        path: Path,
        metadata: dict[str, Any],
        package_type: str,
    ) -> ArtifactRef | None:
        """
        Upload one file and create the package.

        Returns:
            A reference to the created package, or None when the store
            rejected the file as a duplicate raw package
        """

    @abstractmethod
    def fetch_status(self, ref: ArtifactRef) -> PackageArtifact:
        """Return a fresh snapshot of the referenced package."""

    @abstractmethod
    def delete(self, ref: ArtifactRef) -> None:
        """Delete the referenced package."""

    @abstractmethod
    def download(self, ref: ArtifactRef) -> bytes:
        """Return the content of the referenced package."""

    def close(self) -> None:
        """Release resources held by the store."""

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, *args):
        """Context manager exit."""
        self.close()
