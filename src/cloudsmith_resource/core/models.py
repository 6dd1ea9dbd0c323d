"""
Core data models for the Cloudsmith resource.

Package snapshots fetched from the store and the version envelopes
exchanged with the CI system use these type-safe schemas.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cloudsmith_resource.core.exceptions import ValidationError

DELETED_VERSION = "<DELETED>"


class SyncState(Enum):
    """Publication status of a package in the remote store."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PackageType(Enum):
    """Package formats the resource uploads and searches for."""

    DEB = "deb"
    RPM = "rpm"
    RAW = "raw"


class PackageArtifact(BaseModel):
    """
    One uploaded file as reported by the store.

    Field names follow the store's JSON payload so a response item
    validates directly into this model. Instances are immutable
    snapshots: re-fetch to observe a newer sync state.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    filename: str = Field(description="File name of the package")
    version: str = Field(description="Package-manager version string")
    uploaded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Upload timestamp",
    )
    checksum_sha256: str | None = Field(default=None, description="SHA256 of the content")
    self_url: str | None = Field(default=None, description="API locator of the package")
    cdn_url: str | None = Field(default=None, description="Download locator of the content")
    is_sync_completed: bool = Field(default=False, description="Store finished publication")
    is_sync_failed: bool = Field(default=False, description="Store failed publication")
    status_reason: str | None = Field(default=None, description="Reason for a failed sync")

    @property
    def sync_state(self) -> SyncState:
        """Collapse the store's sync flags into a single state."""
        if self.is_sync_failed:
            return SyncState.FAILED
        if self.is_sync_completed:
            return SyncState.COMPLETED
        return SyncState.PENDING

    @property
    def is_incomplete(self) -> bool:
        """True unless publication finished successfully."""
        return self.sync_state is not SyncState.COMPLETED

    def ref(self) -> "ArtifactRef":
        """Return a reference usable for status, delete, and download calls."""
        return ArtifactRef(
            self_url=self.self_url or "",
            filename=self.filename,
            cdn_url=self.cdn_url,
        )


class ArtifactRef(BaseModel):
    """Reference to a package in the store, as returned by an upload."""

    model_config = ConfigDict(frozen=True)

    self_url: str = Field(description="API locator of the package")
    filename: str | None = Field(default=None, description="Uploaded file name")
    cdn_url: str | None = Field(default=None, description="Download locator of the content")


class ResourceVersion(BaseModel):
    """Version object exchanged with the CI system."""

    version: str
    distribution: str | None = None
    type: str | None = None


class ResourceOutput(BaseModel):
    """Output envelope written to stdout by `in` and `out`."""

    version: ResourceVersion | None = None
    metadata: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def deleted(cls) -> "ResourceOutput":
        """Sentinel output for a purge run."""
        return cls(version=ResourceVersion(version=DELETED_VERSION))

    def to_json(self) -> str:
        """Serialize, dropping unset optional version fields."""
        return json.dumps(self.model_dump(exclude_none=True), indent=2)


def parse_distribution(distribution: str) -> tuple[str, str]:
    """
    Split a `name/codename` distribution descriptor, e.g. `ubuntu/focal`.

    Raises:
        ValidationError: If the descriptor does not have exactly two non-empty parts
    """
    parts = distribution.split("/")
    if len(parts) != 2 or not all(part.strip() for part in parts):
        raise ValidationError(
            f"Distribution invalid: {distribution}. "
            "Format should be {distribution}/{codename}, e.g. ubuntu/focal.",
            field="distribution",
            value=distribution,
        )
    return parts[0].strip(), parts[1].strip()


class SearchCriteria(BaseModel):
    """Filters for a package search in the store."""

    name: str | None = Field(default=None, description="Filename pattern")
    version_filter: str | None = Field(default=None, description="Version pattern")
    version: str | None = Field(default=None, description="Exact version")
    distribution: str | None = Field(default=None, description="name/codename")
    type: str | None = Field(default=None, description="Package format")

    @field_validator("distribution")
    @classmethod
    def validate_distribution(cls, v):
        """Reject descriptors without a single `/` separator."""
        if v is not None:
            parse_distribution(v)
        return v
