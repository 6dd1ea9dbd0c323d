"""
Cloudsmith Resource Core Module.

Provides foundational models and the exception hierarchy.
"""

__all__ = [
    "ArtifactRef",
    "PackageArtifact",
    "PackageType",
    "ResourceOutput",
    "ResourceVersion",
    "SearchCriteria",
    "SyncState",
    "DELETED_VERSION",
    "parse_distribution",
    # Exceptions
    "CloudsmithResourceError",
    "ConfigurationError",
    "ValidationError",
    "StoreError",
    "RetryExhaustedError",
    "NoVersionError",
    "format_exception",
]

from cloudsmith_resource.core.exceptions import (
    CloudsmithResourceError,
    ConfigurationError,
    NoVersionError,
    RetryExhaustedError,
    StoreError,
    ValidationError,
    format_exception,
)
from cloudsmith_resource.core.models import (
    DELETED_VERSION,
    ArtifactRef,
    PackageArtifact,
    PackageType,
    ResourceOutput,
    ResourceVersion,
    SearchCriteria,
    SyncState,
    parse_distribution,
)
