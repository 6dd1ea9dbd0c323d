"""
Version ordering and grouping.

Provides the numeric-aware version comparator and the catalog that
folds package artifacts into per-version aggregates.
"""

from .catalog import VersionAggregate, build_catalog
from .ordering import (
    VersionKey,
    compare_versions,
    extract_minor,
    sort_versions,
    strip_epoch,
    version_key,
    version_sort_key,
)

__all__ = [
    # Ordering
    "VersionKey",
    "compare_versions",
    "extract_minor",
    "sort_versions",
    "strip_epoch",
    "version_key",
    "version_sort_key",
    # Catalog
    "VersionAggregate",
    "build_catalog",
]
