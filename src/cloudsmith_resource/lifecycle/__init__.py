"""
Version lifecycle decisions.

Provides retention (which versions to purge), new version detection for
`check`, and post-upload synchronization monitoring.
"""

from .detection import check_for_new_versions
from .retention import (
    RetentionDecision,
    decide_retention,
    filter_for_deletion,
    last_minor_patches,
    latest_minor,
)
from .sync import (
    ArtifactSyncResult,
    SyncMonitor,
    SyncOutcome,
    UploadReport,
)

__all__ = [
    # Retention
    "RetentionDecision",
    "decide_retention",
    "filter_for_deletion",
    "last_minor_patches",
    "latest_minor",
    # Detection
    "check_for_new_versions",
    # Sync
    "ArtifactSyncResult",
    "SyncMonitor",
    "SyncOutcome",
    "UploadReport",
]
