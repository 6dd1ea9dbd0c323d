"""
Package store access.

Provides the abstract PackageStore, the Cloudsmith implementation, and
the retry policy guarding every store call.
"""

from .base import PackageStore
from .cloudsmith import CloudsmithStore, StoreConfig, build_query
from .retry import RetryPolicy

__all__ = [
    "PackageStore",
    "CloudsmithStore",
    "StoreConfig",
    "build_query",
    "RetryPolicy",
]
