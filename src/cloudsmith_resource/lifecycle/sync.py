"""
Synchronization monitoring after upload.

The store publishes uploaded packages asynchronously. Each uploaded
package is polled at a fixed interval until it is synchronized, failed,
or the wait ceiling is reached. Packages of one batch are monitored one
after the other, in upload order.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable

from cloudsmith_resource.core.exceptions import format_exception
from cloudsmith_resource.core.models import ArtifactRef, PackageArtifact, SyncState
from cloudsmith_resource.store.base import PackageStore

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 10
SYNC_TIMEOUT_SECONDS = 5 * 60


class SyncOutcome(Enum):
    """Terminal outcome of monitoring one uploaded package."""

    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    ERROR = "error"
    INTERRUPTED = "interrupted"


@dataclass
class ArtifactSyncResult:
    """What happened to one uploaded package."""

    ref: ArtifactRef
    outcome: SyncOutcome
    filename: str | None = None
    version: str | None = None
    status_reason: str | None = None
    error: str | None = None
    cleaned_up: bool = False
    cleanup_error: str | None = None
    waited_seconds: float = 0

    @property
    def display_name(self) -> str:
        return self.filename or self.ref.filename or self.ref.self_url


@dataclass
class UploadReport:
    """Per-package outcomes of a batch and the version it reports."""

    version: str | None = None
    results: list[ArtifactSyncResult] = field(default_factory=list)

    def outcomes(self) -> dict[str, SyncOutcome]:
        return {result.display_name: result.outcome for result in self.results}


class SyncMonitor:
    """
    Polls uploaded packages until their publication settles.

    Usage:
        monitor = SyncMonitor(store)
        report = monitor.monitor_upload(refs)
    """

    def __init__(
        self,
        store: PackageStore,
        *,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        timeout: float = SYNC_TIMEOUT_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        on_result: Callable[[ArtifactSyncResult], None] | None = None,
    ):
        """
        Initialize the monitor.

        Args:
            store: Store used to re-fetch status and clean up failed packages
            poll_interval: Seconds between two status fetches
            timeout: Ceiling on the accumulated wait per package
            sleep: Sleep function, replaceable in tests
            on_result: Called with each result as soon as it is known
        """
        self._store = store
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._sleep = sleep
        self._on_result = on_result

    @property
    def timeout(self) -> float:
        return self._timeout

    def monitor_upload(self, refs: Iterable[ArtifactRef]) -> UploadReport:
        """
        Monitor every package of a batch, strictly in order.

        The batch version is the version of the first package that reached
        a terminal sync state, whether completed or failed.
        """
        report = UploadReport()
        for ref in refs:
            result = self.monitor(ref)
            if (
                report.version is None
                and result.version is not None
                and result.outcome in (SyncOutcome.COMPLETED, SyncOutcome.FAILED)
            ):
                report.version = result.version
            report.results.append(result)
            if self._on_result is not None:
                self._on_result(result)
        return report

    def monitor(self, ref: ArtifactRef) -> ArtifactSyncResult:
        """
        Poll one package until it settles; never raises for a per-package problem.

        Every fetched snapshot is inspected, and no sleep takes the accumulated
        wait past the timeout. `INTERRUPTED` is reported when a store call
        raises `InterruptedError`, e.g. a blocking read cut short by a signal.
        """
        waited = 0.0
        try:
            artifact = self._store.fetch_status(ref)
            while True:
                if artifact.sync_state is SyncState.COMPLETED:
                    return ArtifactSyncResult(
                        ref=ref,
                        outcome=SyncOutcome.COMPLETED,
                        filename=artifact.filename,
                        version=artifact.version,
                        waited_seconds=waited,
                    )
                if artifact.sync_state is SyncState.FAILED:
                    return self._clean_up_failed(ref, artifact, waited)
                if waited + self._poll_interval > self._timeout:
                    break

                logger.debug("%s not synchronized yet (%.0fs)", artifact.filename, waited)
                self._sleep(self._poll_interval)
                waited += self._poll_interval
                artifact = self._store.fetch_status(ref)
        except InterruptedError as e:
            return ArtifactSyncResult(
                ref=ref,
                outcome=SyncOutcome.INTERRUPTED,
                error=format_exception(e),
                waited_seconds=waited,
            )
        except Exception as e:
            logger.warning("Could not check synchronization of %s: %s", ref.self_url, e)
            return ArtifactSyncResult(
                ref=ref,
                outcome=SyncOutcome.ERROR,
                error=format_exception(e),
                waited_seconds=waited,
            )

        return ArtifactSyncResult(
            ref=ref,
            outcome=SyncOutcome.TIMED_OUT,
            filename=artifact.filename,
            waited_seconds=waited,
        )

    def _clean_up_failed(
        self,
        ref: ArtifactRef,
        artifact: PackageArtifact,
        waited: float,
    ) -> ArtifactSyncResult:
        """Delete a package whose synchronization failed, best effort."""
        result = ArtifactSyncResult(
            ref=ref,
            outcome=SyncOutcome.FAILED,
            filename=artifact.filename,
            version=artifact.version,
            status_reason=artifact.status_reason,
            waited_seconds=waited,
        )
        try:
            self._store.delete(ref)
            result.cleaned_up = True
        except Exception as e:
            logger.warning("Could not delete failed package %s: %s", artifact.filename, e)
            result.cleanup_error = format_exception(e)
        return result
