"""Tests for upload synchronization monitoring."""

import pytest

from cloudsmith_resource.core.exceptions import StoreError
from cloudsmith_resource.core.models import ArtifactRef
from cloudsmith_resource.lifecycle.sync import (
    POLL_INTERVAL_SECONDS,
    SYNC_TIMEOUT_SECONDS,
    ArtifactSyncResult,
    SyncMonitor,
    SyncOutcome,
    UploadReport,
)


def ref(name: str) -> ArtifactRef:
    return ArtifactRef(self_url=f"https://api.test/packages/{name}/", filename=name)


@pytest.fixture
def monitor(fake_store, no_sleep) -> SyncMonitor:
    """Monitor polling every 10s for up to 30s, without sleeping."""
    return SyncMonitor(fake_store, poll_interval=10, timeout=30, sleep=no_sleep.append)


class TestDefaults:
    """Tests for the default polling settings."""

    def test_defaults(self, fake_store) -> None:
        """Polls every 10 seconds for up to 5 minutes."""
        assert POLL_INTERVAL_SECONDS == 10
        assert SYNC_TIMEOUT_SECONDS == 300
        assert SyncMonitor(fake_store).timeout == 300


class TestMonitor:
    """Tests for SyncMonitor.monitor."""

    def test_completed_immediately(self, fake_store, monitor, make_artifact, no_sleep) -> None:
        """A package already synchronized needs no wait."""
        fake_store.statuses[ref("a.deb").self_url] = [make_artifact("1.0", "a.deb")]

        result = monitor.monitor(ref("a.deb"))

        assert result.outcome is SyncOutcome.COMPLETED
        assert result.version == "1.0"
        assert result.waited_seconds == 0
        assert no_sleep == []

    def test_completed_after_polling(self, fake_store, monitor, make_artifact, no_sleep) -> None:
        """Pending snapshots are re-fetched at the poll interval."""
        fake_store.statuses[ref("a.deb").self_url] = [
            make_artifact("1.0", "a.deb", completed=False),
            make_artifact("1.0", "a.deb", completed=False),
            make_artifact("1.0", "a.deb"),
        ]

        result = monitor.monitor(ref("a.deb"))

        assert result.outcome is SyncOutcome.COMPLETED
        assert result.waited_seconds == 20
        assert no_sleep == [10, 10]
        assert fake_store.status_calls[ref("a.deb").self_url] == 3

    def test_failed_is_deleted(self, fake_store, monitor, make_artifact) -> None:
        """A failed package is cleaned up and reported with its reason."""
        fake_store.statuses[ref("a.deb").self_url] = [
            make_artifact("1.0", "a.deb", failed=True, reason="Invalid package")
        ]

        result = monitor.monitor(ref("a.deb"))

        assert result.outcome is SyncOutcome.FAILED
        assert result.version == "1.0"
        assert result.status_reason == "Invalid package"
        assert result.cleaned_up
        assert fake_store.deleted == [ref("a.deb")]

    def test_failed_cleanup_error_is_reported(self, fake_store, monitor, make_artifact) -> None:
        """A failing cleanup is recorded, not raised."""
        fake_store.statuses[ref("a.deb").self_url] = [make_artifact("1.0", "a.deb", failed=True)]
        fake_store.delete_errors.add(ref("a.deb").self_url)

        result = monitor.monitor(ref("a.deb"))

        assert result.outcome is SyncOutcome.FAILED
        assert not result.cleaned_up
        assert "Error while trying to delete" in result.cleanup_error

    def test_timed_out(self, fake_store, monitor, make_artifact, no_sleep) -> None:
        """A package that never settles times out without raising."""
        fake_store.statuses[ref("a.deb").self_url] = [
            make_artifact("1.0", "a.deb", completed=False)
        ]

        result = monitor.monitor(ref("a.deb"))

        assert result.outcome is SyncOutcome.TIMED_OUT
        assert result.waited_seconds == 30
        assert no_sleep == [10, 10, 10]
        assert fake_store.status_calls[ref("a.deb").self_url] == 4
        assert result.version is None

    def test_completed_on_last_allowed_fetch(
        self, fake_store, monitor, make_artifact, no_sleep
    ) -> None:
        """The snapshot fetched when the wait reaches the timeout still counts."""
        fake_store.statuses[ref("a.deb").self_url] = [
            make_artifact("1.0", "a.deb", completed=False),
            make_artifact("1.0", "a.deb", completed=False),
            make_artifact("1.0", "a.deb", completed=False),
            make_artifact("1.0", "a.deb"),
        ]

        result = monitor.monitor(ref("a.deb"))

        assert result.outcome is SyncOutcome.COMPLETED
        assert result.version == "1.0"
        assert result.waited_seconds == 30
        assert no_sleep == [10, 10, 10]

    def test_never_sleeps_past_timeout(self, fake_store, make_artifact, no_sleep) -> None:
        """A timeout that is not a multiple of the interval caps the sleeps."""
        monitor = SyncMonitor(fake_store, poll_interval=10, timeout=25, sleep=no_sleep.append)
        fake_store.statuses[ref("a.deb").self_url] = [
            make_artifact("1.0", "a.deb", completed=False)
        ]

        result = monitor.monitor(ref("a.deb"))

        assert result.outcome is SyncOutcome.TIMED_OUT
        assert result.waited_seconds == 20
        assert sum(no_sleep) <= 25

    def test_status_error(self, fake_store, monitor) -> None:
        """A store failure ends monitoring of that package with an error."""
        fake_store.statuses[ref("a.deb").self_url] = StoreError("boom", status_code=500)

        result = monitor.monitor(ref("a.deb"))

        assert result.outcome is SyncOutcome.ERROR
        assert "boom" in result.error

    def test_interrupted(self, fake_store, monitor) -> None:
        """An interrupted wait has its own outcome."""
        fake_store.statuses[ref("a.deb").self_url] = InterruptedError("stop")

        result = monitor.monitor(ref("a.deb"))

        assert result.outcome is SyncOutcome.INTERRUPTED


class TestMonitorUpload:
    """Tests for SyncMonitor.monitor_upload."""

    def test_first_terminal_version_wins(self, fake_store, monitor, make_artifact) -> None:
        """The batch reports the version of the first settled package."""
        fake_store.statuses[ref("a.deb").self_url] = [make_artifact("1.0", "a.deb")]
        fake_store.statuses[ref("b.deb").self_url] = [make_artifact("2.0", "b.deb")]

        report = monitor.monitor_upload([ref("a.deb"), ref("b.deb")])

        assert report.version == "1.0"
        assert report.outcomes() == {
            "a.deb": SyncOutcome.COMPLETED,
            "b.deb": SyncOutcome.COMPLETED,
        }

    def test_failed_version_counts(self, fake_store, monitor, make_artifact) -> None:
        """A failed package still provides the batch version."""
        fake_store.statuses[ref("a.deb").self_url] = [
            make_artifact("1.0", "a.deb", failed=True)
        ]
        fake_store.statuses[ref("b.deb").self_url] = [make_artifact("2.0", "b.deb")]

        report = monitor.monitor_upload([ref("a.deb"), ref("b.deb")])

        assert report.version == "1.0"

    def test_timeout_does_not_stop_batch(self, fake_store, monitor, make_artifact) -> None:
        """Later packages are monitored after an earlier one times out."""
        fake_store.statuses[ref("a.deb").self_url] = [
            make_artifact("1.0", "a.deb", completed=False)
        ]
        fake_store.statuses[ref("b.deb").self_url] = StoreError("unreachable")
        fake_store.statuses[ref("c.deb").self_url] = [make_artifact("1.0", "c.deb")]

        report = monitor.monitor_upload([ref("a.deb"), ref("b.deb"), ref("c.deb")])

        assert [r.outcome for r in report.results] == [
            SyncOutcome.TIMED_OUT,
            SyncOutcome.ERROR,
            SyncOutcome.COMPLETED,
        ]
        assert report.version == "1.0"

    def test_results_in_upload_order(self, fake_store, no_sleep, make_artifact) -> None:
        """Callbacks fire once per package, in order."""
        seen: list[ArtifactSyncResult] = []
        monitor = SyncMonitor(
            fake_store, poll_interval=1, timeout=5, sleep=no_sleep.append, on_result=seen.append
        )
        names = ["c.deb", "a.deb", "b.deb"]
        for name in names:
            fake_store.statuses[ref(name).self_url] = [make_artifact("1.0", name)]

        monitor.monitor_upload([ref(name) for name in names])

        assert [result.display_name for result in seen] == names

    def test_empty_batch(self, monitor) -> None:
        """No packages, no version."""
        report = monitor.monitor_upload([])
        assert report == UploadReport()
        assert report.version is None
