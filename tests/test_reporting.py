"""Tests for console reporting."""

from datetime import datetime, timezone

from cloudsmith_resource.core.models import ArtifactRef
from cloudsmith_resource.lifecycle.retention import decide_retention
from cloudsmith_resource.lifecycle.sync import ArtifactSyncResult, SyncOutcome
from cloudsmith_resource.reporting import format_upload_date
from cloudsmith_resource.versions.catalog import build_catalog


def text(reporter) -> str:
    return reporter.console.file.getvalue()


class TestFormatUploadDate:
    """Tests for format_upload_date."""

    def test_utc(self) -> None:
        """UTC dates end with Z."""
        moment = datetime(2021, 3, 19, 12, 58, 3, tzinfo=timezone.utc)
        assert format_upload_date(moment) == "2021-03-19T12:58Z"

    def test_missing(self) -> None:
        """Unknown dates render as a dash."""
        assert format_upload_date(None) == "-"


class TestReporter:
    """Tests for Reporter."""

    def test_markup_is_escaped(self, reporter) -> None:
        """Brackets in file names are printed literally."""
        reporter.item("package[1].deb")
        assert "package[1].deb" in text(reporter)

    def test_retention(self, reporter, make_artifact) -> None:
        """Detected, deleted, and kept versions are listed with their dates."""
        catalog = build_catalog(
            [make_artifact("1.0", "a.deb"), make_artifact("2.0", "b.deb", day=1)]
        )
        decision = decide_retention(
            catalog, keep_last_n=1, order_by_version=False, keep_last_minor_patches=True
        )

        reporter.retention(catalog, decision)

        output = text(reporter)
        assert "Version(s) detected: 1.0 [2021-04-01T12:00Z], 2.0 [2021-04-02T12:00Z]" in output
        assert "Version(s) to delete: 1.0 [2021-04-01T12:00Z]" in output
        assert "Deletion exception(s) (last minor patches): 1.0 [2021-04-01T12:00Z]" in output
        assert "Version(s) to keep: 1.0 [2021-04-01T12:00Z], 2.0 [2021-04-02T12:00Z]" in output
        assert "Warning: keep_last_minor_patches should only be used with order_by: version" in output

    def test_sync_results(self, reporter) -> None:
        """Each outcome has its own line."""
        ref = ArtifactRef(self_url="https://api/1/", filename="a.deb")

        reporter.sync_result(ArtifactSyncResult(ref=ref, outcome=SyncOutcome.COMPLETED))
        reporter.sync_result(
            ArtifactSyncResult(
                ref=ref,
                outcome=SyncOutcome.FAILED,
                status_reason="Bad",
                cleanup_error="HTTP 500",
            )
        )
        reporter.sync_result(
            ArtifactSyncResult(ref=ref, outcome=SyncOutcome.TIMED_OUT, waited_seconds=310)
        )
        reporter.sync_result(
            ArtifactSyncResult(ref=ref, outcome=SyncOutcome.ERROR, error="StoreError: boom")
        )

        output = text(reporter)
        assert "a.deb: OK" in output
        assert "a.deb: Error (Bad)" in output
        assert "Deleting... Error: HTTP 500" in output
        assert "a.deb: timed out after 310 seconds" in output
        assert "a.deb: StoreError: boom" in output
