"""Pytest configuration and fixtures."""

import io
import tempfile
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Generator

import pytest
from rich.console import Console

from cloudsmith_resource.core.exceptions import StoreError
from cloudsmith_resource.core.models import ArtifactRef, PackageArtifact, SearchCriteria
from cloudsmith_resource.reporting import Reporter
from cloudsmith_resource.store.base import PackageStore

BASE_DATE = datetime(2021, 4, 1, 12, 0, tzinfo=timezone.utc)


class FakeStore(PackageStore):
    """In-memory package store recording every call."""

    def __init__(self):
        self.packages: list[PackageArtifact] = []
        # self_url -> successive snapshots, the last one repeats; or an exception to raise
        self.statuses: dict[str, list[PackageArtifact] | Exception] = {}
        self.upload_results: dict[str, ArtifactRef | None | Exception] = {}
        self.contents: dict[str, bytes] = {}
        self.delete_errors: set[str] = set()

        self.criteria: list[SearchCriteria] = []
        self.uploaded: list[tuple[Path, dict[str, Any], str]] = []
        self.deleted: list[ArtifactRef] = []
        self.status_calls: dict[str, int] = defaultdict(int)
        self.closed = False

    def find(self, criteria: SearchCriteria) -> list[PackageArtifact]:
        self.criteria.append(criteria)
        return list(self.packages)

    def upload(self, path: Path, metadata: dict[str, Any], package_type: str) -> ArtifactRef | None:
        self.uploaded.append((path, dict(metadata), package_type))
        default = ArtifactRef(self_url=f"https://api.test/packages/{path.name}/", filename=path.name)
        result = self.upload_results.get(path.name, default)
        if isinstance(result, Exception):
            raise result
        return result

    def fetch_status(self, ref: ArtifactRef) -> PackageArtifact:
        self.status_calls[ref.self_url] += 1
        snapshots = self.statuses[ref.self_url]
        if isinstance(snapshots, Exception):
            raise snapshots
        index = min(self.status_calls[ref.self_url], len(snapshots)) - 1
        return snapshots[index]

    def delete(self, ref: ArtifactRef) -> None:
        if ref.self_url in self.delete_errors:
            raise StoreError(f"Error while trying to delete {ref.self_url}", status_code=500)
        self.deleted.append(ref)

    def download(self, ref: ArtifactRef) -> bytes:
        return self.contents[ref.filename]

    def close(self) -> None:
        self.closed = True


def artifact(
    version: str,
    filename: str | None = None,
    *,
    day: int = 0,
    completed: bool = True,
    failed: bool = False,
    self_url: str | None = None,
    cdn_url: str | None = None,
    checksum: str | None = None,
    reason: str | None = None,
) -> PackageArtifact:
    """Build a package snapshot; `day` offsets the upload date from BASE_DATE."""
    filename = filename or f"package-{version}.deb"
    return PackageArtifact(
        filename=filename,
        version=version,
        uploaded_at=BASE_DATE + timedelta(days=day),
        checksum_sha256=checksum,
        self_url=self_url or f"https://api.test/packages/{filename}/",
        cdn_url=cdn_url or f"https://dl.test/{filename}",
        is_sync_completed=completed,
        is_sync_failed=failed,
        status_reason=reason,
    )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_artifact() -> Callable[..., PackageArtifact]:
    """Factory for package snapshots."""
    return artifact


@pytest.fixture
def fake_store() -> FakeStore:
    """Provide an empty in-memory store."""
    return FakeStore()


@pytest.fixture
def reporter() -> Reporter:
    """Reporter writing to a buffer; read it with `reporter.console.file.getvalue()`."""
    return Reporter(Console(file=io.StringIO(), width=200, highlight=False))


@pytest.fixture
def no_sleep() -> list[float]:
    """Record requested sleeps instead of sleeping."""
    return []
