"""
Resource flows: check, in, and out (upload or delete).

Each run starts from a fresh package list fetched from the store, hands
it to the lifecycle engine, reports the decisions, and returns the value
the CI system expects on stdout.
"""

import logging
from pathlib import Path

from cloudsmith_resource.config import ResourceInput
from cloudsmith_resource.core.exceptions import (
    CloudsmithResourceError,
    NoVersionError,
    format_exception,
)
from cloudsmith_resource.core.models import (
    DELETED_VERSION,
    PackageArtifact,
    ResourceOutput,
    ResourceVersion,
)
from cloudsmith_resource.files import (
    determine_packages_type,
    extract_version,
    glob_matcher,
    select_files_for_upload,
    sha256_hex,
)
from cloudsmith_resource.lifecycle.detection import check_for_new_versions
from cloudsmith_resource.lifecycle.retention import decide_retention
from cloudsmith_resource.lifecycle.sync import SyncMonitor, UploadReport
from cloudsmith_resource.reporting import Reporter
from cloudsmith_resource.store.base import PackageStore
from cloudsmith_resource.store.cloudsmith import CloudsmithStore, StoreConfig
from cloudsmith_resource.versions.catalog import build_catalog

logger = logging.getLogger(__name__)


class CloudsmithResource:
    """
    Entry point for one resource invocation.

    Usage:
        resource = CloudsmithResource(ResourceInput.from_json(stdin))
        print(resource.get(Path("/tmp/build/get")).to_json())
    """

    def __init__(
        self,
        resource_input: ResourceInput,
        store: PackageStore | None = None,
        reporter: Reporter | None = None,
        sync_monitor: SyncMonitor | None = None,
    ):
        """
        Initialize the resource.

        Args:
            resource_input: Validated source, params, and version
            store: Package store (Cloudsmith configured from the source by default)
            reporter: Console presenter
            sync_monitor: Monitor for uploads (built on `store` by default)
        """
        self._input = resource_input
        self._store = store or CloudsmithStore(
            StoreConfig.from_env(
                organization=resource_input.source.organization,
                repository=resource_input.source.repository,
                api_key=resource_input.source.api_key,
            )
        )
        self._reporter = reporter or Reporter()
        self._monitor = sync_monitor or SyncMonitor(
            self._store, on_result=self._reporter.sync_result
        )

    @property
    def store(self) -> PackageStore:
        return self._store

    def close(self) -> None:
        self._store.close()

    def check(self) -> list[dict[str, str]]:
        """Return the versions Concourse should know about, oldest first."""
        current = self._input.version.version if self._input.version else None
        packages = self._store.find(self._input.search_criteria(include_version=False))
        versions = check_for_new_versions(current, packages)
        logger.debug("check found %d version(s) from %s", len(versions), current)
        return [{"version": version} for version in versions]

    def get(self, directory: Path) -> ResourceOutput:
        """Download the packages of the input version into `directory`."""
        version = self._input.version
        if version is not None and version.version == DELETED_VERSION:
            self._reporter.info(
                f"Getting special version {DELETED_VERSION} is a no-op; returning it as is"
            )
            return ResourceOutput.deleted()

        packages = self._store.find(self._input.search_criteria())
        matches = glob_matcher(self._input.params.globs)
        selected = [p for p in packages if matches(p.filename)]
        ignored = [p for p in packages if not matches(p.filename)]

        if selected:
            self._reporter.section("Downloading files...")
        directory.mkdir(parents=True, exist_ok=True)
        for package in selected:
            self._download(package, directory)

        if ignored:
            self._reporter.blank()
            self._reporter.section("Ignored:")
            for package in ignored:
                self._reporter.item(package.filename)

        return ResourceOutput(
            version=ResourceVersion(**version.model_dump()) if version else None
        )

    def _download(self, package: PackageArtifact, directory: Path) -> None:
        try:
            content = self._store.download(package.ref())
            (directory / Path(package.filename).name).write_bytes(content)
        except (CloudsmithResourceError, OSError) as e:
            self._reporter.item(f"{package.filename}: {format_exception(e)}", "red")
            return

        if package.filename.lower().endswith(".asc"):
            message = "OK? (checksum not verified for ASC files)"
        elif sha256_hex(content) == package.checksum_sha256:
            message = "OK"
        else:
            message = "OK? (checksum verification failed)"
        self._reporter.item(f"{package.filename}: {message}")

    def put(self, directory: Path) -> ResourceOutput:
        """Run `out`: purge old versions when `params.delete` is set, upload otherwise."""
        if self._input.params.delete:
            return self.delete()
        return self.upload(directory)

    def upload(self, directory: Path) -> ResourceOutput:
        """
        Upload the selected files and wait for their synchronization.

        Raises:
            NoVersionError: If neither the store nor the file names yield a version
        """
        params = self._input.params
        source = self._input.source
        if params.local_path:
            directory = directory / params.local_path

        files = select_files_for_upload(directory, params.globs)
        self._reporter.section("Local path:")
        self._reporter.item(str(directory))
        self._reporter.blank()
        self._reporter.section("Files:")
        for path in files:
            self._reporter.item(path.name)
        self._reporter.blank()

        filenames = [path.name for path in files]
        metadata: dict[str, object] = {}
        extracted_version = None
        if params.version:
            extracted_version = extract_version(params.version, filenames)
            if extracted_version:
                metadata["version"] = extracted_version
                self._reporter.field("Extracted version", extracted_version)
                self._reporter.blank()
        if source.distribution:
            metadata["distribution"] = source.distribution
        if params.tags:
            metadata["tags"] = params.tags
        if params.republish:
            metadata["republish"] = True

        package_type = determine_packages_type(filenames)

        refs = []
        for path in files:
            self._reporter.field("Upload file", path.name)
            try:
                ref = self._store.upload(path, metadata, package_type)
            except CloudsmithResourceError as e:
                self._reporter.item(f"Error: {format_exception(e)}", "red")
                continue
            if ref is None:
                self._reporter.item("Upload failed, duplicated raw package?")
            else:
                self._reporter.item(ref.self_url)
                refs.append(ref)
        self._reporter.blank()

        report = UploadReport()
        if refs:
            self._reporter.section("Checking synchronization of packages...")
            report = self._monitor.monitor_upload(refs)

        version = report.version
        if version is None and not refs and extracted_version:
            # re-submitted raw packages fail right away when republish is off,
            # so the extracted version is the only one available
            version = extracted_version

        if version is None:
            raise NoVersionError("No version found")

        return ResourceOutput(
            version=ResourceVersion(
                version=version,
                distribution=source.distribution,
                type=package_type,
            )
        )

    def delete(self) -> ResourceOutput:
        """Delete the versions the retention policy does not keep."""
        params = self._input.params
        packages = self._store.find(self._input.search_criteria())
        catalog = build_catalog(packages)
        decision = decide_retention(
            catalog,
            keep_last_n=params.keep_last_n,
            order_by_version=self._input.source.order_by_version,
            keep_last_minor_patches=params.keep_last_minor_patches,
        )
        self._reporter.retention(catalog, decision)

        self._reporter.section("Packages:")
        selected = 0
        deleted = 0
        for package in packages:
            if not decision.should_delete(package.version):
                suffix = " (latest minor patch)" if decision.is_exception(package.version) else ""
                self._reporter.item(f"keeping {package.filename}{suffix}")
                continue

            selected += 1
            if not params.do_delete:
                self._reporter.item(f"deleting {package.filename} (skipped)", "yellow")
                continue
            try:
                self._store.delete(package.ref())
            except CloudsmithResourceError as e:
                self._reporter.error(
                    f"Error while trying to delete {package.self_url}: {format_exception(e)}"
                )
                continue
            deleted += 1
            self._reporter.item(f"deleting {package.filename}", "red")

        self._reporter.blank()
        if params.do_delete:
            self._reporter.section(f"Deleted {deleted} file(s)")
        else:
            self._reporter.section(
                f"{selected} file(s) to delete, set do_delete to delete them"
            )
        return ResourceOutput.deleted()
