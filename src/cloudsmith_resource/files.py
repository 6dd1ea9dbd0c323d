"""
Local file helpers for uploads and downloads.

Selects files with comma-separated globs, extracts versions from file
names, classifies the package format, and computes checksums.
"""

import fnmatch
import hashlib
import re
from pathlib import Path
from typing import Callable, Iterable

from cloudsmith_resource.core.exceptions import ValidationError
from cloudsmith_resource.core.models import PackageType


def split_globs(globs: str | None) -> list[str]:
    """Split a comma-separated glob list; blank means everything."""
    if globs is None or not globs.strip():
        return ["*"]
    return [g.strip() for g in globs.split(",") if g.strip()]


def glob_matcher(globs: str | None) -> Callable[[str], bool]:
    """Return a predicate telling whether a file name matches any of the globs."""
    patterns = split_globs(globs)

    def matches(filename: str) -> bool:
        name = Path(filename).name
        return any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns)

    return matches


def select_files_for_upload(directory: Path, globs: str | None) -> list[Path]:
    """
    List the files of `directory` matching the globs.

    Returns:
        Absolute paths, sorted, without duplicates

    Raises:
        ValidationError: If `directory` does not exist or is not a directory
    """
    if not directory.is_dir():
        raise ValidationError(
            f"Local path is not a directory: {directory}",
            field="local_path",
            value=str(directory),
        )
    matches = glob_matcher(globs)
    selected = {
        path.resolve()
        for path in directory.iterdir()
        if path.is_file() and matches(path.name)
    }
    return sorted(selected)


def extract_version(version_pattern: str, filenames: Iterable[str]) -> str | None:
    """
    Extract a version from file names with a one-group regular expression.

    The first file name (in sorted order) that fully matches wins.

    Args:
        version_pattern: Regex with exactly one capturing group,
            e.g. `rabbitmq-server-(\\d.*)\\.tar\\.xz`
        filenames: Candidate file names

    Returns:
        The captured version, or None if no file name matches

    Raises:
        ValidationError: If the pattern is invalid or does not have exactly one group
    """
    try:
        pattern = re.compile(version_pattern)
    except re.error as e:
        raise ValidationError(
            f"Invalid version pattern: {e}", field="version", value=version_pattern
        ) from e
    if pattern.groups != 1:
        raise ValidationError(
            "Version pattern must have exactly one capturing group",
            field="version",
            value=version_pattern,
        )

    for filename in sorted(filenames):
        match = pattern.fullmatch(filename)
        if match:
            return match.group(1)
    return None


def file_extension(filename: str) -> str:
    """Return the text after the last dot, or the whole name if there is none."""
    return filename[filename.rfind(".") + 1 :]


def determine_packages_type(filenames: Iterable[str]) -> str:
    """
    Classify a batch of files as `deb`, `rpm`, or `raw`.

    Only a batch sharing a single `deb` or `rpm` extension gets that type.
    """
    extensions = {file_extension(name.lower()) for name in filenames}
    if len(extensions) == 1:
        (extension,) = extensions
        if extension in (PackageType.DEB.value, PackageType.RPM.value):
            return extension
    return PackageType.RAW.value


def sha256_hex(content: bytes) -> str:
    """Return the hex SHA256 digest of `content`."""
    return hashlib.sha256(content).hexdigest()
