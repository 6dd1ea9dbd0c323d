"""
Cloudsmith store - PackageStore implementation over the Cloudsmith REST API.

Search results are paginated through the `Link` response header. Uploads
are two-step: the file goes to the upload endpoint, then the returned
identifier is posted to the package creation endpoint of the format.
"""

import logging
import os
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from cloudsmith_resource.core.exceptions import StoreError
from cloudsmith_resource.core.models import (
    ArtifactRef,
    PackageArtifact,
    PackageType,
    SearchCriteria,
    parse_distribution,
)
from cloudsmith_resource.files import sha256_hex
from cloudsmith_resource.store.base import PackageStore
from cloudsmith_resource.store.retry import RetryPolicy

logger = logging.getLogger(__name__)


class StoreConfig(BaseModel):
    """Connection settings for the Cloudsmith API."""

    organization: str
    repository: str
    api_key: str = ""
    api_url: str = "https://api.cloudsmith.io"
    upload_url: str = "https://upload.cloudsmith.io"
    create_url: str = "https://api-prd.cloudsmith.io"
    timeout_seconds: int = 60

    @classmethod
    def from_env(cls, organization: str, repository: str, api_key: str) -> "StoreConfig":
        """
        Build a config for one repository, with endpoints overridable from the environment.

        Environment variables:
        - CLOUDSMITH_API_URL: Search and package API base URL
        - CLOUDSMITH_UPLOAD_URL: File upload base URL
        - CLOUDSMITH_CREATE_URL: Package creation base URL
        - CLOUDSMITH_TIMEOUT_SECONDS: HTTP timeout
        """
        defaults = cls.model_fields
        return cls(
            organization=organization,
            repository=repository,
            api_key=api_key,
            api_url=os.getenv("CLOUDSMITH_API_URL", defaults["api_url"].default),
            upload_url=os.getenv("CLOUDSMITH_UPLOAD_URL", defaults["upload_url"].default),
            create_url=os.getenv("CLOUDSMITH_CREATE_URL", defaults["create_url"].default),
            timeout_seconds=int(
                os.getenv("CLOUDSMITH_TIMEOUT_SECONDS", defaults["timeout_seconds"].default)
            ),
        )


def build_query(criteria: SearchCriteria) -> str:
    """
    Translate search criteria into a Cloudsmith query string.

    Example: `filename:erlang AND version:1:23* AND distribution:ubuntu
    AND distribution:focal AND filename:deb$`
    """
    terms = []
    if criteria.name:
        terms.append(f"filename:{criteria.name}")
    if criteria.version_filter:
        terms.append(f"version:{criteria.version_filter}")
    if criteria.version:
        terms.append(f"version:{criteria.version}")
    if criteria.distribution:
        name, codename = parse_distribution(criteria.distribution)
        terms.append(f"distribution:{name}")
        terms.append(f"distribution:{codename}")
    if criteria.type and criteria.type != PackageType.RAW.value:
        terms.append(f"filename:{criteria.type}$")
    return " AND ".join(terms)


def _segment(value: str) -> str:
    return quote(value, safe="")


class CloudsmithStore(PackageStore):
    """
    Cloudsmith-backed package store.

    Every public call runs through the injected retry policy.
    """

    def __init__(
        self,
        config: StoreConfig,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the store.

        Args:
            config: Connection settings
            retry_policy: Policy applied to each call (3 attempts, 5s apart by default)
            transport: Optional httpx transport, e.g. a mock transport in tests
        """
        self._config = config
        self._retry = retry_policy or RetryPolicy()
        self._client = httpx.Client(
            timeout=config.timeout_seconds,
            headers={"X-Api-Key": config.api_key},
            follow_redirects=True,
            transport=transport,
        )

    @property
    def config(self) -> StoreConfig:
        return self._config

    def _repo_path(self) -> str:
        return f"{_segment(self._config.organization)}/{_segment(self._config.repository)}"

    def find(self, criteria: SearchCriteria) -> list[PackageArtifact]:
        url = f"{self._config.api_url}/packages/{self._repo_path()}/"
        query = build_query(criteria)
        params = {"query": query} if query else None
        if query:
            logger.info("Query: %s", query)

        packages: list[PackageArtifact] = []
        next_url: str | None = url
        while next_url:
            response = self._retry.call(self._get, next_url, params)
            packages.extend(PackageArtifact.model_validate(item) for item in response.json())
            next_url = response.links.get("next", {}).get("url")
            # the next link already carries the query
            params = None
        return packages

    def _get(self, url: str, params: dict[str, str] | None = None) -> httpx.Response:
        response = self._client.get(url, params=params)
        response.raise_for_status()
        return response

    def upload(
        self,
        path: Path,
        metadata: dict[str, Any],
        package_type: str,
    ) -> ArtifactRef | None:
        return self._retry.call(self._upload, path, metadata, package_type)

    def _upload(
        self,
        path: Path,
        metadata: dict[str, Any],
        package_type: str,
    ) -> ArtifactRef | None:
        content = path.read_bytes()
        upload_url = f"{self._config.upload_url}/{self._repo_path()}/{_segment(path.name)}"
        response = self._client.put(
            upload_url,
            content=content,
            headers={"Content-Sha256": sha256_hex(content)},
        )
        response.raise_for_status()
        identifier = self._json_field(response, "identifier")

        create_url = (
            f"{self._config.create_url}/v1/packages/{self._repo_path()}"
            f"/upload/{_segment(package_type)}/"
        )
        body = dict(metadata)
        body["package_file"] = identifier
        response = self._client.post(create_url, json=body)

        if (
            response.status_code == 400
            and package_type == PackageType.RAW.value
            and '"self_url"' not in response.text
            and not metadata.get("republish")
        ):
            # duplicated raw package, rejected immediately without a sync process
            logger.debug("Store rejected %s as a duplicate raw package", path.name)
            return None

        self_url = self._json_field(response, "self_url", creation_parameters=body)
        return ArtifactRef(self_url=self_url, filename=path.name)

    @staticmethod
    def _json_field(response: httpx.Response, name: str, **context: Any) -> str:
        """Extract a string field from a JSON response or fail with the response details."""
        try:
            return str(response.json()[name])
        except (ValueError, KeyError, TypeError) as e:
            raise StoreError(
                f"Unexpected response, no '{name}' field",
                url=str(response.request.url),
                status_code=response.status_code,
                details={"body": response.text[:500], **context},
            ) from e

    def fetch_status(self, ref: ArtifactRef) -> PackageArtifact:
        response = self._retry.call(self._get, ref.self_url)
        return PackageArtifact.model_validate(response.json())

    def delete(self, ref: ArtifactRef) -> None:
        self._retry.call(self._delete, ref.self_url)

    def _delete(self, url: str) -> None:
        response = self._client.delete(url)
        if response.status_code != 204:
            raise StoreError(
                f"Error while trying to delete {url}",
                url=url,
                status_code=response.status_code,
            )

    def download(self, ref: ArtifactRef) -> bytes:
        if not ref.cdn_url:
            raise StoreError(f"No download URL for {ref.filename or ref.self_url}")
        response = self._retry.call(self._get, ref.cdn_url)
        return response.content

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()
