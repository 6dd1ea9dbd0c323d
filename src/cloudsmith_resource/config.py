"""
Resource input configuration.

The same input models serve both entry points: the Concourse resource,
which receives a JSON document on stdin, and the GitHub Action, which
receives `INPUT_<FIELD>` environment variables.
"""

import json
from typing import Mapping

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from cloudsmith_resource.core.exceptions import ConfigurationError, ValidationError
from cloudsmith_resource.core.models import SearchCriteria, parse_distribution

ORDER_BY_VERSION = "version"
ORDER_BY_DATE = "date"

SOURCE_FIELDS = (
    "username",
    "organization",
    "repository",
    "api_key",
    "name",
    "type",
    "distribution",
    "order_by",
)

PARAMS_FIELDS = (
    "delete",
    "do_delete",
    "republish",
    "globs",
    "tags",
    "local_path",
    "version",
    "version_filter",
    "keep_last_n",
    "keep_last_minor_patches",
)


def env_variable(field: str) -> str:
    """Name of the GitHub Actions variable carrying an input, e.g. `INPUT_API_KEY`."""
    return f"INPUT_{field.upper()}"


class Source(BaseModel):
    """Repository coordinates and credentials."""

    model_config = ConfigDict(extra="ignore")

    username: str | None = None
    organization: str
    repository: str
    api_key: str = Field(repr=False)
    name: str | None = Field(default=None, description="Filename search criterion")
    type: str | None = Field(default=None, description="deb, rpm, or raw")
    distribution: str | None = Field(default=None, description="name/codename, e.g. ubuntu/focal")
    order_by: str | None = Field(default=None, description="version (default) or date")

    @field_validator("distribution")
    @classmethod
    def validate_distribution(cls, v):
        """Reject descriptors without a single `/` separator."""
        if v is not None:
            parse_distribution(v)
        return v

    @field_validator("order_by")
    @classmethod
    def validate_order_by(cls, v):
        """Only version and date ordering exist."""
        if v is not None and v not in (ORDER_BY_VERSION, ORDER_BY_DATE):
            raise ValidationError(
                f"order_by must be '{ORDER_BY_VERSION}' or '{ORDER_BY_DATE}'",
                field="order_by",
                value=v,
            )
        return v

    @property
    def order_by_version(self) -> bool:
        return self.order_by is None or self.order_by == ORDER_BY_VERSION


class Params(BaseModel):
    """Step parameters for `in` and `out`."""

    model_config = ConfigDict(extra="ignore")

    delete: bool = False
    do_delete: bool = False
    republish: bool = False
    globs: str | None = None
    tags: str | None = None
    local_path: str | None = None
    version: str | None = Field(
        default=None, description="Regex extracting the version from uploaded file names"
    )
    version_filter: str | None = Field(default=None, description="Version search criterion")
    keep_last_n: int = 0
    keep_last_minor_patches: bool = False


class VersionInput(BaseModel):
    """A version as handed back by the CI system."""

    model_config = ConfigDict(extra="ignore")

    version: str
    distribution: str | None = None
    type: str | None = None


class ResourceInput(BaseModel):
    """Complete input of one resource invocation."""

    model_config = ConfigDict(extra="ignore")

    source: Source
    params: Params = Field(default_factory=Params)
    version: VersionInput | None = None

    @field_validator("params", mode="before")
    @classmethod
    def default_params(cls, v):
        """Concourse sends `null` when a step has no params."""
        return {} if v is None else v

    @classmethod
    def from_json(cls, document: str) -> "ResourceInput":
        """
        Parse the JSON document Concourse writes on stdin.

        Raises:
            ConfigurationError: If the document is not JSON or misses required fields
        """
        try:
            data = json.loads(document)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Input is not valid JSON: {e.msg}") from e
        return cls._validate(data)

    @classmethod
    def from_github_env(cls, environ: Mapping[str, str]) -> "ResourceInput":
        """
        Map GitHub Action inputs (`INPUT_<FIELD>` variables) to an input.

        Blank variables are treated as absent.
        """
        return cls._validate(
            {
                "source": _collect(SOURCE_FIELDS, environ),
                "params": _collect(PARAMS_FIELDS, environ),
            }
        )

    @classmethod
    def _validate(cls, data: object) -> "ResourceInput":
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as e:
            fields = [".".join(str(part) for part in error["loc"]) for error in e.errors()]
            raise ConfigurationError(
                f"Invalid resource input: {', '.join(fields)}",
                details={"errors": [error["msg"] for error in e.errors()]},
            ) from e

    def search_criteria(self, include_version: bool = True) -> SearchCriteria:
        """
        Build store search criteria from the input.

        Args:
            include_version: Use the input version (and its distribution and
                type) as criteria. `check` lists every version, so it passes False.
        """
        version = self.version if include_version else None

        exact_version = version.version if version else None
        if exact_version is None:
            exact_version = self.params.version

        distribution = self.source.distribution
        if version and version.distribution:
            distribution = version.distribution

        package_type = self.source.type
        if version and version.type:
            package_type = version.type

        return SearchCriteria(
            name=self.source.name,
            version_filter=self.params.version_filter,
            version=exact_version,
            distribution=distribution,
            type=package_type,
        )


def _collect(fields: tuple[str, ...], environ: Mapping[str, str]) -> dict[str, str]:
    values = {}
    for field in fields:
        value = environ.get(env_variable(field))
        if value is not None and value.strip():
            values[field] = value
    return values
