"""Configuration for container package garbage collection."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Self

import yaml
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    HttpUrl,
    SecretStr,
)
from pydantic.alias_generators import to_snake
from safir.pydantic import CamelCaseModel

__all__ = [
    "Config",
    "PolicyConfig",
    "RegistryConfig",
]


def _split_comma_list(inp: Any) -> Any:
    # Environment variables and command-line flags give us "a,b,c"
    if isinstance(inp, str):
        return {x.strip() for x in inp.split(",") if x.strip()}
    return inp


def _empty_str_is_none(inp: Any) -> Any:
    if isinstance(inp, str) and inp == "":
        return None
    return inp


def _snake_keys(section: Any, name: str) -> dict[str, Any]:
    # Config files may use camelCase; overrides use field names.
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(f"{name} section must be a mapping")
    return {to_snake(k): v for k, v in section.items()}


class PolicyConfig(CamelCaseModel):
    """Retention policy for the versions of every package in an
    organization.

    A version is deleted once it is at least ``retention_days`` old, unless
    it carries a protected tag.  This is immutable once constructed, and
    construction is where an invalid policy gets rejected.
    """

    model_config = ConfigDict(frozen=True)

    organization: Annotated[
        str,
        Field(
            title="Organization",
            description="Organization whose container packages are reaped",
            examples=["example-org"],
            min_length=1,
        ),
    ]

    retention_days: Annotated[
        int,
        Field(
            title="Retention days",
            description=(
                "Versions younger than this many days are always kept. "
                "Zero means any version not created this instant is "
                "eligible for deletion."
            ),
            ge=0,
            examples=[14],
        ),
    ]

    dry_run: Annotated[
        bool,
        Field(
            title="Dry run",
            description="Do not actually delete any versions from registry.",
        ),
    ] = True

    protect_latest: Annotated[
        bool,
        Field(
            title="Protect latest",
            description="Never delete a version tagged 'latest'.",
        ),
    ] = True

    protected_tags: Annotated[
        frozenset[str],
        BeforeValidator(_split_comma_list),
        Field(
            title="Protected tags",
            description=(
                "Never delete a version carrying any of these tags "
                "(comma-separated when given as a string)."
            ),
            examples=[["stable", "recommended"]],
        ),
    ] = frozenset()


class RegistryConfig(CamelCaseModel):
    """Configuration to talk to the package registry API."""

    url: Annotated[
        HttpUrl,
        Field(
            title="URL",
            description="Base URL of the package registry REST API",
            examples=[HttpUrl("https://api.github.com")],
        ),
    ] = HttpUrl("https://api.github.com")

    token: Annotated[
        SecretStr | None,
        Field(
            title="Token",
            description=(
                "Bearer token for the registry API; falls back to the "
                "GHCR_TOKEN environment variable."
            ),
        ),
    ] = None

    timeout: Annotated[
        float,
        Field(
            title="Timeout",
            description="Timeout in seconds for each registry API call",
            gt=0,
        ),
    ] = 30.0

    page_size: Annotated[
        int,
        Field(
            title="Page size",
            description="Number of items requested per page of results",
            ge=1,
            le=100,
        ),
    ] = 100

    input_file: Annotated[
        Path | None,
        BeforeValidator(_empty_str_is_none),
        Field(
            title="Input file",
            description=(
                "If supplied, use package data from this snapshot file, "
                "rather than scanned from the actual registry."
            ),
        ),
    ] = None


class Config(BaseModel):
    """Complete configuration: the policy, and where to apply it."""

    policy: Annotated[
        PolicyConfig,
        Field(title="Policy", description="Retention policy to apply."),
    ]

    registry: Annotated[
        RegistryConfig,
        Field(
            title="Registry",
            description="Registry holding the packages.",
            default_factory=RegistryConfig,
        ),
    ]

    debug: Annotated[
        bool,
        Field(
            title="Debug",
            description="Much more verbose logging.",
        ),
    ] = False

    @classmethod
    def from_file(
        cls, path: Path | None, overrides: dict[str, Any] | None = None
    ) -> Self:
        """Load configuration from a YAML file, then apply overrides.

        Parameters
        ----------
        path
            YAML file to read.  If `None`, only the overrides are used.
        overrides
            Settings that take precedence over the file.  The ``policy``
            and ``registry`` sections are merged key by key, with keys
            given as field names.

        Raises
        ------
        OSError
            Raised if the file cannot be read.
        ValueError
            Raised if the file is not a YAML mapping, or if the resulting
            configuration is invalid (as `pydantic.ValidationError`).
        yaml.YAMLError
            Raised if the file is not YAML at all.
        """
        raw: Any = {}
        if path is not None:
            raw = yaml.safe_load(path.read_text()) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"{path} does not contain a YAML mapping")
        data = dict(raw)
        for section in ("policy", "registry"):
            data[section] = _snake_keys(raw.get(section), section)
        for key, value in (overrides or {}).items():
            if key in ("policy", "registry"):
                data[key].update(value)
            else:
                data[key] = value
        return cls.model_validate(data)
