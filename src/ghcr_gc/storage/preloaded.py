"""Storage driver serving a snapshot of an organization's packages."""

import json
from pathlib import Path
from typing import Self, cast

import structlog

from ..exceptions import NotFound, RegistryUnavailable
from ..models.version import JSONVersion, PackageRef, VersionRecord
from .registry import RegistryClient

__all__ = ["PreloadedClient"]


class PreloadedClient(RegistryClient):
    """Registry client backed by in-memory data rather than a live registry.

    Deletions only remove versions from the in-memory copy, which makes
    this useful for rehearsing a policy offline and for testing.

    Parameters
    ----------
    organization
        Organization the data belongs to.
    versions
        Mapping of package name to every version of that package.
    """

    def __init__(
        self, organization: str, versions: dict[str, list[VersionRecord]]
    ) -> None:
        self._organization = organization
        self._versions = {k: list(v) for k, v in versions.items()}
        self._logger = structlog.get_logger(__name__)

    @classmethod
    def from_file(cls, inputfile: Path) -> Self:
        """Read a snapshot written by `write`.

        Raises
        ------
        OSError
            Raised if the snapshot cannot be read.
        ValueError
            Raised if the snapshot is not JSON, or not of the expected
            shape.
        """
        inp = json.loads(inputfile.read_text())
        versions: dict[str, list[VersionRecord]] = {}
        count = 0
        try:
            organization = inp["metadata"]["organization"]
            for name, objs in inp["data"].items():
                versions[name] = [
                    VersionRecord.from_json(cast("JSONVersion", x))
                    for x in objs
                ]
                count += len(versions[name])
        except (AttributeError, KeyError, TypeError) as e:
            raise ValueError(f"{inputfile} is not a snapshot: {e!r}") from e
        logger = structlog.get_logger(__name__)
        logger.debug(
            f"Ingested {count} version{'s' if count != 1 else ''} "
            f"from {inputfile}"
        )
        return cls(organization, versions)

    @classmethod
    def snapshot(cls, registry: RegistryClient, organization: str) -> Self:
        """Capture the current contents of another registry client.

        Raises
        ------
        ghcr_gc.exceptions.RegistryError
            Raised if any listing fails; a partial snapshot is useless.
        """
        versions: dict[str, list[VersionRecord]] = {}
        for package in registry.list_packages(organization):
            versions[package.name] = registry.list_versions(package)
        return cls(organization, versions)

    def write(self, outputfile: Path) -> None:
        """Write JSON of the package map."""
        data = {
            name: [x.to_dict() for x in versions]
            for name, versions in self._versions.items()
        }
        dd = {"metadata": {"organization": self._organization}, "data": data}
        outputfile.write_text(json.dumps(dd, indent=2))

    def list_packages(self, organization: str) -> list[PackageRef]:
        if organization != self._organization:
            raise RegistryUnavailable(
                f"Snapshot is of {self._organization}, not {organization}"
            )
        return [
            PackageRef(name=name, organization=organization)
            for name in self._versions
        ]

    def list_versions(self, package: PackageRef) -> list[VersionRecord]:
        if package.name not in self._versions:
            raise NotFound(f"{package} not found")
        return list(self._versions[package.name])

    def delete_version(self, package: PackageRef, version_id: int) -> None:
        versions = self._versions.get(package.name, [])
        remaining = [x for x in versions if x.id != version_id]
        if len(remaining) == len(versions):
            raise NotFound(f"{package} version {version_id} not found")
        self._versions[package.name] = remaining
        self._logger.debug(f"Removed {package} version {version_id}")
