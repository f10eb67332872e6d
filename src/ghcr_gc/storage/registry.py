"""Abstract superclass for package registry clients."""

from abc import ABC, abstractmethod

from ..models.version import PackageRef, VersionRecord

__all__ = ["RegistryClient"]


class RegistryClient(ABC):
    """Collection of methods we expect any registry client to provide.

    Note that these are synchronous.  That's on purpose.  The registry
    rate-limits every call made with a given credential, so blasting out
    a thousand DELETE requests in parallel is not going to work as well as
    you might hope.  After the first run, you will normally be removing no
    more than a handful of versions on any given day anyway.

    Every method raises a subclass of `~ghcr_gc.exceptions.RegistryError`
    on failure, and nothing else.
    """

    @abstractmethod
    def list_packages(self, organization: str) -> list[PackageRef]:
        """List every container package in an organization.

        Pagination is resolved here, and a package appears only once.
        """
        ...

    @abstractmethod
    def list_versions(self, package: PackageRef) -> list[VersionRecord]:
        """List every version of a package."""
        ...

    @abstractmethod
    def delete_version(self, package: PackageRef, version_id: int) -> None:
        """Delete one version of a package."""
        ...

    def close(self) -> None:
        """Release any resources held by the client."""
        return
