"""Registry client that records what the reaper asks of it."""

from ghcr_gc.exceptions import RegistryError
from ghcr_gc.models.version import PackageRef, VersionRecord
from ghcr_gc.storage.preloaded import PreloadedClient

__all__ = ["RecordingClient"]


class RecordingClient(PreloadedClient):
    """Preloaded client that records deletions and fails on demand."""

    def __init__(
        self,
        organization: str,
        versions: dict[str, list[VersionRecord]],
    ) -> None:
        super().__init__(organization, versions)
        self.delete_calls: list[tuple[str, int]] = []
        self.list_failures: dict[str, RegistryError] = {}
        self.delete_failures: dict[int, RegistryError] = {}
        self.packages_failure: RegistryError | None = None

    def list_packages(self, organization: str) -> list[PackageRef]:
        if self.packages_failure:
            raise self.packages_failure
        return super().list_packages(organization)

    def list_versions(self, package: PackageRef) -> list[VersionRecord]:
        if package.name in self.list_failures:
            raise self.list_failures[package.name]
        return super().list_versions(package)

    def delete_version(self, package: PackageRef, version_id: int) -> None:
        self.delete_calls.append((package.name, version_id))
        if version_id in self.delete_failures:
            raise self.delete_failures[version_id]
        super().delete_version(package, version_id)
