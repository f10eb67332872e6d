"""Provides reaping services for an organization's container packages."""

import datetime

import structlog
from safir.datetime import current_datetime, format_datetime_for_logging

from ..config import PolicyConfig
from ..exceptions import NotFound, RegistryError
from ..models.outcome import (
    EvaluationResult,
    FailureKind,
    PackageError,
    PackageOutcome,
    RunOutcome,
    VersionFailure,
)
from ..models.version import PackageRef, VersionRecord
from ..storage.registry import RegistryClient
from .evaluator import evaluate

__all__ = ["Reaper", "run"]


class Reaper:
    """Provides the mechanism to implement a version retention policy.

    Parameters
    ----------
    policy
        Retention policy to apply to every package in its organization.
    registry
        Client for the registry holding those packages.
    now
        Instant against which version ages are measured.  Defaults to the
        current time, fixed when the reaper is created so that every
        package is judged against the same instant.
    """

    def __init__(
        self,
        policy: PolicyConfig,
        registry: RegistryClient,
        now: datetime.datetime | None = None,
    ) -> None:
        self._policy = policy
        self._registry = registry
        self._now = now or current_datetime(microseconds=True)
        self._versions: dict[PackageRef, list[VersionRecord]] | None = None
        self._plan: dict[PackageRef, EvaluationResult] | None = None
        self._errors: list[PackageError] = []
        self._logger = structlog.get_logger(__name__).bind(
            organization=policy.organization
        )

    @property
    def cutoff(self) -> datetime.datetime:
        """Versions created before this instant are eligible for deletion."""
        return self._now - datetime.timedelta(days=self._policy.retention_days)

    def populate(self) -> None:
        """Fetch every version of every package in the organization.

        A package whose versions cannot be listed is recorded as an error
        and left out of the run entirely.
        """
        self._versions = {}
        self._errors = []
        org = self._policy.organization
        try:
            packages = self._registry.list_packages(org)
        except RegistryError as e:
            self._logger.error(f"Cannot list packages: {e}")
            self._errors.append(PackageError(package_name=org, message=str(e)))
            return
        self._logger.info(f"Found {len(packages)} packages")
        for package in packages:
            try:
                versions = self._registry.list_versions(package)
            except RegistryError as e:
                self._logger.error(
                    f"Cannot list versions of {package.name}: {e}"
                )
                self._errors.append(
                    PackageError(package_name=package.name, message=str(e))
                )
                continue
            self._versions[package] = versions

    def plan(self) -> None:
        """Use the policy to plan a set of versions to delete."""
        if self._versions is None:
            self._logger.warning(
                "No versions have been fetched and thus cannot be planned."
            )
            return
        self._plan = {}
        for package, versions in self._versions.items():
            result = evaluate(versions, self._policy, self._now)
            self._logger.debug(
                f"Planned {package.name}: keep {len(result.keep)},"
                f" delete {len(result.delete)}"
            )
            self._plan[package] = result

    def reap(self) -> RunOutcome:
        """Execute the plan, or in a dry run, only record it.

        A deletion failure is recorded and the next deletion attempted
        regardless.
        """
        outcome = RunOutcome(
            organization=self._policy.organization,
            dry_run=self._policy.dry_run,
            cutoff=self.cutoff,
            errors=list(self._errors),
        )
        if self._plan is None:
            self._logger.warning(
                "No plan has been formulated and thus cannot be executed."
            )
            return outcome
        for package, result in self._plan.items():
            outcome.packages.append(self._reap_package(package, result))
        self._plan = None
        return outcome

    def _reap_package(
        self, package: PackageRef, result: EvaluationResult
    ) -> PackageOutcome:
        pkg_outcome = PackageOutcome(
            package_name=package.name, kept=list(result.keep)
        )
        dry = " (not really)" if self._policy.dry_run else ""
        for version in result.delete:
            if self._policy.dry_run:
                pkg_outcome.deleted.append(version)
                self._logger.debug(f"Version {version} deleted{dry}")
                continue
            try:
                self._registry.delete_version(package, version.id)
            except NotFound as e:
                self._logger.warning(
                    f"Version {version} of {package.name} already gone: {e}"
                )
                pkg_outcome.failures.append(
                    VersionFailure(
                        package_name=package.name,
                        version_id=version.id,
                        message=str(e),
                        kind=FailureKind.NOT_FOUND,
                    )
                )
            except RegistryError as e:
                self._logger.error(
                    f"Cannot delete version {version} of {package.name}: {e}"
                )
                pkg_outcome.failures.append(
                    VersionFailure(
                        package_name=package.name,
                        version_id=version.id,
                        message=str(e),
                    )
                )
            else:
                pkg_outcome.deleted.append(version)
                self._logger.debug(f"Version {version} deleted")
        self._logger.info(
            f"Deleted {len(pkg_outcome.deleted)} versions of"
            f" {package.name}{dry}",
            kept=len(pkg_outcome.kept),
            failed=len(pkg_outcome.failures),
        )
        return pkg_outcome

    def run(self) -> RunOutcome:
        """Populate, plan, and reap in one go."""
        self._logger.info(
            "Starting run",
            retention_days=self._policy.retention_days,
            cutoff=format_datetime_for_logging(self.cutoff),
            dry_run=self._policy.dry_run,
        )
        self.populate()
        self.plan()
        return self.reap()


def run(
    policy: PolicyConfig,
    registry: RegistryClient,
    now: datetime.datetime | None = None,
) -> RunOutcome:
    """Apply a retention policy to every package in its organization.

    Registry failures are recorded in the returned outcome and never
    raised.
    """
    return Reaper(policy, registry, now=now).run()
