"""Results of evaluating and executing a retention policy."""

import datetime
from dataclasses import dataclass, field
from enum import Enum

from .version import VersionRecord

__all__ = [
    "EvaluationResult",
    "FailureKind",
    "PackageError",
    "PackageOutcome",
    "RunOutcome",
    "VersionFailure",
]


@dataclass(frozen=True)
class EvaluationResult:
    """Partition of one package's versions into those to keep and those to
    delete.  Both preserve the order in which versions were supplied.
    """

    keep: tuple[VersionRecord, ...] = ()
    delete: tuple[VersionRecord, ...] = ()


class FailureKind(Enum):
    """Why a version could not be deleted.

    ``NOT_FOUND`` usually means we raced with another run or a human, and
    the version is gone anyway.
    """

    ERROR = "error"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class VersionFailure:
    """A deletion that did not succeed."""

    package_name: str
    version_id: int
    message: str
    kind: FailureKind = FailureKind.ERROR


@dataclass(frozen=True)
class PackageError:
    """A package that could not be processed at all."""

    package_name: str
    message: str


@dataclass
class PackageOutcome:
    """What happened to a single package.

    In a dry run, ``deleted`` holds the versions that would have been
    deleted.
    """

    package_name: str
    kept: list[VersionRecord] = field(default_factory=list)
    deleted: list[VersionRecord] = field(default_factory=list)
    failures: list[VersionFailure] = field(default_factory=list)

    @property
    def examined(self) -> int:
        return len(self.kept) + len(self.deleted) + len(self.failures)

    @property
    def not_found(self) -> list[VersionFailure]:
        return [x for x in self.failures if x.kind == FailureKind.NOT_FOUND]


@dataclass
class RunOutcome:
    """Aggregate result of a run across all packages in an organization."""

    organization: str
    dry_run: bool
    cutoff: datetime.datetime | None = None
    packages: list[PackageOutcome] = field(default_factory=list)
    errors: list[PackageError] = field(default_factory=list)

    @property
    def examined(self) -> int:
        return sum(x.examined for x in self.packages)

    @property
    def kept(self) -> int:
        return sum(len(x.kept) for x in self.packages)

    @property
    def deleted(self) -> int:
        return sum(len(x.deleted) for x in self.packages)

    @property
    def failures(self) -> list[VersionFailure]:
        return [f for x in self.packages for f in x.failures]

    @property
    def not_found(self) -> list[VersionFailure]:
        return [f for x in self.packages for f in x.not_found]

    @property
    def has_failures(self) -> bool:
        """Whether any deletion genuinely failed.

        Versions that had already disappeared do not count.
        """
        return any(x.kind == FailureKind.ERROR for x in self.failures)
