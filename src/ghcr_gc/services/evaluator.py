"""Decide which package versions a retention policy keeps."""

import datetime
from collections.abc import Iterable

from ..config import PolicyConfig
from ..models.outcome import EvaluationResult
from ..models.version import LATEST_TAG, VersionRecord

__all__ = ["evaluate", "is_protected"]


def is_protected(version: VersionRecord, policy: PolicyConfig) -> bool:
    """Whether a version carries a tag that exempts it from deletion."""
    if policy.protect_latest and LATEST_TAG in version.tags:
        return True
    return not version.tags.isdisjoint(policy.protected_tags)


def evaluate(
    versions: Iterable[VersionRecord],
    policy: PolicyConfig,
    now: datetime.datetime,
) -> EvaluationResult:
    """Partition versions into those to keep and those to delete.

    Parameters
    ----------
    versions
        Every version of a single package.
    policy
        Retention policy to apply.
    now
        Instant against which version ages are measured.

    Returns
    -------
    EvaluationResult
        Every input version appears in exactly one of ``keep`` or
        ``delete``, in input order.

    Notes
    -----
    A version is kept if it is protected by tag, or if it is younger than
    the retention window.  A version whose age equals the window is
    deleted.  A version created in the future (clock skew) has a negative
    age and is therefore always kept.  There is deliberately no special
    case for the last remaining version of a package.
    """
    window = datetime.timedelta(days=policy.retention_days)
    keep: list[VersionRecord] = []
    delete: list[VersionRecord] = []
    for version in versions:
        age = now - version.created_at
        if is_protected(version, policy) or age < window:
            keep.append(version)
        else:
            delete.append(version)
    return EvaluationResult(keep=tuple(keep), delete=tuple(delete))
