"""Human-readable summary of a run."""

from safir.datetime import format_datetime_for_logging

from ..models.outcome import FailureKind, RunOutcome

__all__ = ["render"]


def render(outcome: RunOutcome) -> str:
    """Render a summary of what was (or would be) kept and deleted.

    Packages appear in the order they were processed, and versions within
    a package in the order the registry listed them, so that summaries of
    runs over unchanged data are identical.
    """
    action = "would delete" if outcome.dry_run else "deleted"
    mode = "dry run" if outcome.dry_run else "live run"
    headline = f"Package versions to purge for {outcome.organization} ({mode})"
    lines = [headline, "-" * len(headline)]
    if outcome.cutoff is not None:
        cutoff = format_datetime_for_logging(outcome.cutoff)
        lines.append(f"Cutoff: {cutoff}")
    for pkg in outcome.packages:
        lines.append(
            f"{pkg.package_name}: examined {pkg.examined},"
            f" kept {len(pkg.kept)}, {action} {len(pkg.deleted)}"
        )
        for version in pkg.deleted:
            lines.append(f"    {version}")
    lines.append("")
    lines.append(
        f"Total: examined {outcome.examined}, kept {outcome.kept},"
        f" {action} {outcome.deleted}"
    )
    if outcome.errors:
        lines.append("")
        lines.append(f"Package errors ({len(outcome.errors)}):")
        lines.extend(
            f"  {x.package_name}: {x.message}" for x in outcome.errors
        )
    failures = [x for x in outcome.failures if x.kind == FailureKind.ERROR]
    if failures:
        lines.append("")
        lines.append(f"Failures ({len(failures)}):")
        lines.extend(
            f"  {x.package_name} version {x.version_id}: {x.message}"
            for x in failures
        )
    if outcome.not_found:
        lines.append("")
        lines.append(f"Already gone ({len(outcome.not_found)}):")
        lines.extend(
            f"  {x.package_name} version {x.version_id}: {x.message}"
            for x in outcome.not_found
        )
    return "\n".join(lines) + "\n"
