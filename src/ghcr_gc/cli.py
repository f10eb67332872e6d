"""CLI for container package garbage collection."""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any

import structlog
import yaml

from .config import Config
from .exceptions import RegistryError
from .factory import Factory
from .services.report import render
from .storage.preloaded import PreloadedClient

ENV_PREFIX = "GHCR_GC_"

# Policy settings that may come from the environment, and their variables.
_POLICY_ENV = {
    "organization": f"{ENV_PREFIX}ORGANIZATION",
    "retention_days": f"{ENV_PREFIX}RETENTION_DAYS",
    "dry_run": f"{ENV_PREFIX}DRY_RUN",
    "protect_latest": f"{ENV_PREFIX}PROTECT_LATEST",
    "protected_tags": f"{ENV_PREFIX}PROTECTED_TAGS",
}


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Every policy option defaults to `None`, meaning "not given here", so
    that it does not override the environment or the config file.
    """
    parser = argparse.ArgumentParser(
        description="Delete old versions of container packages."
    )
    parser.add_argument(
        "-c",
        "--config-file",
        "--file",
        type=Path,
        help="config file (YAML)",
        default=None,
    )
    parser.add_argument(
        "-o",
        "--organization",
        help="organization whose packages are reaped",
        default=None,
    )
    parser.add_argument(
        "-r",
        "--retention-days",
        type=int,
        help="keep versions younger than this many days",
        default=None,
    )
    parser.add_argument(
        "-x",
        "--dry-run",
        action=argparse.BooleanOptionalAction,
        help="Dry run only: do not delete any versions",
        default=None,
    )
    parser.add_argument(
        "--protect-latest",
        action=argparse.BooleanOptionalAction,
        help="never delete versions tagged 'latest'",
        default=None,
    )
    parser.add_argument(
        "-s",
        "--protected-tags",
        "--skip-tags",
        help=(
            "exclude versions with these tags from consideration for"
            " reaping (comma-separated list)"
        ),
        default=None,
    )
    parser.add_argument(
        "-i",
        "--input-file",
        type=Path,
        help="use package data from this snapshot, not the registry",
        default=None,
    )
    parser.add_argument(
        "--dump-file",
        type=Path,
        help="write a snapshot of the scanned package data to this file",
        default=None,
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_const",
        const=True,
        help="Enable debug logging",
        default=None,
    )
    return parser.parse_args(argv)


def _load_config(
    args: argparse.Namespace, environ: dict[str, str] | None = None
) -> Config:
    """Resolve configuration.

    Precedence is command line, then environment, then config file.

    Raises
    ------
    OSError
        Raised if the config file cannot be read.
    ValueError
        Raised if the config file is not a YAML mapping, or if the
        resolved configuration is invalid (as `pydantic.ValidationError`).
    yaml.YAMLError
        Raised if the config file is not YAML.
    """
    env = os.environ if environ is None else environ
    policy: dict[str, Any] = {}
    registry: dict[str, Any] = {}
    overrides: dict[str, Any] = {"policy": policy, "registry": registry}

    for field, var in _POLICY_ENV.items():
        if var in env:
            policy[field] = env[var]
    if f"{ENV_PREFIX}DEBUG" in env:
        overrides["debug"] = env[f"{ENV_PREFIX}DEBUG"]

    for field in _POLICY_ENV:
        value = getattr(args, field)
        if value is not None:
            policy[field] = value
    if args.input_file is not None:
        registry["input_file"] = args.input_file
    if args.debug is not None:
        overrides["debug"] = args.debug

    return Config.from_file(args.config_file, overrides)


def _configure_logging(*, debug: bool) -> None:
    log_level = logging.DEBUG if debug else logging.INFO
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def main(argv: list[str] | None = None) -> None:
    """Reap old package versions and print a summary.

    Exits 2 if the configuration or the snapshot input is unusable (before
    touching the registry), 1 if any deletion failed, and 0 otherwise.
    """
    args = _parse_args(argv)
    # Errors loading the configuration still belong on stderr.
    _configure_logging(debug=bool(args.debug))
    logger = structlog.get_logger(__name__)
    try:
        cfg = _load_config(args)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(2)
    _configure_logging(debug=cfg.debug)

    factory = Factory(cfg)
    try:
        registry = factory.create_registry_client()
    except (OSError, ValueError) as e:
        logger.error(f"Cannot load package snapshot: {e}")
        sys.exit(2)
    try:
        if args.dump_file:
            try:
                snap = PreloadedClient.snapshot(
                    registry, cfg.policy.organization
                )
            except RegistryError as e:
                logger.error(f"Cannot snapshot registry: {e}")
            else:
                snap.write(args.dump_file)
        reaper = factory.create_reaper(registry)
        outcome = reaper.run()
    finally:
        registry.close()

    print(render(outcome), end="")
    if outcome.has_failures:
        sys.exit(1)
