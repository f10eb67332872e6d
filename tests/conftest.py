"""Test fixtures for container package garbage collection."""

import datetime
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
import structlog

from ghcr_gc.config import PolicyConfig
from ghcr_gc.models.version import VersionRecord
from ghcr_gc.storage.preloaded import PreloadedClient

from .support.recording import RecordingClient

SUPPORT_DIR = Path(__file__).parent / "support"
NOW = datetime.datetime(2024, 6, 1, tzinfo=datetime.UTC)


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo any logging configuration done by the CLI."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def now() -> datetime.datetime:
    """Fixed instant against which ages are measured."""
    return NOW


@pytest.fixture
def make_version() -> Callable[..., VersionRecord]:
    """Build a version created a given number of days before `now`."""

    def _make(
        id: int,
        age_days: float,
        tags: tuple[str, ...] = (),
        package_name: str = "web",
    ) -> VersionRecord:
        return VersionRecord(
            id=id,
            package_name=package_name,
            created_at=NOW - datetime.timedelta(days=age_days),
            tags=frozenset(tags),
            digest=f"sha256:{id:064x}",
        )

    return _make


@pytest.fixture
def make_policy() -> Callable[..., PolicyConfig]:
    """Build a policy for the test organization."""

    def _make(**kwargs: object) -> PolicyConfig:
        params: dict[str, object] = {
            "organization": "example-org",
            "retention_days": 14,
        }
        params.update(kwargs)
        return PolicyConfig.model_validate(params)

    return _make


@pytest.fixture
def snapshot_file() -> Path:
    """Snapshot of a small organization."""
    return SUPPORT_DIR / "snapshot.json"


@pytest.fixture
def config_file() -> Path:
    """YAML configuration file."""
    return SUPPORT_DIR / "config.yaml"


@pytest.fixture
def registry(snapshot_file: Path) -> RecordingClient:
    """Recording client loaded with the snapshot."""
    snap = PreloadedClient.from_file(snapshot_file)
    org = snap.list_packages("example-org")
    return RecordingClient(
        "example-org", {x.name: snap.list_versions(x) for x in org}
    )
