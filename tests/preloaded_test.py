"""Test the snapshot-backed registry client and version serialization."""

import datetime
from pathlib import Path

import pytest

from ghcr_gc.exceptions import NotFound, RegistryUnavailable
from ghcr_gc.models.version import PackageRef, VersionRecord
from ghcr_gc.storage.preloaded import PreloadedClient


def test_load_snapshot(snapshot_file: Path) -> None:
    client = PreloadedClient.from_file(snapshot_file)
    packages = client.list_packages("example-org")
    assert [x.name for x in packages] == ["web", "tools/builder"]
    versions = client.list_versions(packages[0])
    assert [x.id for x in versions] == [101, 102, 103, 104]
    assert versions[0].tags == frozenset({"latest", "v2.0"})
    assert versions[0].created_at == datetime.datetime(
        2024, 5, 30, tzinfo=datetime.UTC
    )
    assert versions[2].untagged
    assert str(versions[0]) == "[latest,v2.0] <1a2b3c4d...>"


def test_delete(snapshot_file: Path) -> None:
    client = PreloadedClient.from_file(snapshot_file)
    web = PackageRef(name="web", organization="example-org")
    client.delete_version(web, 103)
    assert [x.id for x in client.list_versions(web)] == [101, 102, 104]
    with pytest.raises(NotFound):
        client.delete_version(web, 103)
    with pytest.raises(NotFound):
        client.list_versions(PackageRef(name="nope", organization="x"))
    with pytest.raises(RegistryUnavailable):
        client.list_packages("other-org")


def test_snapshot_and_write(snapshot_file: Path, tmp_path: Path) -> None:
    """A snapshot of a client reads back as the same data."""
    client = PreloadedClient.from_file(snapshot_file)
    client.delete_version(
        PackageRef(name="tools/builder", organization="example-org"), 202
    )
    out = tmp_path / "snap.json"
    PreloadedClient.snapshot(client, "example-org").write(out)
    reread = PreloadedClient.from_file(out)
    builder = PackageRef(name="tools/builder", organization="example-org")
    assert reread.list_versions(builder) == client.list_versions(builder)
    assert [x.id for x in reread.list_versions(builder)] == [201, 203]


def test_from_json_type_checks() -> None:
    good = {
        "id": 1,
        "package_name": "web",
        "created_at": "2024-01-01T00:00:00Z",
        "tags": ["v1"],
    }
    version = VersionRecord.from_json(good)
    assert version.digest == ""
    assert str(version) == "[v1] <1>"
    with pytest.raises(TypeError):
        VersionRecord.from_json({**good, "id": "1"})
    with pytest.raises(TypeError):
        VersionRecord.from_json({**good, "tags": "v1"})


@pytest.mark.parametrize(
    "contents",
    [
        "[]",
        '{"metadata": {"organization": "o"}}',
        '{"metadata": {"organization": "o"}, "data": {"web": [7]}}',
    ],
)
def test_malformed_snapshot(contents: str, tmp_path: Path) -> None:
    snapshot_file = tmp_path / "snapshot.json"
    snapshot_file.write_text(contents)
    with pytest.raises(ValueError, match="not a snapshot"):
        PreloadedClient.from_file(snapshot_file)
