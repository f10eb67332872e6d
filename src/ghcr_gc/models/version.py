"""Model for necessary information about container package versions."""

import datetime
from dataclasses import dataclass, field
from typing import Self

from safir.datetime import isodatetime, parse_isodatetime

LATEST_TAG = "latest"
"""Implicit tag used by Docker/Kubernetes when no tag is specified."""

type JSONVersion = dict[str, str | int | list[str]]

__all__ = [
    "LATEST_TAG",
    "JSONVersion",
    "PackageRef",
    "VersionRecord",
]


@dataclass(frozen=True)
class PackageRef:
    """A container package within an organization."""

    name: str
    organization: str
    id: int | None = None

    def __str__(self) -> str:
        return f"{self.organization}/{self.name}"


@dataclass(frozen=True)
class VersionRecord:
    """Class representing the things about a package version we care about.

    The registry hands out an integer ID per version, and that ID is what
    deletion needs.  The digest is only there so humans can tell versions
    apart in reports.
    """

    id: int
    package_name: str
    created_at: datetime.datetime
    tags: frozenset[str] = field(default_factory=frozenset)
    digest: str = ""

    def __str__(self) -> str:
        """Pretty(?)-printed version.  Humans care about tags, and digests
        not so much.
        """
        colon_pos = self.digest.find(":")
        dig = self.digest
        if colon_pos > -1:
            dig = self.digest[1 + colon_pos :]
        if len(dig) > 8:
            dig = dig[:8] + "..."
        if not dig:
            dig = str(self.id)
        tags = ",".join(sorted(self.tags)) if self.tags else "<untagged>"
        return f"[{tags}] <{dig}>"

    @property
    def untagged(self) -> bool:
        return not self.tags

    def to_dict(self) -> JSONVersion:
        # Sets and datetimes aren't JSON-serializable, so we make them a
        # sorted list and a string.
        return {
            "id": self.id,
            "package_name": self.package_name,
            "created_at": isodatetime(self.created_at),
            "tags": sorted(self.tags),
            "digest": self.digest,
        }

    @classmethod
    def from_json(cls, inp: JSONVersion) -> Self:
        """Much painful assertion that each field is the right type."""
        v_id = inp["id"]
        if not isinstance(v_id, int):
            raise TypeError(f"'id' field of {inp} must be an integer")
        name = inp["package_name"]
        if not isinstance(name, str):
            raise TypeError(f"'package_name' field of {inp} must be a string")
        created = inp["created_at"]
        if not isinstance(created, str):
            raise TypeError(f"'created_at' field of {inp} must be a string")
        t_s = inp.get("tags", [])
        if isinstance(t_s, str | int):
            raise TypeError(f"'tags' field of {inp} must be a list")
        digest = inp.get("digest", "")
        return cls(
            id=v_id,
            package_name=name,
            created_at=parse_isodatetime(created),
            tags=frozenset(t_s),
            digest=str(digest),
        )
