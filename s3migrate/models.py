"""Value types shared by the migration engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import IO, TYPE_CHECKING, Mapping

if TYPE_CHECKING:
    from .connection import S3Connection

ALL_USERS_URI = "http://acs.amazonaws.com/groups/global/AllUsers"
DEFAULT_TIER = "STANDARD"


class AccessLevel(str, Enum):
    """Object visibility, valued by the matching S3 canned ACL."""

    PRIVATE = "private"
    PUBLIC_READ = "public-read"

    @classmethod
    def from_grants(cls, grants: list[dict]) -> AccessLevel:
        """Classify an object ACL: public when the AllUsers group may read it."""
        for grant in grants:
            grantee = grant.get("Grantee", {})
            if grantee.get("URI") == ALL_USERS_URI and grant.get("Permission") in ("READ", "FULL_CONTROL"):
                return cls.PUBLIC_READ
        return cls.PRIVATE


@dataclass(frozen=True)
class ObjectRecord:
    """One object as seen in a bucket listing."""

    key: str
    tier: str = DEFAULT_TIER
    size: int = 0
    content_type: str | None = None
    metadata: Mapping[str, str] = field(default_factory=dict)
    access: AccessLevel | None = None


@dataclass(frozen=True)
class Page:
    """A slice of a bucket listing.

    ``next_marker`` is the opaque token to resume listing from; ``None`` marks the last page.
    """

    records: tuple[ObjectRecord, ...]
    next_marker: str | None = None

    @property
    def is_last(self) -> bool:
        return self.next_marker is None

    def __len__(self) -> int:
        return len(self.records)


@dataclass
class FetchedObject:
    """Payload stream and metadata of a source object.

    The storage class is not carried here; the listed ``ObjectRecord.tier`` is
    what gets written.
    """

    body: IO[bytes]
    content_type: str
    metadata: dict[str, str]
    content_length: int = 0


@dataclass(frozen=True)
class MigrationJob:
    """Where to copy from and to. Connections carry their own credentials."""

    source: S3Connection
    destination: S3Connection
    source_bucket: str
    destination_bucket: str
