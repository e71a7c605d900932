"""
Registry domain objects for types-publisher.

A RegistrySnapshot records, for every published typings package, the
distribution tags worth listing. Its serialized form is what ships as
``index.json`` in the types-registry package, and its hash decides whether
a new types-registry needs publishing.
"""

import functools
import hashlib
import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

LATEST_TAG = "latest"
NEXT_TAG = "next"

TagSet = Dict[str, str]


def filter_tags(tags: Mapping[str, str]) -> TagSet:
    """
    Drop tags that are aliases of ``latest``.

    ``latest`` itself is always kept. Without a ``latest`` entry there is
    nothing to be redundant with, so every tag is kept.
    """
    latest_version = tags.get(LATEST_TAG)
    return {
        tag: version
        for tag, version in tags.items()
        if tag == LATEST_TAG or latest_version is None or version != latest_version
    }


def compute_hash(content: str) -> str:
    """SHA-256 hex digest of ``content``."""
    return hashlib.sha256(content.encode('utf-8')).hexdigest()


class RegistrySnapshot:
    """
    Immutable mapping of package name to filtered tag set.

    Example:
        snapshot = RegistrySnapshot({"node": {"latest": "7.0.0", "ts2.0": "6.0.1"}})
        snapshot.content_hash()
    """

    def __init__(self, entries: Optional[Mapping[str, Mapping[str, str]]] = None):
        frozen = {name: MappingProxyType(dict(tags)) for name, tags in (entries or {}).items()}
        self._entries = MappingProxyType(frozen)

    @property
    def entries(self) -> Mapping[str, Mapping[str, str]]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __eq__(self, other) -> bool:
        if not isinstance(other, RegistrySnapshot):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"RegistrySnapshot({len(self)} packages)"

    def to_dict(self) -> Dict[str, Dict[str, Dict[str, str]]]:
        return {"entries": {name: dict(tags) for name, tags in self._entries.items()}}

    def serialize(self) -> str:
        """Compact JSON with sorted keys, independent of fetch completion order."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(',', ':'), ensure_ascii=False)

    def content_hash(self) -> str:
        return compute_hash(self.serialize())

    @classmethod
    def from_dict(cls, data: Mapping) -> 'RegistrySnapshot':
        return cls(data.get("entries", {}))


SEMVER_PATTERN = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?(?:\+([0-9A-Za-z.-]+))?$")


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class SemanticVersion:
    """
    An npm (semver) version.

    Ordering follows semver precedence: a prerelease sorts below its release,
    numeric prerelease identifiers compare as numbers, and build metadata is
    ignored. ``str()`` gives back the string the registry published.
    """
    major: int
    minor: int
    patch: int
    prerelease: str = ""
    build: str = ""
    raw: str = field(default="", repr=False)

    @classmethod
    def parse(cls, version_str: str) -> 'SemanticVersion':
        match = SEMVER_PATTERN.match(version_str)
        if not match:
            raise ValueError(f"Invalid version: {version_str}")
        return cls(
            major=int(match.group(1)),
            minor=int(match.group(2)),
            patch=int(match.group(3)),
            prerelease=match.group(4) or "",
            build=match.group(5) or "",
            raw=version_str,
        )

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def sort_key(self) -> Tuple:
        if not self.prerelease:
            return (self.major, self.minor, self.patch, (1,))
        identifiers = tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part)
            for part in self.prerelease.split(".")
        )
        return (self.major, self.minor, self.patch, (0, identifiers))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self.sort_key() == other.sort_key()

    def __lt__(self, other: 'SemanticVersion') -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __hash__(self) -> int:
        return hash(self.sort_key())

    def __str__(self) -> str:
        if self.raw:
            return self.raw
        version = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            version += f"-{self.prerelease}"
        if self.build:
            version += f"+{self.build}"
        return version


@dataclass(frozen=True)
class PublishedState:
    """What the registry currently holds for the types-registry package."""
    version: SemanticVersion          # version tagged "latest"
    content_hash: str                 # typesPublisherContentHash of that version
    last_modified: datetime
    highest_version: SemanticVersion  # highest release (X.Y.Z) ever uploaded

    @property
    def was_promoted(self) -> bool:
        """True if the newest upload made it to "latest"."""
        return self.highest_version == self.version
