"""Data models for dependency discovery and version resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

import semantic_version


def version_key(version: semantic_version.Version) -> Tuple:
    """Total ordering key for parsed versions.

    semver precedence first, then the NuGet revision that parse_version
    stores as a numeric build component.
    """
    revision = tuple(int(part) for part in (version.build or ()) if part.isdigit())
    return version.precedence_key, revision


def format_version(version: Optional[semantic_version.Version]) -> str:
    """Render a parsed version back into NuGet notation (``1.2.3.4-beta``)."""
    if version is None:
        return ""
    text = f"{version.major}.{version.minor}.{version.patch}"
    if version.build:
        text += "." + ".".join(version.build)
    if version.prerelease:
        text += "-" + ".".join(version.prerelease)
    return text


@dataclass(frozen=True)
class PackageIdentity:
    """A concrete package node: id plus version.

    Ids compare case-insensitively through ``key``; ``id`` keeps the
    spelling used by whoever produced the identity.
    """
    id: str
    version: Optional[semantic_version.Version]

    @property
    def key(self) -> Tuple[str, Optional[semantic_version.Version]]:
        return self.id.lower(), self.version

    def __str__(self) -> str:
        return f"{self.id} {format_version(self.version)}".rstrip()


@dataclass(frozen=True)
class VersionRange:
    """Dependency constraint onto a package id.

    A missing bound is unbounded on that side.
    """
    min_version: Optional[semantic_version.Version] = None
    max_version: Optional[semantic_version.Version] = None
    include_min: bool = True
    include_max: bool = False

    def satisfies(self, version: semantic_version.Version) -> bool:
        """Return True when ``version`` lies within this range."""
        key = version_key(version)
        if self.min_version is not None:
            low = version_key(self.min_version)
            if key < low or (key == low and not self.include_min):
                return False
        if self.max_version is not None:
            high = version_key(self.max_version)
            if key > high or (key == high and not self.include_max):
                return False
        return True

    def __str__(self) -> str:
        if (
            self.min_version is not None
            and self.max_version is not None
            and self.include_min
            and self.include_max
            and version_key(self.min_version) == version_key(self.max_version)
        ):
            return f"[{format_version(self.min_version)}]"
        left = "[" if self.include_min and self.min_version is not None else "("
        right = "]" if self.include_max and self.max_version is not None else ")"
        return f"{left}{format_version(self.min_version)}, {format_version(self.max_version)}{right}"


@dataclass(frozen=True)
class DependencyEdge:
    """A constraint from one concrete package onto another package id."""
    source: PackageIdentity
    target_id: str
    range: VersionRange

    @property
    def target_key(self) -> str:
        return self.target_id.lower()


def edge_sort_key(edge: DependencyEdge) -> Tuple:
    """Deterministic ordering for edges independent of discovery order."""
    source_version = version_key(edge.source.version) if edge.source.version is not None else ()
    return (
        edge.source.id.lower(), source_version, edge.target_key, str(edge.range),
        edge.source.id, edge.target_id,
    )


# Package id (lowercased) -> every version discovered for it.
CandidateSet = Mapping[str, FrozenSet[semantic_version.Version]]

# Package id (lowercased) -> the one identity chosen for it.
ResolvedSet = Dict[str, PackageIdentity]

# Platform tags are opaque to the core; the NuGet client reads them as TFMs.
PlatformTag = str
