"""Failures of a resolution request.

Discovery and resolution return these as values on their result objects;
``raise_for_error()`` on a result turns them into exceptions.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from versioning.models import DependencyEdge, PackageIdentity, format_version


class ResolutionError(Exception):
    """Base class for every failure of a resolution request."""


class PackageNotFound(ResolutionError):
    """The metadata source had no data for a node reached during discovery."""

    def __init__(self, identity: PackageIdentity, platform: Optional[str]):
        self.identity = identity
        self.platform = platform
        super().__init__(
            f"Package {identity.id} with version {format_version(identity.version) or '<none>'} "
            f"could not be found in the NuGet repository for framework {platform}"
        )


class UnsatisfiableConstraint(ResolutionError):
    """No discovered version of a package satisfies all constraints onto it.

    ``constraints`` lists the edges that target the package so the caller
    can tell which requirers disagree.
    """

    def __init__(self, package_id: str, constraints: Iterable[DependencyEdge] = ()):
        self.package_id = package_id
        self.constraints = tuple(constraints)
        detail = "; ".join(f"{edge.range} required by {edge.source}" for edge in self.constraints)
        message = f"No version of {package_id} satisfies all constraints"
        super().__init__(f"{message}: {detail}" if detail else message)

    @property
    def requirers(self) -> Sequence[PackageIdentity]:
        return tuple(edge.source for edge in self.constraints)


class ResolutionFailed(ResolutionError):
    """Several packages were unsatisfiable in the same pass."""

    def __init__(self, errors: Sequence[UnsatisfiableConstraint]):
        self.errors = tuple(errors)
        ids = ", ".join(e.package_id for e in self.errors)
        super().__init__(f"{len(self.errors)} packages have unsatisfiable constraints: {ids}")
