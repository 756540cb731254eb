"""Interface consumed by discovery from any package metadata source."""

from __future__ import annotations

from typing import List, Optional, Protocol

import semantic_version

from versioning.models import DependencyEdge, PackageIdentity


class MetadataClient(Protocol):
    """Resolves one concrete package to its direct dependency edges."""

    def resolve_dependencies(
        self, identity: PackageIdentity, platform: str
    ) -> Optional[List[DependencyEdge]]:
        """Return the edges outgoing from ``identity``, or None when unknown."""

    def list_versions(self, package_id: str) -> List[semantic_version.Version]:
        """Return every published version of ``package_id`` (may be empty)."""
