"""Resolved dependency list for one root package and platform."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from constants import Constants, DependencyBehavior
from registry.base import MetadataClient
from registry.nuget.client import NuGetMetadataClient
from versioning.models import PackageIdentity

from .discover import discover
from .install_script import install_script_text, render_install_script
from .resolve import resolve

logger = logging.getLogger(__name__)


class DependencyList:
    """The resolved transitive closure of a root package.

    Iterates PackageIdentity values in case-insensitive id order.
    """

    def __init__(self, resolved: Mapping[str, PackageIdentity]):
        self._resolved = dict(resolved)
        self._packages = sorted(self._resolved.values(), key=lambda p: p.id.lower())

    @classmethod
    def build(
        cls,
        package: PackageIdentity,
        platform: Optional[str] = None,
        client: Optional[MetadataClient] = None,
        policy: Optional[DependencyBehavior] = None,
        max_workers: Optional[int] = None,
    ) -> "DependencyList":
        """Discover and resolve the dependencies of ``package``.

        Raises:
            PackageNotFound: A visited package version is unknown to the feed.
            UnsatisfiableConstraint: One package has no acceptable version.
            ResolutionFailed: Several packages have no acceptable version.
        """
        platform = platform or Constants.DEFAULT_PLATFORM
        if client is None:
            client = NuGetMetadataClient()

        discovery = discover(package, platform, client, max_workers=max_workers)
        discovery.raise_for_error()

        resolution = resolve(
            discovery.candidates, discovery.edges, package.id, policy, root_version=package.version
        )
        resolution.raise_for_error()
        return cls(resolution.resolved)

    @property
    def resolved(self) -> Mapping[str, PackageIdentity]:
        return MappingProxyType(self._resolved)

    @property
    def install_script(self) -> ET.Element:
        return render_install_script(self._resolved)

    def install_script_text(self) -> str:
        return install_script_text(self._resolved)

    def __iter__(self) -> Iterator[PackageIdentity]:
        return iter(self._packages)

    def __len__(self) -> int:
        return len(self._packages)

    def __contains__(self, package_id: object) -> bool:
        return isinstance(package_id, str) and package_id.lower() in self._resolved
