"""NuGet registry client: dependency metadata via the V3 registration API."""
from __future__ import annotations

import logging
import threading
import urllib.parse
from typing import Any, Dict, List, Optional

import semantic_version

from constants import Constants
from common.http_client import ResponseCache, get_json
from common.logging_utils import extra_context, is_debug_enabled, Timer, safe_url
from versioning.models import DependencyEdge, PackageIdentity, format_version, version_key
from versioning.ranges import parse_range, parse_version

from .frameworks import select_dependencies

logger = logging.getLogger(__name__)

HEADERS_JSON = {"Accept": "application/json"}


def _get_v3_registration_base(service_index: Dict[str, Any]) -> Optional[str]:
    """Get the registration base URL from a service index.

    Prefers the semver2-aware ``RegistrationsBaseUrl/3.6.0`` resource and
    falls back to any other ``RegistrationsBaseUrl`` flavor.
    """
    fallback = None
    for resource in service_index.get("resources", []):
        rtype = resource.get("@type")
        base_url = resource.get("@id")
        if not base_url or not isinstance(rtype, str):
            continue
        if rtype == Constants.NUGET_REGISTRATION_TYPE:
            return base_url if base_url.endswith("/") else base_url + "/"
        if fallback is None and rtype.startswith("RegistrationsBaseUrl"):
            fallback = base_url if base_url.endswith("/") else base_url + "/"
    return fallback


class NuGetMetadataClient:
    """Metadata client backed by a NuGet V3 feed.

    Registration indexes and raw responses are memoized for the lifetime of
    the instance only, so a client is meant to be created per resolution
    request.
    """

    def __init__(self, service_index_url: Optional[str] = None):
        self.service_index_url = service_index_url or Constants.NUGET_SERVICE_INDEX
        self._lock = threading.Lock()
        self._registration_base: Optional[str] = None
        self._entries: Dict[str, Optional[List[Dict[str, Any]]]] = {}
        self._http_cache = ResponseCache()

    def _registration_base_url(self) -> Optional[str]:
        with self._lock:
            if self._registration_base is not None:
                return self._registration_base
        status_code, _, index_data = get_json(self.service_index_url, headers=HEADERS_JSON, cache=self._http_cache)
        if status_code != 200 or not isinstance(index_data, dict):
            logger.warning(
                "NuGet service index unavailable",
                extra=extra_context(
                    event="http_response",
                    component="client",
                    outcome="unavailable",
                    status_code=status_code,
                    target=safe_url(self.service_index_url),
                    package_manager="nuget",
                ),
            )
            return None
        base = _get_v3_registration_base(index_data)
        if base is None:
            logger.warning("NuGet service index has no registration resource")
            return None
        with self._lock:
            self._registration_base = base
        return base

    def _fetch_catalog_entries(self, package_id: str) -> Optional[List[Dict[str, Any]]]:
        """Fetch every catalog entry of a package, following registration pages."""
        base = self._registration_base_url()
        if base is None:
            return None
        encoded_id = urllib.parse.quote(package_id.lower(), safe="")
        status_code, _, reg_data = get_json(
            f"{base}{encoded_id}/index.json", headers=HEADERS_JSON, cache=self._http_cache
        )
        if status_code != 200 or not isinstance(reg_data, dict):
            return None

        entries: List[Dict[str, Any]] = []
        for page in reg_data.get("items", []):
            leaves = page.get("items")
            if leaves is None and page.get("@id"):
                # Large packages ship pages by reference only.
                page_status, _, page_data = get_json(
                    page["@id"], headers=HEADERS_JSON, cache=self._http_cache
                )
                if page_status != 200 or not isinstance(page_data, dict):
                    logger.warning("Couldn't fetch registration page %s", safe_url(page["@id"]))
                    return None
                leaves = page_data.get("items", [])
            for leaf in leaves or []:
                catalog_entry = leaf.get("catalogEntry")
                if isinstance(catalog_entry, dict):
                    entries.append(catalog_entry)
        return entries

    def _catalog_entries(self, package_id: str) -> Optional[List[Dict[str, Any]]]:
        key = package_id.lower()
        with self._lock:
            if key in self._entries:
                return self._entries[key]
        entries = self._fetch_catalog_entries(package_id)
        with self._lock:
            self._entries[key] = entries
        return entries

    def list_versions(self, package_id: str) -> List[semantic_version.Version]:
        """Return every published version of a package, lowest first."""
        versions = []
        for entry in self._catalog_entries(package_id) or []:
            try:
                versions.append(parse_version(entry.get("version", "")))
            except ValueError:
                continue  # Skip invalid versions
        return sorted(set(versions), key=version_key)

    def resolve_dependencies(
        self, identity: PackageIdentity, platform: str
    ) -> Optional[List[DependencyEdge]]:
        """Return the dependency edges of one package version for a framework.

        Args:
            identity: Package id and exact version
            platform: Target framework moniker

        Returns:
            List of edges, or None when the package or version is unknown
        """
        with Timer() as t:
            entries = self._catalog_entries(identity.id)
        entry = None
        if entries and identity.version is not None:
            wanted = version_key(identity.version)
            for candidate in entries:
                try:
                    if version_key(parse_version(candidate.get("version", ""))) == wanted:
                        entry = candidate
                        break
                except ValueError:
                    continue

        if entry is None:
            logger.warning(
                "Package not found in NuGet registry",
                extra=extra_context(
                    event="http_response",
                    outcome="not_found",
                    target=str(identity),
                    package_manager="nuget",
                ),
            )
            return None

        edges: List[DependencyEdge] = []
        for dependency in select_dependencies(entry.get("dependencyGroups") or [], platform):
            dep_id = dependency.get("id")
            if not dep_id:
                continue
            try:
                dep_range = parse_range(dependency.get("range", ""))
            except ValueError as exc:
                logger.warning("Skipping dependency %s of %s: %s", dep_id, identity, exc)
                continue
            edges.append(DependencyEdge(identity, dep_id, dep_range))

        if is_debug_enabled(logger):
            logger.debug(
                "NuGet dependencies fetched",
                extra=extra_context(
                    event="package_found",
                    component="client",
                    action="resolve_dependencies",
                    outcome="success",
                    target=f"{identity.id}@{format_version(identity.version)}",
                    count=len(edges),
                    duration_ms=t.duration_ms(),
                    package_manager="nuget",
                ),
            )
        return edges
