"""Graph discovery: collect every reachable (id, version) node and its edges.

Traversal runs from the root over concrete package versions. Each dependency
edge is recorded as-is and the walk descends into the lowest version the
edge admits; the resolver later reconciles upward among everything seen.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

import semantic_version

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, Timer
from registry.base import MetadataClient
from versioning.models import (
    CandidateSet,
    DependencyEdge,
    PackageIdentity,
    edge_sort_key,
    version_key,
)

from .errors import PackageNotFound

logger = logging.getLogger(__name__)

NodeKey = Tuple[str, semantic_version.Version]


@dataclass(frozen=True)
class DiscoveryResult:
    """Outcome of one discovery run; ``error`` is set instead of raising."""
    candidates: CandidateSet
    edges: Tuple[DependencyEdge, ...]
    visited: FrozenSet[NodeKey] = frozenset()
    error: Optional[PackageNotFound] = None
    lookups: int = field(default=0, compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class _Traversal:
    """Per-request traversal state; every mutation goes through ``_lock``."""

    def __init__(self, client: MetadataClient, platform: str):
        self.client = client
        self.platform = platform
        self._lock = threading.Lock()
        self._visited: Set[NodeKey] = set()
        self._candidates: Dict[str, Set[semantic_version.Version]] = {}
        self._edges: Set[DependencyEdge] = set()
        self.lookups = 0

    def claim(self, identity: PackageIdentity) -> bool:
        """Atomically mark a node visited; False if it already was."""
        with self._lock:
            if identity.key in self._visited:
                return False
            self._visited.add(identity.key)
            self._candidates.setdefault(identity.id.lower(), set()).add(identity.version)
            return True

    def expand(self, identity: PackageIdentity) -> List[PackageIdentity]:
        """Look up one node, record its edges and return the nodes to descend into."""
        with self._lock:
            self.lookups += 1
        edges = self.client.resolve_dependencies(identity, self.platform)
        if edges is None:
            raise PackageNotFound(identity, self.platform)

        children = [
            PackageIdentity(edge.target_id, self._lowest_version(edge)) for edge in edges
        ]
        with self._lock:
            self._edges.update(edges)

        if is_debug_enabled(logger):
            logger.debug(
                "Expanded package node",
                extra=extra_context(
                    event="discover",
                    component="discover",
                    action="expand",
                    target=str(identity),
                    count=len(edges),
                ),
            )
        return children

    def _lowest_version(self, edge: DependencyEdge) -> semantic_version.Version:
        rng = edge.range
        if rng.min_version is not None and rng.include_min:
            return rng.min_version
        # Open or exclusive lower bound: ask the feed what exists.
        available = [v for v in self.client.list_versions(edge.target_id) if rng.satisfies(v)]
        if not available:
            raise PackageNotFound(PackageIdentity(edge.target_id, rng.min_version), self.platform)
        return min(available, key=version_key)

    def result(self, error: Optional[PackageNotFound] = None) -> DiscoveryResult:
        with self._lock:
            if error is not None:
                return DiscoveryResult({}, (), frozenset(self._visited), error, self.lookups)
            candidates = {k: frozenset(v) for k, v in self._candidates.items()}
            edges = tuple(sorted(self._edges, key=edge_sort_key))
            return DiscoveryResult(candidates, edges, frozenset(self._visited), None, self.lookups)


def _walk_sequential(traversal: _Traversal, root: PackageIdentity) -> None:
    stack = [root]
    while stack:
        node = stack.pop()
        if not traversal.claim(node):
            continue
        # Reverse so the first-listed dependency is explored first.
        stack.extend(reversed(traversal.expand(node)))


def _walk_concurrent(traversal: _Traversal, root: PackageIdentity, max_workers: int) -> None:
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="discover") as pool:
        pending = set()
        if traversal.claim(root):
            pending.add(pool.submit(traversal.expand, root))
        while pending:
            done, pending = wait(pending, return_when=FIRST_COMPLETED)
            for future in done:
                try:
                    children = future.result()
                except PackageNotFound:
                    for other in pending:
                        other.cancel()
                    raise
                for child in children:
                    if traversal.claim(child):
                        pending.add(pool.submit(traversal.expand, child))


def discover(
    root: PackageIdentity,
    platform: str,
    client: MetadataClient,
    max_workers: Optional[int] = None,
) -> DiscoveryResult:
    """Discover every package version reachable from ``root``.

    Args:
        root: Root package id and exact version
        platform: Opaque platform tag passed to every lookup
        client: Metadata source
        max_workers: Concurrent lookups; 1 walks sequentially. Defaults to
            Constants.MAX_WORKERS.

    Returns:
        DiscoveryResult with candidates and edges, or with ``error`` set to
        the first PackageNotFound encountered.
    """
    if root.version is None:
        raise ValueError(f"Root package {root.id} needs an exact version")
    workers = max_workers if max_workers is not None else Constants.MAX_WORKERS
    traversal = _Traversal(client, platform)

    logger.info("Discovering dependencies of %s for %s", root, platform)
    with Timer() as t:
        try:
            if workers > 1:
                _walk_concurrent(traversal, root, workers)
            else:
                _walk_sequential(traversal, root)
        except PackageNotFound as exc:
            logger.error("%s", exc)
            return traversal.result(exc)

    result = traversal.result()
    logger.info(
        "Discovered %d package versions across %d packages",
        len(result.visited),
        len(result.candidates),
        extra=extra_context(
            event="discover",
            component="discover",
            outcome="success",
            duration_ms=t.duration_ms(),
            count=len(result.edges),
        ),
    )
    return result
