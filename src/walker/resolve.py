"""Version resolution: collapse discovered candidates to one version per package.

Every edge targeting a package constrains it, whichever requirer produced
the edge. Of the candidate versions satisfying all of them, the configured
DependencyBehavior picks the highest or the lowest. Packages with no
surviving version are all reported together.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

import semantic_version

from constants import Constants, DependencyBehavior
from versioning.models import (
    DependencyEdge,
    PackageIdentity,
    ResolvedSet,
    edge_sort_key,
    version_key,
)

from .errors import ResolutionFailed, UnsatisfiableConstraint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of a resolution pass; ``errors`` is empty on success."""
    resolved: ResolvedSet = field(default_factory=dict)
    errors: Tuple[UnsatisfiableConstraint, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_error(self) -> None:
        if len(self.errors) == 1:
            raise self.errors[0]
        if self.errors:
            raise ResolutionFailed(self.errors)


def _display_names(
    candidate_ids: Iterable[str], edges: Iterable[DependencyEdge], root_id: str
) -> Dict[str, str]:
    """Pick one spelling per package id, independent of input order."""
    spellings: Dict[str, Set[str]] = {}
    for edge in edges:
        spellings.setdefault(edge.target_key, set()).add(edge.target_id)
        spellings.setdefault(edge.source.id.lower(), set()).add(edge.source.id)
    names = {key: min(ids) for key, ids in spellings.items()}
    for candidate_id in candidate_ids:
        names.setdefault(candidate_id.lower(), candidate_id)
    names[root_id.lower()] = root_id
    return names


def resolve(
    candidates: Mapping[str, Iterable[semantic_version.Version]],
    edges: Iterable[DependencyEdge],
    root_id: str,
    policy: Optional[DependencyBehavior] = None,
    root_version: Optional[semantic_version.Version] = None,
) -> ResolutionResult:
    """Select exactly one version per candidate package.

    Args:
        candidates: Package id -> versions discovered for it
        edges: Every dependency edge recorded during discovery
        root_id: Id of the requested root package
        policy: HIGHEST or LOWEST; defaults to Constants.DEFAULT_POLICY
        root_version: Requested root version. When given, it is the root's
            only candidate, so the root is never swapped for another version
            of itself reached through a cycle.

    Returns:
        ResolutionResult with the resolved set, or every
        UnsatisfiableConstraint found, sorted by package id.
    """
    policy = policy or Constants.DEFAULT_POLICY
    edges = list(edges)

    pool: Dict[str, Set[semantic_version.Version]] = {}
    for package_id, versions in candidates.items():
        pool.setdefault(package_id.lower(), set()).update(versions)

    constraints: Dict[str, List[DependencyEdge]] = {}
    for edge in sorted(set(edges), key=edge_sort_key):
        constraints.setdefault(edge.target_key, []).append(edge)

    names = _display_names(candidates.keys(), edges, root_id)
    pick = max if policy is DependencyBehavior.HIGHEST else min

    resolved: ResolvedSet = {}
    errors: List[UnsatisfiableConstraint] = []
    root_key = root_id.lower()
    if root_key not in pool:
        errors.append(UnsatisfiableConstraint(root_id))
    elif root_version is not None:
        pool[root_key] = {root_version}

    for key in sorted(pool):
        incoming = constraints.get(key, [])
        surviving = [v for v in pool[key] if all(edge.range.satisfies(v) for edge in incoming)]
        if not surviving:
            errors.append(UnsatisfiableConstraint(names[key], incoming))
            continue
        resolved[key] = PackageIdentity(names[key], pick(surviving, key=version_key))

    if errors:
        errors.sort(key=lambda e: e.package_id.lower())
        for error in errors:
            logger.error("%s", error)
        return ResolutionResult({}, tuple(errors))

    logger.info("Resolved %d packages using %s policy", len(resolved), policy.value)
    return ResolutionResult(resolved)
