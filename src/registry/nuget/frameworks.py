"""Target framework handling for NuGet dependency groups.

Registration metadata lists dependencies per target framework, e.g.
``.NETStandard2.0`` or ``net6.0``. Picking a group is a simplified form of
NuGet's nearest-framework rule: exact match, then the highest lower-or-equal
version of the same framework family, then the highest netstandard group for
.NET Core and .NET Framework targets, then the framework-agnostic group.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)

ANY_FRAMEWORK = "any"

_TFM_RE = re.compile(r"^([a-z]+?)(\d[\d.]*)?$")

Framework = Tuple[str, Tuple[int, ...]]

# Families that can consume netstandard libraries when no own group exists.
_COMPATIBLE_FAMILIES = {
    "netcoreapp": ("netstandard",),
    "netframework": ("netstandard",),
}


def parse_framework(moniker: Optional[str]) -> Optional[Framework]:
    """Parse a framework moniker into (family, version).

    Returns None for empty or unrecognized monikers.
    """
    if not moniker:
        return None
    s = moniker.strip().lower().lstrip(".")
    s = s.split("-", 1)[0]  # drop OS suffix: net6.0-windows
    m = _TFM_RE.match(s)
    if not m:
        return None
    family, digits = m.group(1), m.group(2) or ""
    if "." in digits:
        version = tuple(int(p) for p in digits.split(".") if p)
    else:
        version = tuple(int(c) for c in digits)

    if family == "net":
        # net5.0+ is .NET Core lineage; net461 style is .NET Framework.
        if "." in digits and version and version[0] >= 5:
            family = "netcoreapp"
        else:
            family = "netframework"
    return family, version


def _trim_framework(framework: Optional[Framework]) -> Optional[Framework]:
    if framework is None:
        return None
    family, version = framework
    out = list(version)
    while out and out[-1] == 0:
        out.pop()
    return family, tuple(out)


def _nearest(
    groups: List[Dict[str, Any]], family: str, ceiling: Optional[Tuple[int, ...]]
) -> Optional[Tuple[Tuple[int, ...], Dict[str, Any]]]:
    """Highest group of ``family`` whose version does not exceed ``ceiling``."""
    best = None
    for group in groups:
        parsed = _trim_framework(parse_framework(group.get("targetFramework")))
        if parsed is None or parsed[0] != family:
            continue
        if ceiling is not None and parsed[1] > ceiling:
            continue
        if best is None or parsed[1] > best[0]:
            best = (parsed[1], group)
    return best


def _deps(group: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [d for d in group.get("dependencies") or [] if isinstance(d, dict)]


def select_dependencies(groups: List[Dict[str, Any]], platform: Optional[str]) -> List[Dict[str, Any]]:
    """Pick the dependency entries that apply to ``platform``.

    Args:
        groups: ``dependencyGroups`` from a registration catalog entry
        platform: Target framework moniker, or "any"

    Returns:
        List of ``{"id": ..., "range": ...}`` dictionaries
    """
    groups = [g for g in groups or [] if isinstance(g, dict)]
    agnostic = [g for g in groups if not g.get("targetFramework")]

    if not platform or platform.strip().lower() == ANY_FRAMEWORK:
        if agnostic:
            return _deps(agnostic[0])
        merged: List[Dict[str, Any]] = []
        for group in groups:
            merged.extend(_deps(group))
        return merged

    target = parse_framework(platform)
    if target is not None:
        family, version = _trim_framework(target)
        for group in groups:
            if _trim_framework(parse_framework(group.get("targetFramework"))) == (family, version):
                return _deps(group)
        best = _nearest(groups, family, version)
        for fallback in _COMPATIBLE_FAMILIES.get(family, ()):
            if best is not None:
                break
            best = _nearest(groups, fallback, None)
        if best is not None:
            if is_debug_enabled(logger):
                logger.debug(
                    "Using nearest framework group",
                    extra=extra_context(
                        event="decision",
                        component="frameworks",
                        action="select_dependencies",
                        target=platform,
                        outcome=best[1].get("targetFramework"),
                    ),
                )
            return _deps(best[1])

    if agnostic:
        return _deps(agnostic[0])
    return []
