"""NuGet version and version-range parsing.

NuGet versions have up to four numeric parts and an optional prerelease
label. They are mapped onto ``semantic_version.Version``: missing parts
become zero, a non-zero fourth part (revision) is kept as the only build
component, and NuGet build metadata (``+...``) is dropped since it never
takes part in ordering.

Range notation follows NuGet:

    1.0            1.0 <= x
    [1.0]          x == 1.0
    (1.0,)         1.0 < x
    [1.0,2.0)      1.0 <= x < 2.0
    (,2.0]         x <= 2.0
    (, )           any version
"""

import re

import semantic_version

from .models import VersionRange, version_key

_VERSION_RE = re.compile(
    r"^\s*[vV]?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.(\d+))?"
    r"(?:-([0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?"
    r"(?:\+[0-9A-Za-z\-.]*)?\s*$"
)


def parse_version(text: str) -> semantic_version.Version:
    """Parse a NuGet version string.

    Raises:
        ValueError: If ``text`` is not a valid NuGet version.
    """
    m = _VERSION_RE.match(text or "")
    if not m:
        raise ValueError(f"Invalid NuGet version: {text!r}")
    major, minor, patch, revision = (int(g) if g else 0 for g in m.group(1, 2, 3, 4))
    prerelease = ()
    if m.group(5):
        # NuGet tolerates leading zeros in numeric labels (beta.01); semver does not.
        prerelease = tuple(str(int(p)) if p.isdigit() else p for p in m.group(5).split("."))
    build = (str(revision),) if revision else ()
    try:
        return semantic_version.Version(
            major=major, minor=minor, patch=patch, prerelease=prerelease, build=build
        )
    except ValueError as exc:
        raise ValueError(f"Invalid NuGet version: {text!r} ({exc})") from exc


def _parse_bound(text: str):
    text = text.strip()
    return parse_version(text) if text else None


def parse_range(text: str) -> VersionRange:
    """Parse NuGet range notation into a VersionRange.

    An empty string means "any version".

    Raises:
        ValueError: If the notation is malformed or describes an empty range.
    """
    s = (text or "").strip()
    if not s:
        return VersionRange()

    if s[0] not in "[(":
        return VersionRange(min_version=parse_version(s), include_min=True)

    if len(s) < 2 or s[-1] not in "])":
        raise ValueError(f"Invalid version range: {text!r}")

    include_min = s[0] == "["
    include_max = s[-1] == "]"
    inner = s[1:-1]

    if "," not in inner:
        # Only [x] is meaningful without a comma.
        if not (include_min and include_max) or not inner.strip():
            raise ValueError(f"Invalid version range: {text!r}")
        exact = parse_version(inner)
        return VersionRange(exact, exact, include_min=True, include_max=True)

    parts = inner.split(",")
    if len(parts) != 2:
        raise ValueError(f"Invalid version range: {text!r}")
    low, high = _parse_bound(parts[0]), _parse_bound(parts[1])

    if low is None and include_min:
        raise ValueError(f"Invalid version range: {text!r} (inclusive bound needs a version)")
    if high is None and include_max:
        raise ValueError(f"Invalid version range: {text!r} (inclusive bound needs a version)")

    if low is not None and high is not None:
        lk, hk = version_key(low), version_key(high)
        if lk > hk or (lk == hk and not (include_min and include_max)):
            raise ValueError(f"Empty version range: {text!r}")

    return VersionRange(low, high, include_min=include_min, include_max=include_max)
