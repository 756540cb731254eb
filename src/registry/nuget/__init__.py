"""NuGet registry package.

This package provides NuGet metadata support:
- client.py: dependency metadata from the NuGet V3 registration API
- frameworks.py: target framework parsing and dependency-group selection
"""

from .client import NuGetMetadataClient  # noqa: F401
from .frameworks import parse_framework, select_dependencies  # noqa: F401

__all__ = [
    "NuGetMetadataClient",
    "parse_framework",
    "select_dependencies",
]
