"""Dependency discovery and version resolution."""

from .dependency_list import DependencyList  # noqa: F401
from .discover import DiscoveryResult, discover  # noqa: F401
from .errors import (  # noqa: F401
    PackageNotFound,
    ResolutionError,
    ResolutionFailed,
    UnsatisfiableConstraint,
)
from .install_script import install_script_text, render_install_script  # noqa: F401
from .resolve import ResolutionResult, resolve  # noqa: F401

__all__ = [
    "DependencyList",
    "DiscoveryResult",
    "PackageNotFound",
    "ResolutionError",
    "ResolutionFailed",
    "ResolutionResult",
    "UnsatisfiableConstraint",
    "discover",
    "install_script_text",
    "render_install_script",
    "resolve",
]
