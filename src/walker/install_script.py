"""Render a resolved package set as a Processing.Command install script."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Mapping

from versioning.models import PackageIdentity, format_version

PC_NS = "Processing.Command"
ASSIGN_NS = "Processing.Command.Assign"

ET.register_namespace("pc", PC_NS)
ET.register_namespace("assign", ASSIGN_NS)


def install_command(package: PackageIdentity) -> str:
    return f"nuget:installPackageIntoFolder('{package.id}', '{format_version(package.version)}', '')"


def render_install_script(resolved: Mapping[str, PackageIdentity]) -> ET.Element:
    """Build the ``<Nugets>`` element with one evaluate command per package.

    Packages are emitted in case-insensitive id order.
    """
    root = ET.Element(
        "Nugets",
        {f"{{{PC_NS}}}ignorewhitespace": "yes", f"{{{PC_NS}}}hideme": "true"},
    )
    for package in sorted(resolved.values(), key=lambda p: p.id.lower()):
        ET.SubElement(
            root,
            f"{{{PC_NS}}}evaluate",
            {"select": install_command(package), f"{{{ASSIGN_NS}}}result": "."},
        )
    return root


def install_script_text(resolved: Mapping[str, PackageIdentity]) -> str:
    return ET.tostring(render_install_script(resolved), encoding="unicode")
