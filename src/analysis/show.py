"""Package details for the `show` command: summary, manifest, readme and docs."""

from __future__ import annotations

import logging
import os
from typing import List, Optional

import semantic_version

from constants import Constants
from errors import PackageLookupError
from graph.identity import names_match
from metadata.models import Metadata, Package

logger = logging.getLogger(__name__)


def find_package(meta: Metadata, name: str, version: Optional[str] = None) -> Package:
    """The package called `name`, at `version` or else its newest version.

    Raises:
        PackageLookupError: If no package matches.
    """
    found = [
        p for p in meta.packages
        if names_match(p.name, name) and (version is None or p.version == version)
    ]
    if not found:
        wanted = f"{name} {version}" if version else name
        raise PackageLookupError(f"Package {wanted} is not part of the workspace dependencies")
    found.sort(key=lambda p: semantic_version.Version(p.version))
    if len(found) > 1:
        logger.info(
            "%s is present at versions %s, showing %s",
            name, ", ".join(p.version for p in found), found[-1].version,
        )
    return found[-1]


def summary(package: Package) -> List[str]:
    lines = [f"{package.name} {package.version}"]
    if package.description:
        lines.append(package.description.strip())
    for label, value in (
        ("manifest", package.manifest_path),
        ("documentation", package.documentation),
        ("homepage", package.homepage),
        ("repository", package.repository),
    ):
        if value:
            lines.append(f"{label}: {value}")
    if package.features:
        lines.append(f"features: {', '.join(sorted(package.features))}")
    return lines


def manifest_text(package: Package) -> str:
    if not package.manifest_path:
        raise PackageLookupError(f"{package.name} {package.version} has no manifest path")
    with open(package.manifest_path, encoding="utf-8") as f:
        return f.read()


def readme_text(package: Package) -> str:
    """Readme declared by the package, relative to its manifest directory."""
    if not package.readme or not package.manifest_path:
        raise PackageLookupError(f"{package.name} {package.version} has no readme")
    path = os.path.join(os.path.dirname(package.manifest_path), package.readme)
    with open(path, encoding="utf-8") as f:
        return f.read()


def documentation_url(package: Package) -> str:
    """Declared documentation URL; docs.rs for registry packages without one."""
    if package.documentation:
        return package.documentation
    if package.source and package.source.startswith(Constants.REGISTRY_SOURCE_PREFIX):
        return Constants.DOCS_RS_URL.format(name=package.name, version=package.version)
    raise PackageLookupError(f"{package.name} {package.version} has no documentation URL")
