"""Packages resolved at more than one version."""

from collections import defaultdict
from typing import Dict, List, Set

import semantic_version

from metadata.models import Metadata


def find_duplicates(meta: Metadata) -> Dict[str, List[str]]:
    """Map package name -> its versions (ascending) for every name seen twice or more."""
    versions: Dict[str, Set[str]] = defaultdict(set)
    for package in meta.packages:
        versions[package.name].add(package.version)
    return {
        name: sorted(found, key=semantic_version.Version)
        for name, found in sorted(versions.items())
        if len(found) > 1
    }
