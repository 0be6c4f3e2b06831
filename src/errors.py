"""Exception hierarchy shared by the graph pipeline and its collaborators."""

from __future__ import annotations

from typing import Any, Sequence


class FeatGraphError(Exception):
    """Base class for every failure that aborts a build pass."""


class MissingResolveData(FeatGraphError):
    """The metadata snapshot carries no resolved dependency graph."""


class IdentityMismatch(FeatGraphError):
    """Package list and resolve list are not index-aligned."""


class NameNotFound(FeatGraphError):
    """A resolved dependency has no declared counterpart."""

    def __init__(self, name: str, package: str = ""):
        self.name = name
        self.package = package
        where = f" in {package}" if package else ""
        super().__init__(f"No dependency named {name}{where}")


class CyclicFeatureGraph(FeatGraphError):
    """Feature activation contains a cycle."""

    def __init__(self, cycle: Sequence[Any] = ()):
        self.cycle = list(cycle)
        path = " -> ".join(str(n) for n in self.cycle)
        super().__init__(f"cyclic feature activation is not supported: {path}")


class InvalidPlatformPredicate(FeatGraphError):
    """A target predicate could not be parsed."""


class UnknownPlatform(FeatGraphError):
    """A requested target triple could not be interpreted."""


class MetadataLoadError(FeatGraphError):
    """The workspace metadata snapshot could not be produced or read."""


class StashExistsError(FeatGraphError):
    """A manifest already carries stashed changes from a previous run."""


class NoStashError(FeatGraphError):
    """A manifest has nothing stashed to restore."""


class PackageLookupError(FeatGraphError):
    """A package, or the file or URL asked about it, is not available."""
