"""Package and feature identities over an immutable metadata snapshot.

Identities are cheap value keys: a Pid is an index into the snapshot's
package list, a Fid pairs a Pid with an optional feature name (None is the
package's base code). Neither copies anything out of the snapshot.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Tuple

from errors import NameNotFound
from metadata.models import DepKindInfo, Dependency, Metadata, Package


@dataclass(frozen=True, order=True)
class Pid:
    """Package identity, ordered and compared by index only."""
    index: int
    meta: Metadata = field(compare=False, hash=False, repr=False)

    @property
    def package(self) -> Package:
        return self.meta.packages[self.index]

    @property
    def name(self) -> str:
        return self.package.name

    @property
    def version(self) -> str:
        return self.package.version

    def __repr__(self) -> str:
        return f"Pid({self.index} / {self.package.id})"


@functools.total_ordering
@dataclass(frozen=True)
class Fid:
    """Feature identity; `feature` None means the base feature."""
    pid: Pid
    feature: Optional[str] = None

    def _key(self) -> Tuple[int, bool, str]:
        return (self.pid.index, self.feature is not None, self.feature or "")

    def __lt__(self, other: "Fid") -> bool:
        if not isinstance(other, Fid):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        if self.feature is None:
            return f"{self.pid.name} {self.pid.version}"
        return f"{self.pid.name} {self.pid.version}/{self.feature}"


class FeatureKind(Enum):
    ROOT = "root"
    WORKSPACE = "workspace"
    EXTERNAL = "external"


@functools.total_ordering
@dataclass(frozen=True)
class Feature:
    """A node of the feature graph.

    A closed union of three variants: ROOT carries no identity, WORKSPACE
    and EXTERNAL carry the Fid of a workspace member or of a package pulled
    in only as a dependency.
    """
    kind: FeatureKind
    fid: Optional[Fid] = None

    @classmethod
    def root(cls) -> "Feature":
        return cls(FeatureKind.ROOT)

    @classmethod
    def workspace(cls, fid: Fid) -> "Feature":
        return cls(FeatureKind.WORKSPACE, fid)

    @classmethod
    def external(cls, fid: Fid) -> "Feature":
        return cls(FeatureKind.EXTERNAL, fid)

    @property
    def pid(self) -> Optional[Pid]:
        return self.fid.pid if self.fid is not None else None

    @property
    def is_root(self) -> bool:
        return self.kind is FeatureKind.ROOT

    @property
    def is_workspace(self) -> bool:
        return self.kind is FeatureKind.WORKSPACE

    @property
    def is_external(self) -> bool:
        return self.kind is FeatureKind.EXTERNAL

    def label(self) -> str:
        """`name version` plus the feature name on a second line, or `root`."""
        if self.fid is None:
            return "root"
        pkg = self.fid.pid.package
        text = f"{pkg.name} {pkg.version}"
        if self.fid.feature is not None:
            text += f"\n{self.fid.feature}"
        return text

    def __lt__(self, other: "Feature") -> bool:
        if not isinstance(other, Feature):
            return NotImplemented
        if self.fid is None or other.fid is None:
            return self.fid is None and other.fid is not None
        return self.fid < other.fid

    def __str__(self) -> str:
        return "root" if self.fid is None else str(self.fid)


@dataclass(frozen=True)
class Link:
    """Edge attribute: why a source feature activates its target.

    An empty `kinds` means the edge is unconditional.
    """
    optional: bool = False
    kinds: Tuple[DepKindInfo, ...] = ()


UNCONDITIONAL = Link()


def normalize_name(name: str) -> str:
    return name.lower().replace("-", "_")


def names_match(a: str, b: str) -> bool:
    """Compare package names ignoring ASCII case and `-`/`_` spelling."""
    return normalize_name(a) == normalize_name(b)


def find_dep_by_name(deps: Sequence[Dependency], name: str, package: str = "") -> Dependency:
    """Find the declared dependency known locally as `name`.

    A renamed dependency is known by its rename, any other by its name.

    Raises:
        NameNotFound: If no declaration matches.
    """
    for dep in deps:
        local = dep.rename if dep.rename is not None else dep.name
        if names_match(local, name):
            return dep
    raise NameNotFound(name, package)
