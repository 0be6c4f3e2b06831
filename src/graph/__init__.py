"""Feature activation graph: identities, construction, platform propagation, reduction."""

from .identity import Feature, FeatureKind, Fid, Link, Pid
from .builder import FeatGraph

__all__ = [
    "Feature",
    "FeatureKind",
    "Fid",
    "Link",
    "Pid",
    "FeatGraph",
]
