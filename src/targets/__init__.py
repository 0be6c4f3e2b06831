"""Target triples and platform predicates."""

from .cfg_expr import PlatformEvaluator, parse_cfg
from .triple import TargetInfo

__all__ = ["PlatformEvaluator", "parse_cfg", "TargetInfo"]
