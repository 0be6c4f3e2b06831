"""Runtime configuration: YAML config file merged under CLI overrides.

Precedence is CLI flag > config file > environment > Constants defaults.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import yaml

from constants import Constants
from metadata.loader import host_triple

logger = logging.getLogger(__name__)


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    """Load the configuration mapping from a YAML file.

    Args:
        config_path: Path to a YAML config file, may be None.

    Returns:
        Configuration dict; empty when no file is given or it is not a mapping.
    """
    if not config_path:
        return {}
    if not os.path.isfile(config_path):
        logger.warning("Config file not found: %s", config_path)
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not a mapping", config_path)
        return {}
    section = data.get("featgraph", data)
    if section is None:
        return {}
    if not isinstance(section, dict):
        logger.warning("Ignoring config %s: featgraph section is not a mapping", config_path)
        return {}
    return section


def resolve_log_level(args: Any, config: Dict[str, Any]) -> Optional[str]:
    level = getattr(args, "LOG_LEVEL", None) or config.get("log_level")
    return str(level).upper() if level else None


def resolve_platforms(args: Any, config: Dict[str, Any]) -> List[str]:
    """Target triples to consider, falling back to the host triple."""
    targets = list(getattr(args, "TARGETS", None) or [])
    if targets:
        return targets
    configured = config.get("platforms")
    if isinstance(configured, str):
        return [configured]
    if configured:
        return [str(p) for p in configured]
    host = host_triple()
    logger.info("No targets requested, using host %s", host)
    return [host]


def resolve_namespace(config: Dict[str, Any]) -> str:
    return str(config.get("stash_namespace") or Constants.STASH_NAMESPACE)
