"""Loading a workspace metadata snapshot from cargo or from a saved file."""

from __future__ import annotations

import json
import logging
import subprocess
from typing import List, Optional

from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants
from errors import MetadataLoadError
from metadata.models import Metadata

logger = logging.getLogger(__name__)


def _run(cmd: List[str]) -> str:
    """Run a toolchain command and return its stdout.

    Raises:
        MetadataLoadError: If the binary is missing or exits non-zero.
    """
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=Constants.SUBPROCESS_TIMEOUT,
            check=False,
        )
    except FileNotFoundError as e:
        raise MetadataLoadError(f"{cmd[0]} not found: {e}") from e
    except subprocess.TimeoutExpired as e:
        raise MetadataLoadError(f"{' '.join(cmd)} timed out") from e
    if result.returncode != 0:
        raise MetadataLoadError(
            f"{' '.join(cmd)} failed with status {result.returncode}: {result.stderr.strip()}"
        )
    return result.stdout


def metadata_command(manifest_path: Optional[str] = None) -> List[str]:
    cmd = [
        Constants.CARGO_BIN,
        "metadata",
        "--format-version",
        Constants.METADATA_FORMAT_VERSION,
    ]
    if manifest_path:
        cmd += ["--manifest-path", str(manifest_path)]
    return cmd


def load_metadata(manifest_path: Optional[str] = None,
                  metadata_file: Optional[str] = None) -> Metadata:
    """Produce a metadata snapshot.

    Args:
        manifest_path: Workspace manifest handed to `cargo metadata`.
        metadata_file: Saved `cargo metadata` JSON; takes precedence when set.

    Returns:
        Metadata: Parsed snapshot.
    """
    with Timer() as t:
        if metadata_file:
            try:
                with open(metadata_file, encoding="utf-8") as f:
                    raw = f.read()
            except OSError as e:
                raise MetadataLoadError(f"Cannot read {metadata_file}: {e}") from e
            source = metadata_file
        else:
            raw = _run(metadata_command(manifest_path))
            source = "cargo metadata"

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MetadataLoadError(f"Invalid metadata JSON from {source}: {e}") from e
        try:
            meta = Metadata.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise MetadataLoadError(f"Unexpected metadata layout from {source}: {e}") from e

    if is_debug_enabled(logger):
        logger.debug(
            "Loaded metadata",
            extra=extra_context(
                event="function_exit",
                component="metadata",
                action="load_metadata",
                target=source,
                count=len(meta.packages),
                duration_ms=t.duration_ms,
            ),
        )
    logger.info("Loaded %d packages from %s", len(meta.packages), source)
    return meta


def host_triple() -> str:
    """Return the host target triple reported by `rustc -vV`."""
    out = _run([Constants.RUSTC_BIN, "-vV"])
    for line in out.splitlines():
        if line.startswith("host:"):
            return line.split(":", 1)[1].strip()
    raise MetadataLoadError("rustc -vV did not report a host triple")
