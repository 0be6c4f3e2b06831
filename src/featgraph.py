"""featgraph - feature activation graph of a cargo workspace

    Returns:
        int: Exit code
"""
import logging
import os
import sys
import webbrowser
from typing import Any, Dict, List, Optional

import yaml

from analysis.dot import render_dot, write_dot
from analysis.duplicates import find_duplicates
from analysis.explain import explain, tree
from analysis.show import documentation_url, find_package, manifest_text, readme_text, summary
from analysis.unify import dependency_checksum, pinned_entries, unification_patches
from args import parse_args
from cli_config import load_config, resolve_log_level, resolve_namespace, resolve_platforms
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes
from errors import (
    FeatGraphError,
    MetadataLoadError,
    NoStashError,
    PackageLookupError,
    StashExistsError,
)
from graph.builder import FeatGraph
from manifest.rewrite import (
    apply_patch,
    has_stash,
    read_manifest,
    restore,
    stashed_checksum,
    stashed_names,
)
from metadata.loader import load_metadata
from metadata.models import Metadata

logger = logging.getLogger(__name__)


def _load(args: Any) -> Metadata:
    return load_metadata(
        manifest_path=getattr(args, "MANIFEST_PATH", None),
        metadata_file=getattr(args, "METADATA_FILE", None),
    )


def build_graph(args: Any, config: Dict[str, Any], meta: Optional[Metadata] = None) -> FeatGraph:
    """Load the snapshot and run the full build/propagate/optimize pass."""
    meta = meta if meta is not None else _load(args)
    platforms = resolve_platforms(args, config)
    graph = FeatGraph.init(meta, platforms)
    logger.info(
        "Feature graph for %s: %d nodes, %d edges",
        ", ".join(platforms), graph.features.number_of_nodes(), graph.features.number_of_edges(),
    )
    return graph


def run_explain(graph: FeatGraph, args: Any) -> int:
    lines = explain(graph, args.CRATE, args.FEATURE, args.VERSION)
    if not lines:
        logger.warning("%s is not part of the feature graph", args.CRATE)
    for line in lines:
        print(line)
    return ExitCodes.SUCCESS.value


def run_tree(graph: FeatGraph, args: Any) -> int:
    for line in tree(graph, args.CRATE, args.FEATURE, args.VERSION):
        print(line)
    return ExitCodes.SUCCESS.value


def run_hack(graph: FeatGraph, namespace: str, dry: bool, lock: bool = False) -> int:
    patches = unification_patches(graph)
    if not patches:
        logger.info("All workspace members already agree on dependency features")
        return ExitCodes.SUCCESS.value

    paths = {member: member.package.manifest_path for member in patches}
    # refuse before touching anything
    for path in paths.values():
        if has_stash(read_manifest(path), namespace):
            raise StashExistsError(
                f"{path} already contains changes, restore the original files before applying a new hack"
            )
    for member, entries in patches.items():
        checksum = None
        if lock:
            checksum = dependency_checksum(pinned_entries(graph, member, {e.name for e in entries}))
        apply_patch(paths[member], entries, namespace, dry=dry, checksum=checksum)
    return ExitCodes.SUCCESS.value


def stale_members(graph: FeatGraph, namespace: str) -> List[str]:
    """Manifests whose `hack --lock` pins no longer match the workspace."""
    stale = []
    for member in sorted(graph.workspace_members):
        path = member.package.manifest_path
        if not path or not os.path.isfile(path):
            continue
        doc = read_manifest(path)
        recorded = stashed_checksum(doc, namespace)
        if recorded is None:
            continue
        current = dependency_checksum(pinned_entries(graph, member, stashed_names(doc, namespace)))
        if current != recorded:
            logger.warning("%s: dependencies changed since they were locked, restore and hack again", path)
            stale.append(path)
    return stale


def run_check(graph: FeatGraph, namespace: str = Constants.STASH_NAMESPACE) -> int:
    patches = unification_patches(graph)
    for member, entries in patches.items():
        for entry in entries:
            logger.warning(
                "%s: %s %s needs features [%s]",
                member.name, entry.name, entry.version, ", ".join(entry.features),
            )
    if patches:
        logger.error("Feature unification is required, run `featgraph hack`")
        return ExitCodes.UNIFICATION_REQUIRED.value
    if stale_members(graph, namespace):
        return ExitCodes.UNIFICATION_REQUIRED.value
    logger.info("No unification required")
    return ExitCodes.SUCCESS.value


def run_restore(args: Any, namespace: str) -> int:
    dry = getattr(args, "DRY", False)
    if getattr(args, "FILE", None):
        restore(args.FILE, namespace, dry=dry)
        return ExitCodes.SUCCESS.value

    meta = _load(args)
    by_id = {p.id: p for p in meta.packages}
    for member_id in meta.workspace_members:
        path = by_id[member_id].manifest_path
        try:
            restore(path, namespace, dry=dry)
        except NoStashError:
            logger.debug("Nothing to restore in %s", path)
    return ExitCodes.SUCCESS.value


def run_dupes(args: Any) -> int:
    for name, versions in find_duplicates(_load(args)).items():
        print(f"{name}: {', '.join(versions)}")
    return ExitCodes.SUCCESS.value


def run_show(args: Any) -> int:
    package = find_package(_load(args), args.PACKAGE, args.VERSION)
    focus = getattr(args, "FOCUS", None)
    if focus == Constants.FOCUS_MANIFEST:
        sys.stdout.write(manifest_text(package))
    elif focus == Constants.FOCUS_README:
        sys.stdout.write(readme_text(package))
    elif focus == Constants.FOCUS_DOCUMENTATION:
        url = documentation_url(package)
        logger.info("Opening %s", url)
        if not webbrowser.open(url):
            print(url)
    else:
        for line in summary(package):
            print(line)
    return ExitCodes.SUCCESS.value


def run_dot(graph: FeatGraph, args: Any) -> int:
    if getattr(args, "OUTPUT", None):
        write_dot(graph, args.OUTPUT)
    else:
        sys.stdout.write(render_dot(graph))
    return ExitCodes.SUCCESS.value


def dispatch(args: Any, config: Dict[str, Any]) -> int:
    namespace = resolve_namespace(config)
    if args.action == "restore":
        return run_restore(args, namespace)
    if args.action == "dupes":
        return run_dupes(args)
    if args.action == "show":
        return run_show(args)

    graph = build_graph(args, config)
    if args.action == "explain":
        return run_explain(graph, args)
    if args.action == "tree":
        return run_tree(graph, args)
    if args.action == "hack":
        return run_hack(graph, namespace, args.DRY, getattr(args, "LOCK", False))
    if args.action == "check":
        return run_check(graph, namespace)
    if args.action == "dot":
        return run_dot(graph, args)
    logger.error("Unknown command: %s", args.action)
    return ExitCodes.FILE_ERROR.value


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    try:
        config = load_config(getattr(args, "CONFIG", None))
    except (OSError, yaml.YAMLError) as e:
        configure_logging(getattr(args, "LOG_LEVEL", None))
        logger.error("Failed to load config: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    configure_logging(resolve_log_level(args, config), getattr(args, "LOG_FILE", None))

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.action),
        )

    try:
        code = dispatch(args, config)
    except (MetadataLoadError, StashExistsError, NoStashError, PackageLookupError, OSError) as e:
        logger.error("%s", e)
        code = ExitCodes.FILE_ERROR.value
    except FeatGraphError as e:
        logger.error("%s", e)
        code = ExitCodes.GRAPH_ERROR.value
    sys.exit(code)


if __name__ == "__main__":
    main()
