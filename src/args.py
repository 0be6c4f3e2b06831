"""Argument parsing functionality for featgraph."""

import argparse

import semantic_version

from constants import Constants


def is_version(value: str) -> bool:
    """True for `*` or a valid semver version."""
    if value == "*":
        return True
    try:
        semantic_version.Version(value)
    except ValueError:
        return False
    return True


def _semver(value: str) -> str:
    if value == "*" or not is_version(value):
        raise argparse.ArgumentTypeError("A valid version required")
    return value


def _split_package_args(ns: argparse.Namespace) -> None:
    """Sort trailing positionals of explain/tree into FEATURE and VERSION."""
    rest = list(getattr(ns, "EXTRA", None) or [])
    ns.FEATURE = None
    ns.VERSION = None
    for value in rest:
        if is_version(value) and ns.VERSION is None:
            ns.VERSION = value
        elif ns.FEATURE is None and not is_version(value):
            ns.FEATURE = value
        else:
            raise argparse.ArgumentTypeError(f"Unexpected argument: {value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="featgraph",
        description="Feature activation graph of a cargo workspace",
        add_help=True,
    )
    parser.add_argument("--manifest-path",
                        dest="MANIFEST_PATH",
                        help="Path to Cargo.toml",
                        action="store", type=str,
                        default=Constants.MANIFEST_FILE)
    parser.add_argument("--metadata-file",
                        dest="METADATA_FILE",
                        help="Read a saved `cargo metadata` JSON snapshot instead of running cargo",
                        action="store", type=str)
    parser.add_argument("-t", "--target",
                        dest="TARGETS",
                        help="Target triple to consider, can be used several times (default: host)",
                        action="append", type=str,
                        default=[])
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML or YML)",
                        action="store", type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store", type=str.upper,
                        choices=Constants.LOG_LEVELS)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store", type=str)

    sub = parser.add_subparsers(dest="action", required=True)

    explain = sub.add_parser("explain",
                             help="Explain why a certain crate or a feature is included in the workspace")
    explain.add_argument("CRATE", type=str)
    explain.add_argument("EXTRA", nargs="*", metavar="FEATURE|VERSION")

    tree = sub.add_parser("tree", help="Display crate dependencies as a tree")
    tree.add_argument("CRATE", nargs="?", type=str)
    tree.add_argument("EXTRA", nargs="*", metavar="FEATURE|VERSION")

    hack = sub.add_parser("hack",
                          help="Unify crate dependencies across individual crates in the workspace")
    hack.add_argument("-d", "--dry",
                      dest="DRY",
                      help="Report actions to be performed without actually performing them",
                      action="store_true")
    hack.add_argument("-l", "--lock",
                      dest="LOCK",
                      help="Include dependencies checksum into stash",
                      action="store_true")

    restore = sub.add_parser("restore",
                             help="Remove crate dependency unification added by the 'hack' command")
    restore.add_argument("FILE", nargs="?", type=str)
    restore.add_argument("-d", "--dry", dest="DRY", action="store_true",
                         help="Report actions to be performed without actually performing them")

    sub.add_parser("check", help="Check if unification is required")
    sub.add_parser("dupes", help="List all the duplicates in the workspace")

    show = sub.add_parser("show", help="Show info about a crate")
    show.add_argument("PACKAGE", type=str)
    show.add_argument("VERSION", nargs="?", type=_semver,
                      help="Version, when the crate is present at several")
    focus = show.add_mutually_exclusive_group()
    focus.add_argument("-m", "--manifest", dest="FOCUS", action="store_const",
                       const=Constants.FOCUS_MANIFEST, help="Show manifest")
    focus.add_argument("-r", "--readme", dest="FOCUS", action="store_const",
                       const=Constants.FOCUS_README, help="Show readme")
    focus.add_argument("-d", "--doc", dest="FOCUS", action="store_const",
                       const=Constants.FOCUS_DOCUMENTATION, help="Open documentation URL")

    dot = sub.add_parser("dot", help="Export the feature graph in Graphviz DOT format")
    dot.add_argument("-o", "--output",
                     dest="OUTPUT",
                     help="Path to output file (default: stdout)",
                     action="store", type=str)
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = build_parser()
    ns = parser.parse_args(argv)
    if ns.action in ("explain", "tree"):
        try:
            _split_package_args(ns)
        except argparse.ArgumentTypeError as e:
            parser.error(str(e))
    return ns
