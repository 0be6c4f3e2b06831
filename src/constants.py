"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    GRAPH_ERROR = 2
    UNIFICATION_REQUIRED = 3


class DepKind(Enum):
    """Build kinds a resolved dependency edge can carry.

    Args:
        Enum (string): Kind as spelled by cargo metadata.
    """

    NORMAL = "normal"
    BUILD = "build"
    DEV = "dev"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    CARGO_BIN = "cargo"
    RUSTC_BIN = "rustc"
    MANIFEST_FILE = "Cargo.toml"
    METADATA_FORMAT_VERSION = "1"
    SUBPROCESS_TIMEOUT = 300  # Timeout in seconds for cargo/rustc invocations

    STASH_NAMESPACE = "featgraph"
    STASH_KIND = "dependencies"
    STASH_ORIGIN_KEY = "origin"
    STASH_CHECKSUM_KEY = "checksum"
    ORIGIN_MISSING = "missing"  # hack created the dependencies table
    ORIGIN_IMPLICIT = "implicit"  # only [dependencies.<name>] sub-tables existed
    DEFAULT_FEATURE = "default"
    LIBRARY_TARGET_KINDS = ["lib", "rlib", "dylib", "proc-macro"]
    REGISTRY_SOURCE_PREFIX = "registry+"
    DOCS_RS_URL = "https://docs.rs/{name}/{version}"
    FOCUS_MANIFEST = "manifest"
    FOCUS_README = "readme"
    FOCUS_DOCUMENTATION = "documentation"

    ENV_LOG_LEVEL = "FEATGRAPH_LOG_LEVEL"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

    DOT_GRAPH_ID = "features"
    DOT_OPTIONAL_COLOR = "grey"
    DOT_REQUIRED_COLOR = "black"
