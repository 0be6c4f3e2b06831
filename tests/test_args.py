"""Tests for command line parsing."""

import pytest

from args import is_version, parse_args


class TestParseArgs:
    """Global flags and subcommands."""

    def test_defaults(self):
        ns = parse_args(["check"])
        assert ns.action == "check"
        assert ns.MANIFEST_PATH == "Cargo.toml"
        assert ns.TARGETS == []
        assert ns.LOG_LEVEL is None

    def test_global_flags(self):
        ns = parse_args([
            "--manifest-path", "ws/Cargo.toml",
            "--metadata-file", "meta.json",
            "-t", "x86_64-unknown-linux-gnu",
            "--target", "x86_64-pc-windows-msvc",
            "--loglevel", "debug",
            "--logfile", "out.log",
            "-c", "featgraph.yml",
            "dupes",
        ])
        assert ns.MANIFEST_PATH == "ws/Cargo.toml"
        assert ns.METADATA_FILE == "meta.json"
        assert ns.TARGETS == ["x86_64-unknown-linux-gnu", "x86_64-pc-windows-msvc"]
        assert ns.LOG_LEVEL == "DEBUG"
        assert ns.LOG_FILE == "out.log"
        assert ns.CONFIG == "featgraph.yml"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_bad_log_level(self):
        with pytest.raises(SystemExit):
            parse_args(["--loglevel", "chatty", "check"])


class TestPackageArguments:
    """Feature and version positionals of explain/tree."""

    @pytest.mark.parametrize("extra,feature,version", [
        ([], None, None),
        (["std"], "std", None),
        (["1.0.0"], None, "1.0.0"),
        (["std", "1.0.0"], "std", "1.0.0"),
        (["1.0.0", "std"], "std", "1.0.0"),
        (["*"], None, "*"),
    ])
    def test_explain(self, extra, feature, version):
        ns = parse_args(["explain", "serde"] + extra)
        assert ns.CRATE == "serde"
        assert (ns.FEATURE, ns.VERSION) == (feature, version)

    def test_too_many(self):
        with pytest.raises(SystemExit):
            parse_args(["explain", "serde", "std", "derive"])

    def test_tree_without_crate(self):
        ns = parse_args(["tree"])
        assert ns.CRATE is None
        assert ns.FEATURE is None

    def test_hack_and_restore(self):
        assert parse_args(["hack", "--dry"]).DRY is True
        ns = parse_args(["restore", "a/Cargo.toml"])
        assert ns.FILE == "a/Cargo.toml"
        assert ns.DRY is False

    def test_dot_output(self):
        assert parse_args(["dot", "-o", "g.dot"]).OUTPUT == "g.dot"

    def test_hack_lock(self):
        assert parse_args(["hack", "--lock"]).LOCK is True
        assert parse_args(["hack", "-l", "-d"]).LOCK is True
        assert parse_args(["hack"]).LOCK is False


class TestShowArguments:
    """Package, optional version and the focus flags of show."""

    def test_summary_by_default(self):
        ns = parse_args(["show", "serde"])
        assert ns.PACKAGE == "serde"
        assert ns.VERSION is None
        assert ns.FOCUS is None

    def test_version(self):
        assert parse_args(["show", "rand", "0.7.3"]).VERSION == "0.7.3"

    @pytest.mark.parametrize("flag,focus", [
        ("-m", "manifest"),
        ("--manifest", "manifest"),
        ("-r", "readme"),
        ("--readme", "readme"),
        ("-d", "documentation"),
        ("--doc", "documentation"),
    ])
    def test_focus(self, flag, focus):
        assert parse_args(["show", "serde", flag]).FOCUS == focus

    def test_focus_flags_exclusive(self):
        with pytest.raises(SystemExit):
            parse_args(["show", "serde", "-m", "-r"])

    @pytest.mark.parametrize("version", ["*", "1.0", "latest"])
    def test_invalid_version(self, version):
        with pytest.raises(SystemExit):
            parse_args(["show", "serde", version])


def test_is_version():
    assert is_version("1.2.3")
    assert is_version("*")
    assert not is_version("std")
    assert not is_version("1.0")
