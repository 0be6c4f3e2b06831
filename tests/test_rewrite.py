"""Tests for manifest patching and restoring."""

import pytest
import tomlkit

from analysis.unify import DependencyPatch
from errors import NoStashError, StashExistsError
from manifest.rewrite import (
    apply_patch,
    has_stash,
    read_manifest,
    restore,
    stashed_checksum,
    stashed_names,
)

MANIFEST = """\
[package]
name = "a"
version = "0.1.0"

[dependencies]
serde = "1.0"
log = { version = "0.4" }
"""

PATCHES = [
    DependencyPatch("serde", "1.0.0", ("derive", "std")),
    DependencyPatch("rand", "0.8.5", ("std",)),
]


def parsed(path):
    return tomlkit.parse(path.read_text(encoding="utf-8")).unwrap()


@pytest.fixture
def manifest(tmp_path):
    path = tmp_path / "Cargo.toml"
    path.write_text(MANIFEST, encoding="utf-8")
    return path


class TestApplyPatch:
    """Writing unified dependency entries."""

    def test_writes_entries_and_stash(self, manifest):
        apply_patch(str(manifest), PATCHES)

        data = parsed(manifest)
        assert data["dependencies"]["serde"] == {"version": "1.0.0", "features": ["derive", "std"]}
        assert data["dependencies"]["rand"] == {"version": "0.8.5", "features": ["std"]}
        assert data["dependencies"]["log"] == {"version": "0.4"}
        assert data["package"]["metadata"]["featgraph"]["dependencies"] == {
            "serde": "1.0",
            "rand": False,
        }

    def test_refuses_second_run(self, manifest):
        apply_patch(str(manifest), PATCHES)
        with pytest.raises(StashExistsError):
            apply_patch(str(manifest), PATCHES)

    def test_dry_run_leaves_file(self, manifest):
        doc = apply_patch(str(manifest), PATCHES, dry=True)
        assert manifest.read_text(encoding="utf-8") == MANIFEST
        assert has_stash(doc)

    def test_custom_namespace(self, manifest):
        apply_patch(str(manifest), PATCHES, namespace="hackerman")
        doc = read_manifest(str(manifest))
        assert has_stash(doc, "hackerman")
        assert not has_stash(doc)

    def test_creates_dependencies_table(self, tmp_path):
        path = tmp_path / "Cargo.toml"
        path.write_text('[package]\nname = "b"\nversion = "0.2.0"\n', encoding="utf-8")
        apply_patch(str(path), PATCHES[1:])
        assert parsed(path)["dependencies"] == {"rand": {"version": "0.8.5", "features": ["std"]}}


class TestRestore:
    """Undoing a patch from its stash."""

    def test_round_trip(self, manifest):
        original = parsed(manifest)
        apply_patch(str(manifest), PATCHES)

        names = restore(str(manifest))

        assert sorted(names) == ["rand", "serde"]
        assert parsed(manifest) == original

    def test_round_trip_without_dependencies(self, tmp_path):
        path = tmp_path / "Cargo.toml"
        path.write_text('[package]\nname = "b"\nversion = "0.2.0"\n', encoding="utf-8")
        original = parsed(path)
        apply_patch(str(path), PATCHES[1:])
        restore(str(path))
        assert parsed(path) == original

    def test_nothing_to_restore(self, manifest):
        with pytest.raises(NoStashError):
            restore(str(manifest))

    def test_dry_restore(self, manifest):
        apply_patch(str(manifest), PATCHES)
        before = manifest.read_text(encoding="utf-8")
        restore(str(manifest), dry=True)
        assert manifest.read_text(encoding="utf-8") == before


EMPTY_DEPENDENCIES = """\
[package]
name = "a"
version = "0.1.0"

[dependencies]
"""

SUB_TABLE = """\
[package]
name = "a"
version = "0.1.0"

[dependencies.serde]
version = "1.0"
features = ["std"]

[features]
default = []
"""


class TestLayout:
    """Where patched entries and the stash land in the file."""

    def test_stash_keeps_blank_line_before_next_table(self, manifest):
        apply_patch(str(manifest), PATCHES)

        lines = manifest.read_text(encoding="utf-8").splitlines()
        assert lines[lines.index("[dependencies]") - 1] == ""

    def test_stash_and_new_entries_sorted(self, manifest):
        apply_patch(str(manifest), list(reversed(PATCHES)) + [DependencyPatch("anyhow", "1.0.0", ())])

        doc = read_manifest(str(manifest))
        assert stashed_names(doc) == ["anyhow", "rand", "serde"]
        assert list(parsed(manifest)["dependencies"]) == ["serde", "log", "anyhow", "rand"]

    def test_checksum_recorded(self, manifest):
        apply_patch(str(manifest), PATCHES, checksum="abc123")

        doc = read_manifest(str(manifest))
        assert stashed_checksum(doc) == "abc123"
        assert stashed_names(doc) == ["rand", "serde"]

    def test_no_checksum_by_default(self, manifest):
        assert stashed_checksum(apply_patch(str(manifest), PATCHES)) is None


class TestVerbatimRestore:
    """The restored file is the file before the patch, byte for byte."""

    def test_inline_entries(self, manifest):
        apply_patch(str(manifest), PATCHES)
        restore(str(manifest))
        assert manifest.read_text(encoding="utf-8") == MANIFEST

    def test_checksum_removed(self, manifest):
        apply_patch(str(manifest), PATCHES, checksum="abc123")
        restore(str(manifest))
        assert manifest.read_text(encoding="utf-8") == MANIFEST

    def test_empty_dependencies_table_kept(self, tmp_path):
        path = tmp_path / "Cargo.toml"
        path.write_text(EMPTY_DEPENDENCIES, encoding="utf-8")

        apply_patch(str(path), PATCHES[1:])
        restore(str(path))

        assert parsed(path)["dependencies"] == {}
        assert path.read_text(encoding="utf-8") == EMPTY_DEPENDENCIES

    def test_dependency_sub_table(self, tmp_path):
        path = tmp_path / "Cargo.toml"
        path.write_text(SUB_TABLE, encoding="utf-8")
        original = parsed(path)

        apply_patch(str(path), PATCHES[:1])
        patched = path.read_text(encoding="utf-8").splitlines()
        assert patched[patched.index("[features]") - 1] == ""

        restore(str(path))
        lines = path.read_text(encoding="utf-8").splitlines()
        assert parsed(path) == original
        assert "[dependencies]" not in lines
        assert "[dependencies.serde]" in lines
        assert lines[lines.index("[features]") - 1] == ""
