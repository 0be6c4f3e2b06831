"""Rewriting member manifests to pin unified dependency features.

Every entry written to `[dependencies]` first has its previous value
stashed under `[package.metadata.<namespace>.dependencies]` (`false` when
there was none), so `restore` can put the manifest back as it was. A
manifest that already carries a stash is refused.

Next to the stash the namespace table may record where the
`[dependencies]` table came from (`origin`: `missing` when the hack created
it, `implicit` when it only existed through `[dependencies.<name>]`
sub-tables) and the checksum of the pinned entries (`checksum`, written by
`hack --lock`).
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any, List, Optional, Sequence

import tomlkit
from tomlkit.items import Item, Table
from tomlkit.toml_document import TOMLDocument

from analysis.unify import DependencyPatch
from constants import Constants
from errors import NoStashError, StashExistsError

logger = logging.getLogger(__name__)


def _namespace_path(namespace: str) -> List[str]:
    return ["package", "metadata", namespace]


def _stash_path(namespace: str) -> List[str]:
    return _namespace_path(namespace) + [Constants.STASH_KIND]


def _get_table(doc: TOMLDocument, path: Sequence[str]) -> Optional[Table]:
    current = doc
    for comp in path:
        if comp not in current:
            return None
        current = current[comp]
    return current


def _to_table(doc: TOMLDocument, path: Sequence[str]) -> Table:
    """Walk `path`, creating missing tables; intermediate ones stay implicit."""
    current = doc
    for depth, comp in enumerate(path):
        if comp not in current:
            is_leaf = depth == len(path) - 1
            current[comp] = tomlkit.table() if is_leaf else tomlkit.table(True)
        current = current[comp]
        if not isinstance(current, MutableMapping):
            raise ValueError(f"Expected a table at {'.'.join(path[:depth + 1])}")
    return current


def _is_absent_marker(value: Any) -> bool:
    """`false` in the stash means the dependency did not exist before."""
    if isinstance(value, Item):
        value = value.unwrap()
    return value is False


def _table_origin(doc: TOMLDocument) -> Optional[str]:
    deps = doc.get(Constants.STASH_KIND)
    if deps is None:
        return Constants.ORIGIN_MISSING
    if isinstance(deps, Table) and deps.is_super_table():
        return Constants.ORIGIN_IMPLICIT
    return None


def _end_with_blank_line(table: Table) -> None:
    if not table.as_string().endswith("\n\n"):
        table.add(tomlkit.nl())


def _is_last_table(doc: TOMLDocument, name: str) -> bool:
    keys = list(doc.keys())
    return bool(keys) and keys[-1] == name


def _implicit(table: Table) -> Table:
    """Copy of `table` rendered through its sub-table headers only."""
    result = tomlkit.table(True)
    for name, value in table.items():
        result.append(name, value)
    return result


def read_manifest(path: str) -> TOMLDocument:
    with open(path, encoding="utf-8") as f:
        return tomlkit.parse(f.read())


def write_manifest(path: str, doc: TOMLDocument) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(tomlkit.dumps(doc))


def has_stash(doc: TOMLDocument, namespace: str = Constants.STASH_NAMESPACE) -> bool:
    return _get_table(doc, _stash_path(namespace)) is not None


def stashed_names(doc: TOMLDocument, namespace: str = Constants.STASH_NAMESPACE) -> List[str]:
    stash = _get_table(doc, _stash_path(namespace))
    return list(stash.keys()) if stash is not None else []


def stashed_checksum(doc: TOMLDocument, namespace: str = Constants.STASH_NAMESPACE) -> Optional[str]:
    table = _get_table(doc, _namespace_path(namespace))
    if table is None or Constants.STASH_CHECKSUM_KEY not in table:
        return None
    return str(table[Constants.STASH_CHECKSUM_KEY])


def apply_patch(path: str, patches: Sequence[DependencyPatch],
                namespace: str = Constants.STASH_NAMESPACE, dry: bool = False,
                checksum: Optional[str] = None) -> TOMLDocument:
    """Write `patches` into the manifest at `path`, stashing what they replace.

    Entries are written in name order. The stash is written first so it
    ends with a blank line before whatever table follows `[package]`.

    Raises:
        StashExistsError: If the manifest already carries a stash.
    """
    doc = read_manifest(path)
    if has_stash(doc, namespace):
        raise StashExistsError(
            f"{path} already contains changes, restore the original files before applying a new hack"
        )

    patches = sorted(patches, key=lambda p: p.name)
    origin = _table_origin(doc)
    existing = doc.get(Constants.STASH_KIND) or {}
    previous = {patch.name: existing.get(patch.name) for patch in patches}

    stash = _to_table(doc, _stash_path(namespace))
    for name, old in previous.items():
        stash[name] = old if old is not None else False
    _end_with_blank_line(stash)
    meta = _get_table(doc, _namespace_path(namespace))
    if origin is not None:
        meta[Constants.STASH_ORIGIN_KEY] = origin
    if checksum is not None:
        meta[Constants.STASH_CHECKSUM_KEY] = checksum

    deps = _to_table(doc, [Constants.STASH_KIND])
    for patch in patches:
        entry = tomlkit.inline_table()
        entry["version"] = patch.version
        entry["features"] = list(patch.features)
        deps[patch.name] = entry
        logger.info("%s: %s = %s", path, patch.name, entry.as_string())
    if origin == Constants.ORIGIN_IMPLICIT and not _is_last_table(doc, Constants.STASH_KIND):
        # moved sub-tables took the blank line before the next header with them
        _end_with_blank_line(deps)

    if dry:
        logger.info("Dry run, %s left unchanged", path)
    else:
        write_manifest(path, doc)
    return doc


def restore(path: str, namespace: str = Constants.STASH_NAMESPACE, dry: bool = False) -> List[str]:
    """Undo `apply_patch`; returns the dependency names put back.

    Raises:
        NoStashError: If there is nothing stashed.
    """
    doc = read_manifest(path)
    stash = _get_table(doc, _stash_path(namespace))
    if stash is None:
        raise NoStashError(f"{path} has no stashed changes")
    origin = _get_table(doc, _namespace_path(namespace)).get(Constants.STASH_ORIGIN_KEY)

    deps = _to_table(doc, [Constants.STASH_KIND])
    restored = []
    for name, old in list(stash.items()):
        if _is_absent_marker(old):
            if name in deps:
                del deps[name]
        else:
            deps[name] = old
        restored.append(name)

    metadata = doc["package"]["metadata"]
    del metadata[namespace]
    if not metadata:
        del doc["package"]["metadata"]
    if origin == Constants.ORIGIN_MISSING and not deps:
        del doc[Constants.STASH_KIND]
    elif origin == Constants.ORIGIN_IMPLICIT and deps and all(isinstance(v, Table) for v in deps.values()):
        doc[Constants.STASH_KIND] = _implicit(deps)

    if dry:
        logger.info("Dry run, %s left unchanged", path)
    else:
        write_manifest(path, doc)
        logger.info("Restored %d dependencies in %s", len(restored), path)
    return restored
