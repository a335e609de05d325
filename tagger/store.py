"""
Snapshot persistence for the tag index.

The whole index (catalog, file entries, schema version) lives in one JSON
file inside the working root. It is read once per invocation and, for
mutating commands, written back once at the end.

Writes go to a temporary file in the same directory which then replaces the
target, so a reader sees either the previous snapshot or the new one, never
a partial write.

There is no locking between processes. Two invocations that both mutate the
same snapshot race and the last one to save wins; the earlier changes are
lost.

Wire format (short keys, compatible with existing .tagger files):

    {"v": [1, 0, 0],
     "e": {"/doc.txt": {"h": "", "t": [1, 2]}},
     "t": {"1": "red", "2": "blue"},
     "l": 2}

Empty fields are omitted on write and default to empty on read.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .catalog import TagCatalog
from .errors import TaggerError
from .file_index import FileEntry, FileIndex

logger = logging.getLogger(__name__)

SCHEMA_VERSION: tuple[int, int, int] = (1, 0, 0)
DATABASE_FILENAME = ".tagger"

# Permissions for the snapshot file (tempfile creates 0600)
SNAPSHOT_MODE = 0o644


class CorruptDatabaseError(TaggerError):
    """The snapshot file exists but is not a valid snapshot."""


class UnsupportedVersionError(TaggerError):
    """The snapshot was written with a schema version this code does not read."""

    def __init__(self, version: tuple[int, ...]) -> None:
        expected = ".".join(map(str, SCHEMA_VERSION))
        found = ".".join(map(str, version))
        super().__init__(f"invalid database version {found} (expected {expected})")
        self.version = version


class PersistenceError(TaggerError):
    """I/O failure while reading or writing the snapshot."""


@dataclass
class Snapshot:
    """Complete in-memory state of the tag index."""
    version: tuple[int, int, int] = SCHEMA_VERSION
    catalog: TagCatalog = field(default_factory=TagCatalog)
    files: FileIndex = field(default_factory=FileIndex)


# -----------------------------------------------------------------------------
# Codec
# -----------------------------------------------------------------------------

def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    """Encode a snapshot to its JSON structure, omitting empty fields."""
    data: dict[str, Any] = {"v": list(snapshot.version)}

    entries: dict[str, Any] = {}
    for path, entry in snapshot.files.items():
        encoded: dict[str, Any] = {}
        if entry.hash:
            encoded["h"] = entry.hash
        if entry.tags:
            encoded["t"] = list(entry.tags)
        entries[path] = encoded
    if entries:
        data["e"] = entries

    tags = {str(tag_id): name for tag_id, name in snapshot.catalog.items()}
    if tags:
        data["t"] = tags
    if snapshot.catalog.last_tag:
        data["l"] = snapshot.catalog.last_tag
    return data


def _decode_version(data: dict[str, Any]) -> tuple[int, int, int]:
    raw = data.get("v")
    if raw is None:
        return SCHEMA_VERSION
    if not isinstance(raw, list) or len(raw) != 3 or not all(_is_int(v) for v in raw):
        raise CorruptDatabaseError(f"malformed version field: {raw!r}")
    return (raw[0], raw[1], raw[2])


def _decode_entries(raw: Any) -> dict[str, FileEntry]:
    if not isinstance(raw, dict):
        raise CorruptDatabaseError("entries must be an object")
    entries = {}
    for path, value in raw.items():
        if not isinstance(value, dict):
            raise CorruptDatabaseError(f"entry for {path!r} must be an object")
        file_hash = value.get("h", "")
        tags = value.get("t", [])
        if not isinstance(file_hash, str):
            raise CorruptDatabaseError(f"hash for {path!r} must be a string")
        if not isinstance(tags, list) or not all(_is_int(t) for t in tags):
            raise CorruptDatabaseError(f"tags for {path!r} must be a list of integers")
        entries[path] = FileEntry(hash=file_hash, tags=list(tags))
    return entries


def _decode_tags(raw: Any) -> dict[int, str]:
    if not isinstance(raw, dict):
        raise CorruptDatabaseError("tags must be an object")
    names = {}
    for key, name in raw.items():
        try:
            tag_id = int(key)
        except ValueError:
            raise CorruptDatabaseError(f"tag id {key!r} is not an integer") from None
        if not isinstance(name, str):
            raise CorruptDatabaseError(f"name for tag {key} must be a string")
        names[tag_id] = name
    return names


def snapshot_from_dict(data: Any) -> Snapshot:
    """
    Decode a snapshot from its JSON structure.

    The version is checked before anything else, so a file written by a
    newer schema reports UnsupportedVersionError rather than a decode error.

    Raises:
        CorruptDatabaseError: Structure does not match the wire format
        UnsupportedVersionError: Version differs from SCHEMA_VERSION
    """
    if not isinstance(data, dict):
        raise CorruptDatabaseError("snapshot must be a JSON object")

    version = _decode_version(data)
    if version != SCHEMA_VERSION:
        raise UnsupportedVersionError(version)

    entries = _decode_entries(data.get("e", {}))
    names = _decode_tags(data.get("t", {}))
    last_tag = data.get("l", 0)
    if not _is_int(last_tag) or last_tag < 0:
        raise CorruptDatabaseError(f"last tag must be a non-negative integer: {last_tag!r}")

    # Ids referenced by entries count as allocated even when their name is gone
    referenced = max((t for entry in entries.values() for t in entry.tags), default=0)
    if referenced > last_tag:
        logger.warning("Last tag id %d is below referenced id %d; advancing", last_tag, referenced)
        last_tag = referenced

    return Snapshot(
        version=version,
        catalog=TagCatalog.from_names(names, last_tag),
        files=FileIndex(entries),
    )


# -----------------------------------------------------------------------------
# File I/O
# -----------------------------------------------------------------------------

def load_snapshot(path: Path) -> Snapshot:
    """
    Load the snapshot at path.

    A missing file is not an error: an empty snapshot at the current
    schema version is returned.

    Raises:
        PersistenceError: The file exists but cannot be read
        CorruptDatabaseError: The file is not valid JSON or not a snapshot
        UnsupportedVersionError: The file has a different schema version
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        logger.debug("No snapshot at %s; starting empty", path)
        return Snapshot()
    except OSError as e:
        raise PersistenceError(f"cannot read {path}: {e}") from e

    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptDatabaseError(f"cannot parse {path}: {e}") from e

    snapshot = snapshot_from_dict(data)
    logger.debug(
        "Loaded %s: %d files, %d tags", path, len(snapshot.files), len(snapshot.catalog)
    )
    return snapshot


def save_snapshot(path: Path, snapshot: Snapshot) -> None:
    """
    Atomically replace the snapshot at path.

    Raises:
        PersistenceError: The snapshot could not be written
    """
    path = Path(path)
    # ASCII escapes keep undecodable file names (surrogate-escaped keys) intact
    payload = json.dumps(snapshot_to_dict(snapshot), separators=(",", ":"))

    tmp_name = None
    replaced = False
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f"{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_name = f.name
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, SNAPSHOT_MODE)
        os.replace(tmp_name, path)
        replaced = True
    except (OSError, UnicodeError) as e:
        raise PersistenceError(f"cannot write {path}: {e}") from e
    finally:
        if tmp_name is not None and not replaced:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass

    logger.debug(
        "Saved %s: %d files, %d tags", path, len(snapshot.files), len(snapshot.catalog)
    )
