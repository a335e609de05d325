"""
File index: sandboxed file keys and the tag ids assigned to each.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional


@dataclass
class FileEntry:
    """Tags assigned to one file.

    hash is reserved for content-based deduplication and is not filled in yet.
    """
    hash: str = ""
    tags: list[int] = field(default_factory=list)


class FileIndex:
    """Map of root-relative key -> FileEntry."""

    def __init__(self, entries: Optional[dict[str, FileEntry]] = None) -> None:
        self._entries: dict[str, FileEntry] = dict(entries or {})

    def add_tags(self, path: str, tag_ids: Iterable[int], *, dedupe: bool = False) -> FileEntry:
        """
        Append tag ids to the entry for path, creating it if needed.

        Ids are appended in the given order. Without dedupe a repeated id
        is appended again, so tagging twice with the same name grows the
        list. With dedupe an id already on the entry is skipped.
        """
        entry = self._entries.get(path)
        if entry is None:
            entry = FileEntry()
            self._entries[path] = entry

        for tag_id in tag_ids:
            if dedupe and tag_id in entry.tags:
                continue
            entry.tags.append(tag_id)
        return entry

    def entry_of(self, path: str) -> Optional[FileEntry]:
        return self._entries.get(path)

    def files_with_tag(self, tag_id: int) -> list[str]:
        """Keys of every file carrying tag_id, sorted."""
        return sorted(path for path, entry in self._entries.items() if tag_id in entry.tags)

    def paths(self) -> list[str]:
        return sorted(self._entries)

    def items(self) -> Iterator[tuple[str, FileEntry]]:
        for path in sorted(self._entries):
            yield path, self._entries[path]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries
