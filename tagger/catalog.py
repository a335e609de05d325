"""
Tag catalog: the bijection between tag names and numeric tag ids.

Only id -> name is persisted. The reverse map is rebuilt by from_names()
every time a snapshot is loaded, so the two never drift apart on disk.

Ids are allocated as last_tag + 1 and never reused. There is no rename or
removal; the catalog only grows.
"""

from __future__ import annotations

import logging
from typing import Iterator, Mapping, Optional

logger = logging.getLogger(__name__)


class TagCatalog:
    """Bidirectional tag name <-> id mapping with monotonic allocation."""

    def __init__(self) -> None:
        self._names: dict[int, str] = {}
        self._ids: dict[str, int] = {}
        self._last_tag = 0

    @classmethod
    def from_names(cls, names: Mapping[int, str], last_tag: int = 0) -> "TagCatalog":
        """
        Rebuild a catalog from a persisted id -> name map.

        A name stored under two ids keeps the higher id for name lookups
        (ascending order, last one wins); both ids still display the name.
        last_tag is raised to the largest stored id if it lags behind.
        """
        catalog = cls()
        for tag_id in sorted(names):
            name = names[tag_id]
            if name in catalog._ids:
                logger.warning(
                    "Tag name %r stored under ids %d and %d; using %d",
                    name, catalog._ids[name], tag_id, tag_id,
                )
            catalog._names[tag_id] = name
            catalog._ids[name] = tag_id

        highest = max(names, default=0)
        if highest > last_tag:
            logger.warning("Last tag id %d is below stored id %d; advancing", last_tag, highest)
            last_tag = highest
        catalog._last_tag = last_tag
        return catalog

    @property
    def last_tag(self) -> int:
        """Highest id ever allocated."""
        return self._last_tag

    def lookup_or_create(self, name: str) -> int:
        """Return the id for name, allocating the next id if it is new."""
        if not name:
            raise ValueError("Tag name must not be empty")
        tag_id = self._ids.get(name)
        if tag_id is not None:
            return tag_id

        self._last_tag += 1
        tag_id = self._last_tag
        self._names[tag_id] = name
        self._ids[name] = tag_id
        logger.debug("Allocated tag %d for %r", tag_id, name)
        return tag_id

    def id_of(self, name: str) -> Optional[int]:
        return self._ids.get(name)

    def name_of(self, tag_id: int) -> Optional[str]:
        return self._names.get(tag_id)

    def display_name(self, tag_id: int) -> str:
        """Tag name for display, falling back to the raw id when unknown."""
        name = self._names.get(tag_id)
        return name if name is not None else str(tag_id)

    def names(self) -> list[str]:
        """All known tag names, sorted."""
        return sorted(self._ids)

    def items(self) -> Iterator[tuple[int, str]]:
        """(id, name) pairs in id order."""
        for tag_id in sorted(self._names):
            yield tag_id, self._names[tag_id]

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, tag_id: object) -> bool:
        return tag_id in self._names
