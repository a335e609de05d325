"""
Core API for the tag index.

A Tagger owns the in-memory snapshot for one invocation:
- load on construction
- add_tags() / tag_files(): confine paths, update catalog then file index, save
- files_for_tag() / tags_for_file() / list_tags(): read-only queries
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from .config import TaggerConfig, load_config
from .errors import TaggerError
from .sandbox import confine, expand
from .store import Snapshot, load_snapshot, save_snapshot

logger = logging.getLogger(__name__)


@dataclass
class TagResult:
    """Outcome of applying one tag to several paths."""
    tag: str
    tagged: list[str] = field(default_factory=list)
    failures: list[tuple[str, TaggerError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class Tagger:
    """
    Tag index bound to one working root.

    Mutating methods save the snapshot before returning. Queries never write.
    """

    def __init__(self, root: Optional[Path] = None, *, config: Optional[TaggerConfig] = None):
        """
        Args:
            root: Working root (default: current directory). Ignored when
                config is given.
            config: Explicit configuration; loaded from the root if omitted.

        Raises:
            CorruptDatabaseError, UnsupportedVersionError, PersistenceError:
                The snapshot cannot be used; nothing has been modified.
        """
        if config is None:
            config = load_config(Path(root) if root is not None else Path.cwd())
        self._config = config
        self._snapshot: Snapshot = load_snapshot(config.database_path)

    @property
    def config(self) -> TaggerConfig:
        return self._config

    @property
    def root(self) -> Path:
        return self._config.root

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    def key_for(self, path: str, *, must_exist: bool = True) -> str:
        """Confine path to the root and return its index key."""
        return confine(self.root, path, must_exist=must_exist)

    def absolute(self, key: str) -> str:
        """Absolute filesystem path for an index key."""
        return expand(self.root, key)

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def _apply(self, key: str, names: Iterable[str]) -> None:
        # Catalog first, so every id on the entry is known
        tag_ids = [self._snapshot.catalog.lookup_or_create(name) for name in names]
        self._snapshot.files.add_tags(key, tag_ids, dedupe=self._config.dedupe_tags)

    def add_tags(self, path: str, names: list[str]) -> str:
        """
        Add tags to one existing file and save.

        Returns:
            The file's index key

        Raises:
            OutsideRootError, NotFoundError: path is rejected; nothing saved
            ValueError: a tag name is empty
        """
        if any(not name for name in names):
            raise ValueError("Tag names must not be empty")
        key = self.key_for(path)
        self._apply(key, names)
        logger.info("Tagged %s with %s", key, ", ".join(names))
        self.save()
        return key

    def tag_files(self, name: str, paths: list[str]) -> TagResult:
        """
        Apply one tag to several files and save once.

        A path that fails confinement is recorded in the result and
        skipped; the others are still tagged.
        """
        if not name:
            raise ValueError("Tag name must not be empty")
        result = TagResult(tag=name)
        for path in paths:
            try:
                key = self.key_for(path)
            except TaggerError as e:
                logger.debug("Skipping %s: %s", path, e)
                result.failures.append((path, e))
                continue
            self._apply(key, [name])
            result.tagged.append(key)

        logger.info("Tagged %d file(s) with %s (%d failed)",
                    len(result.tagged), name, len(result.failures))
        self.save()
        return result

    def save(self) -> None:
        save_snapshot(self._config.database_path, self._snapshot)

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def files_for_tag(self, name: str) -> list[str]:
        """Keys of files carrying tag name, sorted. Unknown tags give []."""
        tag_id = self._snapshot.catalog.id_of(name)
        if tag_id is None:
            return []
        return self._snapshot.files.files_with_tag(tag_id)

    def tags_for_file(self, path: str) -> Optional[list[str]]:
        """
        Tag names on a file, in the order they were applied.

        The path must lie inside the root but need not exist. Ids missing
        from the catalog are shown as the raw number.

        Returns:
            Tag names, or None if the file is not tagged
        """
        key = self.key_for(path, must_exist=False)
        entry = self._snapshot.files.entry_of(key)
        if entry is None:
            return None
        return [self._snapshot.catalog.display_name(tag_id) for tag_id in entry.tags]

    def list_tags(self) -> list[str]:
        """All known tag names, sorted."""
        return self._snapshot.catalog.names()
