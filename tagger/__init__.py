"""
Tagger

Attach free-form tags to files under a working directory and find them again.

Quick Start:
    from tagger import Tagger

    tg = Tagger("/home/me/photos")      # loads /home/me/photos/.tagger
    tg.add_tags("cats/tom.jpg", ["pets", "favorite"])
    tg.files_for_tag("pets")            # ['/cats/tom.jpg']

CLI Usage:
    tagger add cats/tom.jpg pets favorite
    tagger find pets
    tagger serve

Storage:
    One JSON snapshot (.tagger) in the working root, replaced atomically on
    every change. Optional settings live in .tagger.toml next to it.

Environment Variables:
    TAGGER_ROOT       - Working root (default: current directory)
    TAGGER_VERBOSE    - Set to 1 for debug logging
    TAGGER_ERROR_LOG  - Where unexpected CLI errors are logged
"""

from .api import TagResult, Tagger
from .catalog import TagCatalog
from .config import TaggerConfig, load_config
from .errors import TaggerError
from .file_index import FileEntry, FileIndex
from .sandbox import NotFoundError, OutsideRootError, confine, expand
from .store import (
    CorruptDatabaseError,
    PersistenceError,
    Snapshot,
    UnsupportedVersionError,
    load_snapshot,
    save_snapshot,
)

__version__ = "0.1.0"
__all__ = [
    "CorruptDatabaseError",
    "FileEntry",
    "FileIndex",
    "NotFoundError",
    "OutsideRootError",
    "PersistenceError",
    "Snapshot",
    "TagCatalog",
    "TagResult",
    "Tagger",
    "TaggerConfig",
    "TaggerError",
    "UnsupportedVersionError",
    "confine",
    "expand",
    "load_config",
    "load_snapshot",
    "save_snapshot",
]
