"""
Configuration for a tagged directory tree.

The configuration is an optional TOML file in the working root. Without it,
defaults apply: snapshot in ".tagger", duplicate tags appended as-is, the
browser on 127.0.0.1:9000 reading thumbnails from the XDG cache.

The root itself is never read from the file. It is chosen once at process
start (--root, TAGGER_ROOT, or the current directory) and passed explicitly
to everything that needs it.
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from .store import DATABASE_FILENAME


CONFIG_FILENAME = ".tagger.toml"
CONFIG_VERSION = 1

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9000


def default_thumbnail_dir() -> Path:
    """Shared thumbnail cache (freedesktop layout), 'normal' size."""
    cache_home = os.environ.get("XDG_CACHE_HOME")
    base = Path(cache_home) if cache_home else Path.home() / ".cache"
    return base / "thumbnails" / "normal"


@dataclass
class ServerConfig:
    """Settings for the thumbnail browser."""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    thumbnails: Path = field(default_factory=default_thumbnail_dir)


@dataclass
class TaggerConfig:
    """Complete configuration for one working root."""
    root: Path
    version: int = CONFIG_VERSION
    database: str = DATABASE_FILENAME
    dedupe_tags: bool = False
    server: ServerConfig = field(default_factory=ServerConfig)

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.root / CONFIG_FILENAME

    @property
    def database_path(self) -> Path:
        """Path to the snapshot file."""
        return self.root / self.database

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()


def _expect(section: dict, key: str, kind: type, default: Any) -> Any:
    value = section.get(key, default)
    # bool is an int subclass; don't accept true as a port
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(
            f"Config value '{key}' must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _section(data: dict, name: str) -> dict:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ValueError(f"Config section [{name}] must be a table")
    return section


def _validate_database_name(name: str) -> str:
    if name in ("", ".", "..") or "/" in name or os.path.basename(name) != name:
        raise ValueError(f"Config value 'database' must be a plain filename: {name!r}")
    return name


def load_config(root: Path) -> TaggerConfig:
    """
    Load configuration for a working root.

    Returns defaults when no config file exists.

    Raises:
        ValueError: If the config file is invalid
    """
    root = Path(os.path.abspath(root))
    config_path = root / CONFIG_FILENAME

    if not config_path.exists():
        return TaggerConfig(root=root)

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid config {config_path}: {e}") from e

    # Validate version
    version = _expect(_section(data, "tagger"), "version", int, CONFIG_VERSION)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    index = _section(data, "index")
    server = _section(data, "server")
    thumbnails = _expect(server, "thumbnails", str, "")

    return TaggerConfig(
        root=root,
        version=version,
        database=_validate_database_name(_expect(index, "database", str, DATABASE_FILENAME)),
        dedupe_tags=_expect(index, "dedupe_tags", bool, False),
        server=ServerConfig(
            host=_expect(server, "host", str, DEFAULT_HOST),
            port=_expect(server, "port", int, DEFAULT_PORT),
            thumbnails=Path(thumbnails).expanduser() if thumbnails else default_thumbnail_dir(),
        ),
    )


def config_to_dict(config: TaggerConfig) -> dict[str, Any]:
    """TOML structure for a configuration (the root is not included)."""
    return {
        "tagger": {
            "version": config.version,
        },
        "index": {
            "database": config.database,
            "dedupe_tags": config.dedupe_tags,
        },
        "server": {
            "host": config.server.host,
            "port": config.server.port,
            "thumbnails": str(config.server.thumbnails),
        },
    }


def save_config(config: TaggerConfig) -> None:
    """Write the configuration to the root's config file."""
    with open(config.config_path, "wb") as f:
        tomli_w.dump(config_to_dict(config), f)
