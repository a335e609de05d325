"""
Path confinement for root-scoped access.

Every path handed to the index or the HTTP browser goes through confine(),
which turns it into a key relative to the trusted root or refuses it.

Keys always start with "/" and use "/" as separator, so the same file maps
to the same key on every run and on every platform.
"""

from __future__ import annotations

import os
from typing import Optional, Union

from .errors import TaggerError

StrPath = Union[str, os.PathLike]

KEY_SEPARATOR = "/"


class OutsideRootError(TaggerError):
    """Raised when a path resolves outside the trusted root."""

    def __init__(self, path: str, root: str) -> None:
        super().__init__(f"path is not relative to '{root}': {path}")
        self.path = path
        self.root = root


class NotFoundError(TaggerError):
    """Raised when a confined path does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"no such file or directory: {path}")
        self.path = path


def normalize_root(root: StrPath) -> str:
    """Absolute, lexically normalized form of a root directory."""
    return os.path.abspath(os.fspath(root))


def resolve(candidate: StrPath, base: Optional[StrPath] = None) -> str:
    """Resolve candidate against base (default: cwd) without following symlinks."""
    path = os.fspath(candidate)
    if not os.path.isabs(path):
        path = os.path.join(os.fspath(base) if base is not None else os.getcwd(), path)
    return os.path.normpath(os.path.abspath(path))


def is_within(root: str, resolved: str) -> bool:
    """True if resolved is root itself or nested under it.

    The prefix must end at a separator boundary: root /a/b admits /a/b/c
    but not /a/bc.
    """
    if resolved == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return resolved.startswith(prefix)


def confine(
    root: StrPath,
    candidate: StrPath,
    *,
    must_exist: bool = True,
    base: Optional[StrPath] = None,
) -> str:
    """
    Resolve candidate and return its root-relative key.

    Args:
        root: Trusted root directory
        candidate: User-supplied path, absolute or relative to base
        must_exist: Require the resolved path to exist on disk
        base: Directory relative candidates are joined onto (default: cwd)

    Returns:
        Key such as "/photos/cat.jpg"; the root itself is "/"

    Raises:
        OutsideRootError: The path escapes the root
        NotFoundError: must_exist is set and nothing exists at the path
    """
    root_path = normalize_root(root)
    resolved = resolve(candidate, base)

    if not is_within(root_path, resolved):
        raise OutsideRootError(os.fspath(candidate), root_path)
    if must_exist and not os.path.exists(resolved):
        raise NotFoundError(os.fspath(candidate))

    if resolved == root_path:
        return KEY_SEPARATOR
    prefix_len = len(root_path) if root_path.endswith(os.sep) else len(root_path) + 1
    relative = resolved[prefix_len:]
    return KEY_SEPARATOR + relative.replace(os.sep, KEY_SEPARATOR)


def expand(root: StrPath, key: str) -> str:
    """Join a key back onto the root, giving the absolute path it names."""
    parts = [part for part in key.split(KEY_SEPARATOR) if part]
    return os.path.normpath(os.path.join(normalize_root(root), *parts))
