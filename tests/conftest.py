"""
Shared pytest fixtures for tagger tests.

Provides a small working root with a few files, and makes it the current
directory so relative CLI-style paths resolve inside it.
"""

from pathlib import Path

import pytest

from tagger.api import Tagger


@pytest.fixture
def root(tmp_path, monkeypatch) -> Path:
    """A working root containing doc.txt and photos/{cat,dog}.jpg."""
    root = tmp_path / "root"
    (root / "photos").mkdir(parents=True)
    # getcwd() reports the resolved path; match it
    root = root.resolve()
    (root / "doc.txt").write_text("hello")
    (root / "photos" / "cat.jpg").write_bytes(b"cat")
    (root / "photos" / "dog.jpg").write_bytes(b"dog")
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def outside(tmp_path) -> Path:
    """An existing file next to the root, not inside it."""
    path = tmp_path / "outside.txt"
    path.write_text("nope")
    return path


@pytest.fixture
def tagger(root) -> Tagger:
    return Tagger(root)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path, monkeypatch):
    """Keep error logs and config lookups out of the real home directory."""
    monkeypatch.setenv("TAGGER_ERROR_LOG", str(tmp_path / "errors.log"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.delenv("TAGGER_ROOT", raising=False)
