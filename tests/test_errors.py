"""
Tests for the error log and the CLI's handling of unexpected errors.
"""

import stat
import sys

import pytest

from tagger import cli
from tagger.api import Tagger
from tagger.errors import log_exception


def _raise(exc):
    try:
        raise exc
    except Exception as e:
        return e


class TestLogException:
    def test_appends_record_with_context(self, tmp_path):
        log_path = log_exception(_raise(RuntimeError("boom")), context="tagger list")
        assert log_path == tmp_path / "errors.log"

        text = log_path.read_text()
        assert "RuntimeError in tagger list" in text
        assert "Traceback" in text
        assert "boom" in text

        log_exception(_raise(KeyError("second")))
        assert log_path.read_text().startswith(text)
        assert "KeyError" in log_path.read_text()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_private_file(self, tmp_path):
        log_path = log_exception(_raise(ValueError("x")))
        assert stat.S_IMODE(log_path.stat().st_mode) == 0o600

    def test_unwritable_log_is_ignored(self, tmp_path, monkeypatch):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        monkeypatch.setenv("TAGGER_ERROR_LOG", str(blocker / "errors.log"))
        assert log_exception(_raise(ValueError("x"))) == blocker / "errors.log"


class TestMain:
    def test_unexpected_error_is_logged(self, root, tmp_path, monkeypatch, capsys):
        def explode(self):
            raise RuntimeError("index exploded")

        monkeypatch.setattr(Tagger, "list_tags", explode)
        monkeypatch.setattr(sys, "argv", ["tagger", "--list"])

        with pytest.raises(SystemExit) as exc_info:
            cli.main()
        assert exc_info.value.code == 1

        err = capsys.readouterr().err
        assert "Error: index exploded" in err
        assert "Details logged to" in err

        text = (tmp_path / "errors.log").read_text()
        assert "RuntimeError in tagger list" in text
        assert "index exploded" in text
