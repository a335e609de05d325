"""
Error types and error logging for tagger.

Logs full stack traces for debugging while showing clean messages to users.
"""

import logging
import os
import traceback
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


class TaggerError(Exception):
    """Base class for errors reported to the CLI."""


def _error_log_path() -> Path:
    """Resolve error log path, respecting TAGGER_ERROR_LOG."""
    override = os.environ.get("TAGGER_ERROR_LOG")
    if override:
        return Path(override)
    return Path.home() / ".cache" / "tagger" / "errors.log"


def log_exception(exc: BaseException, context: str = "") -> Path:
    """
    Append a traceback record for exc to the error log.

    context is written on the record's header line; the CLI passes the
    command line that failed. A log that cannot be written is reported at
    debug level only.

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path()
    header = f"[{datetime.now(timezone.utc).isoformat()}] {type(exc).__name__}"
    if context:
        header += f" in {context}"
    record = "\n".join([
        "-" * 60,
        header,
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip(),
        "",
    ])
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a", encoding="utf-8", errors="backslashreplace") as f:
            f.write(record)
    except OSError:
        logger.debug("Cannot write error log %s", log_path, exc_info=True)
    return log_path
