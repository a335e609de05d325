"""
Logging configuration for tagger.

Quiet by default: only warnings from the tagger logger reach stderr.
"""

import logging
import sys
import warnings


def configure_quiet_mode(quiet: bool = True):
    """
    Configure logging to keep CLI output clean.

    Args:
        quiet: If True, suppress warnings and informational logging.
            If False, show everything down to INFO.
    """
    tagger_logger = logging.getLogger("tagger")
    if quiet:
        warnings.filterwarnings("ignore")
        tagger_logger.setLevel(logging.WARNING)
    else:
        warnings.filterwarnings("default")
        tagger_logger.setLevel(logging.INFO)


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
    # Re-enable warnings
    warnings.filterwarnings("default")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        root_logger.addHandler(handler)

    logging.getLogger("tagger").setLevel(logging.DEBUG)
