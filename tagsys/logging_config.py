"""
Logging configuration for tagsys.

Quiet by default: only warnings reach stderr. Debug output and the
persistent operations log are opt-in.
"""

import logging
import sys
import warnings


def configure_quiet_mode(quiet: bool = True):
    """
    Keep stderr limited to warnings and errors.

    Args:
        quiet: If True, suppress Python warnings and info/debug records.
    """
    if quiet:
        warnings.filterwarnings("ignore")
        logging.getLogger("tagsys").setLevel(logging.WARNING)


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
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

    logging.getLogger("tagsys").setLevel(logging.DEBUG)


def configure_ops_log(log_path):
    """Configure a persistent operations log.

    Writes taxonomy changes and tag assignments to `log_path` using a
    rotating file handler (1MB max, 3 backups).
    Returns the handler so it can be removed again.
    """
    from logging.handlers import RotatingFileHandler
    from pathlib import Path

    log_path = Path(log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        str(log_path),
        maxBytes=1_000_000,
        backupCount=3,
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    tagsys_logger = logging.getLogger("tagsys")
    tagsys_logger.addHandler(handler)
    # Let INFO through even in quiet mode; stderr only gets what the root handler passes
    if tagsys_logger.level == logging.NOTSET or tagsys_logger.level > logging.INFO:
        tagsys_logger.setLevel(logging.INFO)

    return handler
