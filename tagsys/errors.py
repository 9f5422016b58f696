"""
Error types and error logging for tagsys.

Every failure the tools report to the user is a TagError subclass.
Unexpected exceptions are logged with their full stack trace while the
user only sees a clean one-line message.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path


class TagError(Exception):
    """Base class for errors reported by the tag tools."""


class TagNotFoundError(TagError):
    """A named tag is not present in the taxonomy."""

    def __init__(self, name: str):
        super().__init__(f"Tag '{name}' not found")
        self.name = name


class UnknownTagError(TagNotFoundError):
    """A search term references a tag absent from the taxonomy."""

    def __init__(self, name: str):
        TagError.__init__(self, f"Unknown tag '{name}'")
        self.name = name


class DuplicateTagError(TagError):
    """A tag with the same name already exists somewhere in the taxonomy."""

    def __init__(self, name: str):
        super().__init__(f"Tag '{name}' already exists")
        self.name = name


class NotAssignableError(TagError):
    """A category tag was given where an assignable tag is required."""

    def __init__(self, name: str):
        super().__init__(f"Tag '{name}' is not assignable")
        self.name = name


class AlreadyTaggedError(TagError):
    """The file already carries the tag."""

    def __init__(self, path: str, name: str):
        super().__init__(f"File '{path}' is already tagged with '{name}'")
        self.path = path
        self.name = name


class InvalidTagNameError(TagError, ValueError):
    """A new tag name cannot be stored."""


class MalformedTaxonomyError(TagError):
    """The taxonomy document does not have the expected shape."""


class MalformedQueryError(TagError, ValueError):
    """A search term does not start with a valid modifier."""


class TaxonomyIOError(TagError):
    """The taxonomy document could not be read or written."""


def _error_log_path() -> Path:
    """Resolve error log path, respecting TAGSYS_ERROR_LOG."""
    override = os.environ.get("TAGSYS_ERROR_LOG")
    if override:
        return Path(override)
    return Path.home() / ".tagsys-errors.log"


def log_exception(exc: Exception, context: str = "") -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path()
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(exc)))
    except OSError:
        pass  # Can't write error log, don't crash over it
    return log_path
