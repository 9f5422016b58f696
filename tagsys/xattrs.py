"""
Extended attribute access for file tags.

A tag is stored as an empty-valued attribute named <namespace><tag>,
e.g. 'user.tagsys6.1000.urgent'. Attributes outside the namespace are
never touched.
"""

import logging
import os

from .errors import AlreadyTaggedError

logger = logging.getLogger(__name__)


class FileTagger:
    """Reads and writes the tags of files in one xattr namespace."""

    def __init__(self, namespace: str):
        self.namespace = namespace

    def attribute_name(self, tag: str) -> str:
        return f"{self.namespace}{tag}"

    def _tag_of(self, key: str):
        if len(key) > len(self.namespace) and key.startswith(self.namespace):
            return key[len(self.namespace):]
        return None

    def list_tags(self, path) -> list[str]:
        """Tags of `path` in attribute-list order. OSError propagates."""
        tags = []
        for key in os.listxattr(path):
            tag = self._tag_of(key)
            if tag is not None:
                tags.append(tag)
        return tags

    def read_tags(self, path) -> set[str]:
        """Set of tags currently assigned to `path`. OSError propagates."""
        return set(self.list_tags(path))

    def set_tag(self, path, tag: str) -> None:
        """
        Assign `tag` to `path`.

        Raises:
            AlreadyTaggedError: If the file already carries the tag
            OSError: On any other xattr failure
        """
        try:
            os.setxattr(path, self.attribute_name(tag), b"", os.XATTR_CREATE)
        except FileExistsError:
            raise AlreadyTaggedError(str(path), tag) from None
        logger.info("Tagged %s with %s", path, tag)

    def remove_tag(self, path, tag: str) -> None:
        """Remove `tag` from `path`. OSError propagates (ENODATA if absent)."""
        os.removexattr(path, self.attribute_name(tag))
        logger.info("Removed tag %s from %s", tag, path)

    def clear_tags(self, path) -> list[tuple[str, OSError]]:
        """
        Remove every tag of `path`.

        Returns:
            (tag, error) for each tag that could not be removed

        Raises:
            OSError: If the attribute list cannot be read
        """
        failures = []
        for tag in self.list_tags(path):
            try:
                self.remove_tag(path, tag)
            except OSError as e:
                failures.append((tag, e))
        return failures
