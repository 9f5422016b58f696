"""
Recursive tag search over a directory tree.

The walk is depth-first and pre-order, visiting directory entries in the
order the OS returns them. Paths that cannot be read are reported and
skipped; they never stop the walk.
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

from .types import MatchSet

logger = logging.getLogger(__name__)


@dataclass
class PathError:
    """A path the search could not examine."""
    path: str
    error: OSError

    def __str__(self) -> str:
        reason = self.error.strerror or str(self.error)
        return f"'{self.path}': {reason}"


class DirectoryMatcher:
    """Walks a directory tree and yields the files matching a MatchSet."""

    def __init__(
        self,
        match_set: MatchSet,
        read_tags: Callable[[str], Iterable[str]],
        on_error: Optional[Callable[[PathError], None]] = None,
    ):
        """
        Args:
            match_set: Resolved query
            read_tags: Returns the tag names assigned to a file path
            on_error: Called for each path that could not be examined
        """
        self.match_set = match_set
        self._read_tags = read_tags
        self._on_error = on_error
        self.errors: list[PathError] = []

    @property
    def ok(self) -> bool:
        """False once any path could not be examined."""
        return not self.errors

    def matches(self, tags: Iterable[str]) -> bool:
        """Decide whether a file carrying `tags` matches the query."""
        required = self.match_set.required
        forbidden = self.match_set.forbidden
        hit = [False] * len(required)
        missing = len(required)
        tagged = False

        for tag in tags:
            tagged = True
            if tag in forbidden:
                return False
            if missing:
                for i, group in enumerate(required):
                    if not hit[i] and tag in group:
                        hit[i] = True
                        missing -= 1

        if self.match_set.is_empty():
            return tagged
        return missing == 0

    def _report(self, path: str, error: OSError) -> None:
        failure = PathError(path, error)
        self.errors.append(failure)
        logger.warning("Could not examine %s", failure)
        if self._on_error is not None:
            self._on_error(failure)

    def walk(self, start) -> Iterator[str]:
        """Yield the path of every matching regular file below `start`."""
        yield from self._walk(os.fspath(start), set())

    def _walk(self, directory: str, ancestors: set[tuple[int, int]]) -> Iterator[str]:
        try:
            st = os.stat(directory)
            key = (st.st_dev, st.st_ino)
            if key in ancestors:
                # Symlink back to a directory we are inside of
                logger.debug("Skipping directory cycle at %s", directory)
                return
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            self._report(directory, e)
            return

        ancestors.add(key)
        try:
            for entry in entries:
                path = os.path.join(directory, entry.name)
                try:
                    is_dir = entry.is_dir()
                    is_file = not is_dir and entry.is_file()
                except OSError as e:
                    # e.g. ELOOP on a symlink pointing at itself
                    self._report(path, e)
                    continue
                if is_dir:
                    yield from self._walk(path, ancestors)
                elif is_file:
                    try:
                        tags = self._read_tags(path)
                    except OSError as e:
                        self._report(path, e)
                        continue
                    if self.matches(tags):
                        yield path
                else:
                    logger.debug("Skipping %s: not a regular file", path)
        finally:
            ancestors.discard(key)
