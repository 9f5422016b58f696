"""
Taxonomy document persistence.

The document is read once per invocation and, for mutating commands,
overwritten as a whole once at the end. There is no locking: two
concurrent mutating invocations race and the last writer wins.
"""

import json
import logging
from collections import Counter
from pathlib import Path

from .errors import MalformedTaxonomyError, TaxonomyIOError
from .types import Forest

logger = logging.getLogger(__name__)


class TaxonomyFile:
    """JSON file holding the tag taxonomy."""

    def __init__(self, path: Path):
        """
        Args:
            path: Path to the taxonomy JSON document
        """
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self, missing_ok: bool = False) -> Forest:
        """
        Parse the taxonomy document.

        Args:
            missing_ok: Return an empty Forest instead of failing when the
                document does not exist yet

        Raises:
            TaxonomyIOError: If the document cannot be read
            MalformedTaxonomyError: If it is not valid JSON or not a taxonomy
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            if missing_ok:
                logger.debug("No taxonomy at %s, starting empty", self.path)
                return Forest()
            raise TaxonomyIOError(
                f"Error loading config file '{self.path}': file does not exist "
                "(run 'tagsys init' to create it)"
            ) from None
        except (OSError, UnicodeDecodeError) as e:
            raise TaxonomyIOError(f"Error loading config file '{self.path}': {e}") from e

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedTaxonomyError(
                f"Error parsing config file '{self.path}': {e.msg} "
                f"(line {e.lineno}, column {e.colno})"
            ) from e
        except RecursionError as e:
            raise MalformedTaxonomyError(
                f"Error parsing config file '{self.path}': tags nested too deeply"
            ) from e

        try:
            forest = Forest.from_list(data)
        except MalformedTaxonomyError as e:
            raise MalformedTaxonomyError(f"Invalid config file '{self.path}': {e}") from e
        except RecursionError as e:
            raise MalformedTaxonomyError(
                f"Invalid config file '{self.path}': tags nested too deeply"
            ) from e

        duplicates = [name for name, n in Counter(node.name for node in forest).items() if n > 1]
        if duplicates:
            logger.warning(
                "Taxonomy %s has duplicate tag names: %s", self.path, ", ".join(sorted(duplicates))
            )
        logger.debug("Loaded %d tags from %s", len(forest), self.path)
        return forest

    def save(self, forest: Forest) -> None:
        """
        Overwrite the document with `forest`.

        Raises:
            TaxonomyIOError: If the document cannot be written
        """
        text = json.dumps(forest.to_list(), ensure_ascii=False, separators=(",", ":"))
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            raise TaxonomyIOError(f"Error writing config file '{self.path}': {e}") from e
        logger.debug("Saved %d tags to %s", len(forest), self.path)
