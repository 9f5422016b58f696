"""
tagsys - hierarchical file tags stored as extended attributes.

Tags live in a per-user xattr namespace on the files themselves; the
taxonomy of known tags is a JSON document in the user's home directory.
"""

from .errors import (
    AlreadyTaggedError,
    DuplicateTagError,
    InvalidTagNameError,
    MalformedQueryError,
    MalformedTaxonomyError,
    NotAssignableError,
    TagError,
    TagNotFoundError,
    TaxonomyIOError,
    UnknownTagError,
)
from .types import Forest, MatchSet, TagNode

__all__ = [
    "AlreadyTaggedError",
    "DuplicateTagError",
    "Forest",
    "InvalidTagNameError",
    "MalformedQueryError",
    "MalformedTaxonomyError",
    "MatchSet",
    "NotAssignableError",
    "TagError",
    "TagNode",
    "TagNotFoundError",
    "TaxonomyIOError",
    "UnknownTagError",
]
