"""
Search query expansion.

A query is a sequence of terms, each a tag name with a leading modifier:

    +tag    the file MUST carry tag (or one of its descendants)
    _tag    the file MUST NOT carry tag (nor any of its descendants)

Required terms are AND'ed together; within one term any name of the
tag's subtree satisfies it. There are no other operators.
"""

from typing import Iterable

from . import taxonomy
from .errors import MalformedQueryError, TagNotFoundError, UnknownTagError
from .types import Forest, MatchSet

REQUIRED = "+"
FORBIDDEN = "_"


def parse_term(term: str) -> tuple[str, str]:
    """Split a term into (modifier, tag name)."""
    if not term:
        raise MalformedQueryError("Invalid tag search member '': empty term")
    modifier, name = term[0], term[1:]
    if modifier not in (REQUIRED, FORBIDDEN):
        raise MalformedQueryError(
            f"Invalid tag search member '{term}': char '{modifier}' is not a valid modifier"
        )
    if not name:
        raise MalformedQueryError(f"Invalid tag search member '{term}': missing tag name")
    return modifier, name


def expand_query(forest: Forest, terms: Iterable[str]) -> MatchSet:
    """
    Resolve search terms against the taxonomy.

    Raises:
        MalformedQueryError: If a term has no valid modifier
        UnknownTagError: If a term names a tag absent from the taxonomy
    """
    required: list[frozenset[str]] = []
    forbidden: set[str] = set()
    for term in terms:
        modifier, name = parse_term(term)
        try:
            node = taxonomy.find(forest, name)
        except TagNotFoundError:
            raise UnknownTagError(name) from None
        names = taxonomy.flatten_subtree(node) | {name}
        if modifier == REQUIRED:
            required.append(frozenset(names))
        else:
            forbidden |= names
    return MatchSet(required=required, forbidden=frozenset(forbidden))
