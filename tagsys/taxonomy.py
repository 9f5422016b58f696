"""
Structural operations over a tag Forest.

All lookups are depth-first and pre-order with roots in document order,
so the first match is deterministic. Tag names compare exactly, without
case or Unicode normalization.
"""

import logging
from typing import Iterator, Optional

from .errors import (
    DuplicateTagError,
    InvalidTagNameError,
    MalformedTaxonomyError,
    TagNotFoundError,
)
from .types import Forest, TagNode

logger = logging.getLogger(__name__)

# Tree listing layout
INDENT_CHILD = "|     "
INDENT_NO_CHILD = "      "
BEFORE_TAG = "\\---- "
NOT_ASSIGNABLE_HINT = "(*)"


def children_of(node: TagNode) -> list[TagNode]:
    """Return the node's children collection."""
    if not isinstance(node.children, list):
        raise MalformedTaxonomyError(f"Tag '{node.name}' does not have an array of children")
    return node.children


def is_assignable(node: TagNode) -> bool:
    if not isinstance(node.assignable, bool):
        raise MalformedTaxonomyError(f"Tag '{node.name}' has no assignable flag")
    return node.assignable


def _locate(
    collection: list[TagNode], name: str
) -> Optional[tuple[list[TagNode], int]]:
    for index, node in enumerate(collection):
        if node.name == name:
            return collection, index
        found = _locate(children_of(node), name)
        if found is not None:
            return found
    return None


def lookup(forest: Forest, name: str) -> Optional[TagNode]:
    """Return the tag named `name`, or None if the taxonomy has no such tag."""
    found = _locate(forest.roots, name)
    if found is None:
        return None
    collection, index = found
    return collection[index]


def contains(forest: Forest, name: str) -> bool:
    return lookup(forest, name) is not None


def find(forest: Forest, name: str) -> TagNode:
    """
    Return the tag named `name`.

    Raises:
        TagNotFoundError: If no tag has that name
    """
    node = lookup(forest, name)
    if node is None:
        raise TagNotFoundError(name)
    return node


def find_parent_collection(forest: Forest, name: str) -> tuple[list[TagNode], int]:
    """
    Locate the sibling list owning the tag named `name`.

    Returns:
        (collection, index) where collection is either the root list or
        some node's children, and collection[index] is the named tag.

    Raises:
        TagNotFoundError: If no tag has that name
    """
    found = _locate(forest.roots, name)
    if found is None:
        raise TagNotFoundError(name)
    return found


def flatten_subtree(node: TagNode) -> set[str]:
    """The node's own name plus the names of all its descendants."""
    names = {node.name}
    for child in children_of(node):
        names |= flatten_subtree(child)
    return names


def walk(forest: Forest) -> Iterator[tuple[int, TagNode]]:
    """Yield (depth, node) for every tag, pre-order."""
    def _walk(collection: list[TagNode], depth: int):
        for node in collection:
            yield depth, node
            yield from _walk(children_of(node), depth + 1)

    yield from _walk(forest.roots, 0)


def validate_tag_name(name: str) -> None:
    """Validate a new tag name can be stored in the taxonomy and as an xattr key."""
    if not name:
        raise InvalidTagNameError("Tag name must not be empty")
    if "\0" in name:
        raise InvalidTagNameError(f"Tag name {name!r} contains a NUL character")


def insert(
    forest: Forest,
    parent_name: Optional[str],
    new_name: str,
    assignable: bool = True,
) -> TagNode:
    """
    Add a new leaf tag under `parent_name`, or as a root tag if None.

    The forest is left unchanged when any check fails.

    Raises:
        InvalidTagNameError: If `new_name` is empty or contains NUL
        TagNotFoundError: If `parent_name` is given but absent
        DuplicateTagError: If a tag named `new_name` already exists
    """
    validate_tag_name(new_name)
    if parent_name is None:
        target = forest.roots
    else:
        target = children_of(find(forest, parent_name))
    if contains(forest, new_name):
        raise DuplicateTagError(new_name)

    node = TagNode(name=new_name, assignable=assignable)
    target.append(node)
    logger.debug("Inserted tag %r under %r", new_name, parent_name)
    return node


def remove(forest: Forest, name: str) -> int:
    """
    Remove the tag named `name`, promoting its children.

    The direct children of the removed tag are appended, in their original
    order, to the collection that held the removed tag.

    Returns:
        Number of children promoted

    Raises:
        TagNotFoundError: If no tag has that name
    """
    collection, index = find_parent_collection(forest, name)
    node = collection.pop(index)
    orphans = children_of(node)
    collection.extend(orphans)
    node.children = []
    logger.debug("Removed tag %r, promoted %d children", name, len(orphans))
    return len(orphans)


def format_tree(forest: Forest) -> list[str]:
    """
    Render the taxonomy as an indented tree, one line per tag.

    Category (non-assignable) tags carry a trailing '(*)'.
    """
    lines: list[str] = []

    def _render(collection: list[TagNode], prefix: str):
        for i, node in enumerate(collection):
            hint = "" if is_assignable(node) else NOT_ASSIGNABLE_HINT
            lines.append(f"{prefix}{BEFORE_TAG}{node.name}{hint}")
            has_next = i + 1 < len(collection)
            _render(children_of(node), prefix + (INDENT_CHILD if has_next else INDENT_NO_CHILD))

    _render(forest.roots, "")
    return lines
