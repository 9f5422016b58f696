"""
Data types for the tag taxonomy.

The taxonomy is persisted as a JSON array of tag objects:

    [
        {"name": "work", "assignable": false, "children": [
            {"name": "urgent", "assignable": true, "children": []}
        ]},
        {"name": "music", "assignable": true, "children": []}
    ]

TagNode and Forest are the in-memory owned tree; from_dict/from_list and
to_dict/to_list are the only conversions to and from the document shape.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator

from .errors import MalformedTaxonomyError

NAME_ATTRIBUTE = "name"
ASSIGNABLE_ATTRIBUTE = "assignable"
CHILDREN_ATTRIBUTE = "children"


@dataclass
class TagNode:
    """A tag in the taxonomy. A node owns its children subtree."""
    name: str
    assignable: bool = True
    children: list["TagNode"] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, location: str = "") -> "TagNode":
        """
        Build a node (and its subtree) from a parsed JSON object.

        Args:
            data: The decoded JSON value for this node
            location: Position in the document, used in error messages

        Raises:
            MalformedTaxonomyError: If a field is missing or has the wrong type
        """
        where = location or "<root>"
        if not isinstance(data, dict):
            raise MalformedTaxonomyError(f"{where}: tag must be an object")

        name = data.get(NAME_ATTRIBUTE)
        if not isinstance(name, str) or not name:
            raise MalformedTaxonomyError(
                f"{where}: '{NAME_ATTRIBUTE}' must be a non-empty string"
            )

        assignable = data.get(ASSIGNABLE_ATTRIBUTE)
        if not isinstance(assignable, bool):
            raise MalformedTaxonomyError(
                f"{where} ({name}): '{ASSIGNABLE_ATTRIBUTE}' must be a boolean"
            )

        children = data.get(CHILDREN_ATTRIBUTE)
        if not isinstance(children, list):
            raise MalformedTaxonomyError(
                f"{where} ({name}): '{CHILDREN_ATTRIBUTE}' must be an array"
            )

        return cls(
            name=name,
            assignable=assignable,
            children=[
                cls.from_dict(child, f"{location}.{CHILDREN_ATTRIBUTE}[{i}]")
                for i, child in enumerate(children)
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            NAME_ATTRIBUTE: self.name,
            ASSIGNABLE_ATTRIBUTE: self.assignable,
            CHILDREN_ATTRIBUTE: [child.to_dict() for child in self.children],
        }


@dataclass
class Forest:
    """The whole taxonomy: an ordered list of top-level tags."""
    roots: list[TagNode] = field(default_factory=list)

    @classmethod
    def from_list(cls, data: Any) -> "Forest":
        """Build a Forest from the decoded JSON document."""
        if not isinstance(data, list):
            raise MalformedTaxonomyError("taxonomy document must be an array of tags")
        return cls(roots=[TagNode.from_dict(item, f"[{i}]") for i, item in enumerate(data)])

    def to_list(self) -> list[dict[str, Any]]:
        return [root.to_dict() for root in self.roots]

    def __iter__(self) -> Iterator[TagNode]:
        """Pre-order iteration over every node, roots in document order."""
        stack = list(reversed(self.roots))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __len__(self) -> int:
        return sum(1 for _ in self)


@dataclass
class MatchSet:
    """
    Resolved search query.

    A file matches when it carries at least one name of every required
    group and none of the forbidden names.
    """
    required: list[frozenset[str]] = field(default_factory=list)
    forbidden: frozenset[str] = frozenset()

    def is_empty(self) -> bool:
        """True for the no-term query, which matches any tagged file."""
        return not self.required and not self.forbidden
