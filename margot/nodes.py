"""mdast-shaped tree types and the generated-node predicate."""

from __future__ import annotations

import dataclasses
import typing

if typing.TYPE_CHECKING:
    from margot import location


@dataclasses.dataclass(frozen=True)
class Point:
    """A place in the source text.

    Attributes:
        line: 1-indexed line.
        column: 1-indexed column, counted in characters.
        offset: 0-indexed character offset into the source.
    """

    line: int
    column: int
    offset: int


@dataclasses.dataclass(frozen=True)
class Position:
    """The span a node or diagnostic covers, from *start* up to *end*."""

    start: Point
    end: Point


@dataclasses.dataclass
class Node:
    """One element of a parsed Markdown document.

    ``kind`` follows mdast naming (``heading``, ``code``, ``blockquote``,
    ``listItem``...). Nodes without a position are generated: they were
    synthesized rather than read from the source.
    """

    kind: str
    children: list[Node] = dataclasses.field(default_factory=list)
    position: Position | None = None
    value: str | None = None
    depth: int | None = None
    lang: str | None = None
    meta: str | None = None
    checked: bool | None = None
    ordered: bool | None = None
    url: str | None = None
    alt: str | None = None


def is_well_formed(
    position: Position | None,
    loc: location.Location | None = None,
) -> bool:
    """Return True if *position* can be reported on.

    A position is well formed when both points are present, the start does
    not come after the end and, given a Location, both points resolve to the
    same line/column/offset in that source text.
    """
    if position is None or position.start is None or position.end is None:
        return False
    if position.start.offset > position.end.offset:
        return False
    if loc is None:
        return True
    return loc.is_resolvable(position.start) and loc.is_resolvable(position.end)


def is_generated(node: Node, loc: location.Location | None = None) -> bool:
    """Return True if *node* has no reliable place in the source text."""
    return not is_well_formed(node.position, loc)


def point_start(node: Node) -> Point | None:
    return None if node.position is None else node.position.start


def point_end(node: Node) -> Point | None:
    return None if node.position is None else node.position.end


def to_string(node: Node) -> str:
    """Return the plain-text content of *node*, ignoring Markdown syntax.

    Uses the node's ``value`` when it has one, an image's ``alt`` text, and
    otherwise the concatenated content of its children.
    """
    if node.value is not None:
        return node.value
    if node.alt is not None:
        return node.alt
    return "".join(to_string(child) for child in node.children)


def stringify_point(point: Point | None) -> str:
    """Format *point* as ``line:column`` (``1:1`` when absent)."""
    if point is None:
        return "1:1"
    return f"{point.line}:{point.column}"


def stringify_position(position: Position | None) -> str:
    """Format *position* as ``line:column-line:column``."""
    if position is None:
        return "1:1-1:1"
    return f"{stringify_point(position.start)}-{stringify_point(position.end)}"
