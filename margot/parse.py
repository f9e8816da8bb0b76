"""Parse Markdown into a margot node tree with source positions.

markdown-it only records which lines a block spans. Columns are recovered
here by reading the source lines: container prefixes (``>`` and list
markers) are consumed, most blocks then start at their first non-blank
character, and every block ends at the end of its last non-blank line.
Inline nodes get no position at all and are therefore generated.
"""

import dataclasses
import re

import markdown_it
from markdown_it import tree as markdown_tree

from margot import location, nodes

_PARSER = markdown_it.MarkdownIt("commonmark").enable(["table", "strikethrough"])

_BLOCK_KINDS: dict[str, str] = {
    "paragraph": "paragraph",
    "heading": "heading",
    "blockquote": "blockquote",
    "bullet_list": "list",
    "ordered_list": "list",
    "list_item": "listItem",
    "fence": "code",
    "code_block": "code",
    "html_block": "html",
    "hr": "thematicBreak",
    "table": "table",
    "tr": "tableRow",
    "th": "tableCell",
    "td": "tableCell",
}

_INLINE_KINDS: dict[str, str] = {
    "text": "text",
    "softbreak": "text",
    "hardbreak": "break",
    "code_inline": "inlineCode",
    "html_inline": "html",
    "em": "emphasis",
    "strong": "strong",
    "s": "delete",
    "link": "link",
    "image": "image",
}

# Wrapper nodes whose children belong directly to the enclosing block.
_TRANSPARENT: frozenset[str] = frozenset({"inline", "thead", "tbody"})

_FRONT_MATTER_PAT = re.compile(r"\A---[ \t]*\r?\n(?:.*?\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

_CHECKBOX_PAT = re.compile(r"\[([ \txX])\][ \t]")

# A list item's content may be indented at most this far past its marker.
_MAX_MARKER_GAP = 4


@dataclasses.dataclass(frozen=True)
class Document:
    """A source text together with the tree parsed from it."""

    source: str
    tree: nodes.Node


@dataclasses.dataclass(frozen=True)
class _Container:
    """A blockquote or list item whose prefix must be skipped on each line."""

    kind: str
    start_line: int
    indent: int = 0


def _skip_whitespace(text: str, column: int) -> int:
    while column < len(text) and text[column] in " \t":
        column += 1
    return column


def _is_blank(text: str) -> bool:
    return not text.strip()


class _TreeBuilder:
    """Converts a markdown-it syntax tree into margot nodes for one source."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._location = location.Location(source)
        self._lines = source.split("\n")

    def build(self, syntax_root: markdown_tree.SyntaxTreeNode, front_matter: int) -> nodes.Node:
        root = nodes.Node(
            kind="root",
            position=nodes.Position(
                start=self._location.to_point(0),
                end=self._location.to_point(len(self._source)),
            ),
        )
        if front_matter:
            root.children.append(self._front_matter_node(front_matter))
        self._add_children(root, syntax_root.children, ())
        return root

    def _front_matter_node(self, line_count: int) -> nodes.Node:
        last = line_count - 1
        return nodes.Node(
            kind="yaml",
            value="\n".join(self._lines[1:last]),
            position=nodes.Position(
                start=self._point(0, 0),
                end=self._point(last, len(self._lines[last].rstrip())),
            ),
        )

    def _point(self, line_index: int, column: int) -> nodes.Point:
        offset = self._location.to_offset((line_index + 1, column + 1))
        return nodes.Point(line=line_index + 1, column=column + 1, offset=offset)

    def _add_children(
        self,
        parent: nodes.Node,
        children: list[markdown_tree.SyntaxTreeNode],
        containers: tuple[_Container, ...],
    ) -> None:
        for syntax in children:
            if syntax.type in _TRANSPARENT:
                self._add_children(parent, syntax.children, containers)
            elif syntax.type in _INLINE_KINDS:
                parent.children.append(self._inline(syntax))
            else:
                parent.children.append(self._block(syntax, containers))

    def _inline(self, syntax: markdown_tree.SyntaxTreeNode) -> nodes.Node:
        node = nodes.Node(kind=_INLINE_KINDS[syntax.type])
        if syntax.type in ("text", "code_inline", "html_inline"):
            node.value = syntax.content
        elif syntax.type == "softbreak":
            node.value = "\n"
        elif syntax.type == "link":
            node.url = str(syntax.attrGet("href") or "")
        elif syntax.type == "image":
            node.url = str(syntax.attrGet("src") or "")
            node.alt = syntax.content
            return node
        node.children.extend(self._inline(child) for child in syntax.children)
        return node

    def _block(
        self,
        syntax: markdown_tree.SyntaxTreeNode,
        containers: tuple[_Container, ...],
    ) -> nodes.Node:
        node = nodes.Node(kind=_BLOCK_KINDS.get(syntax.type, syntax.type))
        if syntax.type == "heading":
            node.depth = int(syntax.tag[1:])
        elif syntax.type == "fence":
            lang, _, meta = syntax.info.strip().partition(" ")
            node.lang = lang or None
            node.meta = meta.strip() or None
            node.value = syntax.content.removesuffix("\n")
        elif syntax.type in ("code_block", "html_block"):
            node.value = syntax.content.removesuffix("\n")
        elif syntax.type in ("bullet_list", "ordered_list"):
            node.ordered = syntax.type == "ordered_list"

        node.position = self._block_position(syntax, containers)
        if node.position is None:
            # Without a position the column bookkeeping of descendants is
            # meaningless, so they are generated as well.
            self._add_unpositioned(node, syntax.children)
            return node

        inner = containers
        if node.kind == "blockquote":
            inner = (*containers, _Container("blockquote", node.position.start.line - 1))
        elif node.kind == "listItem":
            inner = (*containers, self._list_item_container(syntax, node))
        self._add_children(node, syntax.children, inner)
        if node.kind == "listItem":
            self._mark_task(node)
        return node

    def _add_unpositioned(
        self,
        parent: nodes.Node,
        children: list[markdown_tree.SyntaxTreeNode],
    ) -> None:
        for syntax in children:
            if syntax.type in _TRANSPARENT:
                self._add_unpositioned(parent, syntax.children)
            elif syntax.type in _INLINE_KINDS:
                parent.children.append(self._inline(syntax))
            else:
                child = nodes.Node(kind=_BLOCK_KINDS.get(syntax.type, syntax.type))
                self._add_unpositioned(child, syntax.children)
                parent.children.append(child)

    def _list_item_container(
        self,
        syntax: markdown_tree.SyntaxTreeNode,
        node: nodes.Node,
    ) -> _Container:
        """Describe where content starts after a list item's marker."""
        line_index = node.position.start.line - 1
        marker_start = node.position.start.column - 1
        marker_length = len(syntax.markup) + (len(syntax.info) if syntax.info else 0)
        text = self._lines[line_index]
        marker_end = marker_start + marker_length
        gap = _skip_whitespace(text, marker_end) - marker_end
        if gap == 0 or gap > _MAX_MARKER_GAP or marker_end + gap >= len(text.rstrip()):
            gap = 1
        return _Container("listItem", line_index, indent=marker_length + gap)

    def _skip_containers(self, line_index: int, containers: tuple[_Container, ...]) -> int:
        """Return the column at which content starts on a line, past all prefixes."""
        text = self._lines[line_index]
        column = 0
        for container in containers:
            if container.kind == "blockquote":
                probe = _skip_whitespace(text, column)
                if probe < len(text) and text[probe] == ">":
                    column = probe + 1
            elif container.start_line == line_index:
                # The item itself starts here: its start column was already
                # derived from this line, so jump past the marker.
                marker = _skip_whitespace(text, column)
                column = min(marker + container.indent, len(text))
            else:
                column = min(_skip_whitespace(text, column), column + container.indent)
        return column

    def _block_position(
        self,
        syntax: markdown_tree.SyntaxTreeNode,
        containers: tuple[_Container, ...],
    ) -> nodes.Position | None:
        if syntax.map is None:
            return None
        first, stop = syntax.map
        if not 0 <= first < len(self._lines) or stop > len(self._lines):
            return None
        last = max(first, stop - 1)
        while last > first and _is_blank(self._lines[last]):
            last -= 1

        column = self._skip_containers(first, containers)
        # Indented code keeps its indentation inside the node.
        if syntax.type != "code_block":
            column = _skip_whitespace(self._lines[first], column)

        end_column = len(self._lines[last].rstrip())
        if last == first:
            end_column = max(end_column, column)
        return nodes.Position(
            start=self._point(first, column),
            end=self._point(last, end_column),
        )

    def _mark_task(self, item: nodes.Node) -> None:
        """Set ``checked`` on a GFM task list item and drop its checkbox text.

        The item's paragraph is moved to start after the checkbox and the one
        whitespace character that must follow it.
        """
        if not item.children or item.children[0].kind != "paragraph":
            return
        paragraph = item.children[0]
        if paragraph.position is None:
            return
        start = paragraph.position.start
        line_text = self._lines[start.line - 1]
        match = _CHECKBOX_PAT.match(line_text, start.column - 1)
        if match is None:
            return
        item.checked = match.group(1) in "xX"
        new_start = self._point(start.line - 1, match.end())
        end = paragraph.position.end
        if new_start.offset > end.offset:
            end = new_start
        paragraph.position = nodes.Position(start=new_start, end=end)
        if paragraph.children and paragraph.children[0].kind == "text":
            text = paragraph.children[0]
            leading = _CHECKBOX_PAT.match(text.value or "")
            if leading is not None:
                text.value = text.value[leading.end():]


def _front_matter_lines(source: str) -> int:
    """Return how many lines a leading YAML front matter block spans, or 0."""
    match = _FRONT_MATTER_PAT.match(source)
    if match is None:
        return 0
    block = match.group()
    return block.count("\n") + (0 if block.endswith("\n") else 1)


def parse(source: str) -> Document:
    """Parse *source* into a Document.

    A leading YAML front matter block becomes a ``yaml`` node instead of
    being read as Markdown; line numbers are unaffected.
    """
    front_matter = _front_matter_lines(source)
    if front_matter:
        lines = source.split("\n")
        markdown = "\n" * front_matter + "\n".join(lines[front_matter:])
    else:
        markdown = source
    syntax_root = markdown_tree.SyntaxTreeNode(_PARSER.parse(markdown))
    tree = _TreeBuilder(source).build(syntax_root, front_matter)
    return Document(source=source, tree=tree)
