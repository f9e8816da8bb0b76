"""Block quote rules: blockquote-indentation."""

from margot import nodes, report, style, walk
from margot.rules import base


def _indentation(node: nodes.Node) -> int:
    """Return the columns between a block quote's marker and its content."""
    return node.children[0].position.start.column - node.position.start.column


class BlockquoteIndentation(base.Rule):
    """Flag block quotes indented too much or too little.

    Indentation is measured from the ``>`` marker to the start of the
    quote's content, so ``> Hello`` has an indentation of 2. Empty block
    quotes are ignored.

    Option ``indent``: a number, or ``consistent`` (default) to take the
    indentation of the first block quote in the document. ``0`` is treated
    as ``consistent``.

    Allowed (``indent = 2``):
        > Hello

        Paragraph.

        > World

    Flagged (default):
        >  Hello

        Paragraph.

        >   World
    """

    rule_id = "blockquote-indentation"
    option_key = "indent"

    def parse_option(self, option: object) -> int | None:
        """Return the fixed indentation, or None to infer it.

        Raises:
            OptionError: If the option is neither a number nor consistent.
        """
        indent = style.parse_count(option, "block quote indentation")
        # The marker itself takes a column, so no quote measures 0.
        return indent or None

    def _is_skipped(self, file: report.Reporter, node: nodes.Node) -> bool:
        return (
            file.is_generated(node)
            or not node.children
            or file.is_generated(node.children[0])
        )

    def run(self, tree: nodes.Node, file: report.Reporter, option: int | None) -> None:
        """Report every block quote whose indentation differs from the preferred one."""
        for verdict in style.mismatches(
            walk.iter_nodes(tree, "blockquote"),
            lambda node: self._is_skipped(file, node),
            _indentation,
            preferred=option,
        ):
            diff = verdict.preferred - verdict.observed
            count = abs(diff)
            action = "Add" if diff > 0 else "Remove"
            noun = "space" if count == 1 else "spaces"
            file.message(
                f"{action} {count} {noun} between block quote and content",
                nodes.point_start(verdict.node.children[0]),
            )
