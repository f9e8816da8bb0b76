"""Code block rules: code-block-style."""

import functools
import re

from margot import nodes, report, style, walk
from margot.rules import base

_STYLES: tuple[str, ...] = ("fenced", "indented")

# An opening fence: three or more of the same backtick or tilde character.
_FENCE_PAT = re.compile(r"^\s*([~`])\1{2,}")


def _code_style(source: str, node: nodes.Node) -> str:
    """Return ``fenced`` or ``indented`` for a code node."""
    if node.lang:
        return "fenced"
    text = source[node.position.start.offset : node.position.end.offset]
    return "fenced" if _FENCE_PAT.match(text) else "indented"


class CodeBlockStyle(base.Rule):
    """Flag code blocks that do not use the preferred style.

    Code blocks are either fenced (opened with three or more backticks or
    tildes) or indented by four spaces. With ``consistent`` the first code
    block in the document decides the style for the rest.

    Option ``style``: ``consistent`` (default), ``fenced`` or ``indented``.

    Allowed (``style = "indented"``):
            alpha();

        Paragraph.

            bravo();

    Flagged (default):
            alpha();

        Paragraph.

        ```
        bravo();
        ```
    """

    rule_id = "code-block-style"
    option_key = "style"

    def parse_option(self, option: object) -> str | None:
        """Return the fixed style, or None to infer it from the document.

        Raises:
            OptionError: If the option names an unknown style.
        """
        return style.parse_style(option, _STYLES, "code block style")

    def run(self, tree: nodes.Node, file: report.Reporter, option: str | None) -> None:
        """Report every code block whose style differs from the preferred one."""
        for verdict in style.mismatches(
            walk.iter_nodes(tree, "code"),
            file.is_generated,
            functools.partial(_code_style, file.source),
            preferred=option,
        ):
            file.message(f"Code blocks should be {verdict.preferred}", verdict.node)
