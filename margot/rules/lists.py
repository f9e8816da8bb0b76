"""List rules: checkbox-content-indent."""

import re

from margot import nodes, report, walk
from margot.rules import base

_CHECKBOX_PAT = re.compile(r"\[([\t xX])\]")


class CheckboxContentIndent(base.Rule):
    """Flag task list checkboxes followed by more than one whitespace character.

    Only list items with a checkbox (``[ ]``, ``[x]`` or ``[X]``) are
    checked. The diagnostic covers the extra whitespace between the
    checkbox and the item's content.

    Allowed:
        - [ ] List item
        +  [x] List item

    Flagged:
        + [x]  List item
        - [ ]    List item
    """

    rule_id = "checkbox-content-indent"

    def run(self, tree: nodes.Node, file: report.Reporter, option: None) -> None:
        """Report the extra whitespace after each task list checkbox."""
        source = file.source
        for item in walk.iter_nodes(tree, "listItem"):
            if item.checked is None or file.is_generated(item):
                continue
            if item.children and not file.is_generated(item.children[0]):
                point = nodes.point_start(item.children[0])
            else:
                point = nodes.point_end(item)
            # The content starts one character after the checkbox.
            if not _CHECKBOX_PAT.search(source[max(point.offset - 4, 0) : point.offset + 1]):
                continue
            initial = point.offset
            final = initial
            while final < len(source) and source[final] in " \t":
                final += 1
            if final > initial:
                file.message(
                    "Checkboxes should be followed by a single character",
                    nodes.Position(
                        start=file.location.to_point(initial),
                        end=file.location.to_point(final),
                    ),
                )
