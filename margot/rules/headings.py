"""Heading rules: maximum-heading-length, no-duplicate-headings."""

from margot import nodes, report, style, walk
from margot.rules import base

_DEFAULT_MAX_LENGTH: int = 60


class MaximumHeadingLength(base.Rule):
    """Flag headings whose plain text is longer than a maximum.

    Only the text content counts: Markdown syntax such as the ``#`` markers,
    emphasis delimiters or link destinations is ignored, while image alt
    text is included.

    Option ``max_length``: a number, default 60.

    Allowed:
        # Alpha bravo charlie delta echo foxtrot golf hotel

    Flagged (``max_length = 40``):
        # Alpha bravo charlie delta echo foxtrot golf hotel
    """

    rule_id = "maximum-heading-length"
    option_key = "max_length"

    def parse_option(self, option: object) -> int:
        """Return the maximum heading length.

        Raises:
            OptionError: If the option is not a number.
        """
        return style.parse_count(
            option,
            "maximum heading length",
            default=_DEFAULT_MAX_LENGTH,
            allow_consistent=False,
        )

    def run(self, tree: nodes.Node, file: report.Reporter, option: int) -> None:
        """Report every heading longer than *option* characters."""
        for heading in walk.iter_nodes(tree, "heading"):
            if file.is_generated(heading):
                continue
            if len(nodes.to_string(heading)) > option:
                file.message(f"Use headings shorter than `{option}`", heading)


class NoDuplicateHeadings(base.Rule):
    """Flag headings whose text repeats an earlier heading.

    Headings are compared on their plain text, case-insensitively, so
    ``# Foo`` and ``## [FOO](https://example.com)`` count as duplicates
    regardless of level. The diagnostic points back at the most recent
    earlier heading with the same text.

    Allowed:
        # Foo

        ## Bar

    Flagged:
        # Foo

        ## Foo
    """

    rule_id = "no-duplicate-headings"

    def run(self, tree: nodes.Node, file: report.Reporter, option: None) -> None:
        """Report each heading that repeats the content of an earlier one."""
        seen: dict[str, nodes.Node] = {}
        for heading in walk.iter_nodes(tree, "heading"):
            if file.is_generated(heading):
                continue
            key = nodes.to_string(heading).upper()
            duplicate = seen.get(key)
            if duplicate is not None:
                file.message(
                    "Do not use headings with similar content"
                    f" ({nodes.stringify_point(nodes.point_start(duplicate))})",
                    heading,
                )
            seen[key] = heading
