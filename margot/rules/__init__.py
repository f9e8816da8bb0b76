"""All margot rules."""

from margot.rules import base, blockquotes, code, headings, lists

ALL_RULES: list[base.Rule] = [
    blockquotes.BlockquoteIndentation(),
    lists.CheckboxContentIndent(),
    code.CodeBlockStyle(),
    headings.MaximumHeadingLength(),
    headings.NoDuplicateHeadings(),
]

__all__ = ["ALL_RULES"]
