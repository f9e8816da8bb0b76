"""Orchestrates rule execution against a parsed Markdown document."""

from __future__ import annotations

import logging
import re
import typing

from margot import parse

if typing.TYPE_CHECKING:
    from margot.rules import base

logger = logging.getLogger(__name__)

# Matches:  <!-- margot: noqa -->                     (suppress all rules on this line)
#           <!-- margot: noqa: code-block-style -->   (suppress specific rules on this line)
_LINE_NOQA_PAT = re.compile(
    r"<!--\s*margot:\s*noqa(?::\s*([a-z0-9][a-z0-9,\s-]*?))?\s*-->",
    re.IGNORECASE,
)

# Matches:  <!-- margot: disable-file -->                     (suppress all rules in this file)
#           <!-- margot: disable-file: code-block-style -->   (suppress specific rules in this file)
_FILE_DISABLE_PAT = re.compile(
    r"<!--\s*margot:\s*disable-file(?::\s*([a-z0-9][a-z0-9,\s-]*?))?\s*-->",
    re.IGNORECASE,
)


def _rule_ids(raw: str | None) -> frozenset[str] | None:
    """Parse rule IDs from a suppression comment capture group.

    Returns None to indicate all rules are suppressed, or a frozenset of
    specific lowercased rule IDs.
    """
    if not raw or not raw.strip():
        return None
    ids = frozenset(part.strip().lower() for part in raw.split(",") if part.strip())
    return ids or None


def _covers(suppressed: frozenset[str] | None, rule_id: str) -> bool:
    """Return True if rule_id falls within the suppression set.

    None means all rules are suppressed.
    """
    return suppressed is None or rule_id in suppressed


def _apply_suppressions(
    diagnostics: list[base.Diagnostic],
    source: str,
) -> list[base.Diagnostic]:
    """Remove diagnostics covered by inline margot suppression comments.

    Fatal diagnostics report a broken configuration and are always kept.
    """
    lines = source.split("\n")

    file_sup_active = False
    file_sup_rules: frozenset[str] | None = None
    line_sups: dict[int, frozenset[str] | None] = {}

    for lineno, line_text in enumerate(lines, start=1):
        file_match = _FILE_DISABLE_PAT.search(line_text)
        if file_match:
            file_sup_active = True
            file_sup_rules = _rule_ids(file_match.group(1))

        line_match = _LINE_NOQA_PAT.search(line_text)
        if line_match:
            line_sups[lineno] = _rule_ids(line_match.group(1))

    return [
        diag
        for diag in diagnostics
        if diag.fatal
        or not (
            (file_sup_active and _covers(file_sup_rules, diag.rule_id))
            or (diag.line in line_sups and _covers(line_sups[diag.line], diag.rule_id))
        )
    ]


class Analyzer:
    """Runs all registered rules against a Markdown document."""

    def __init__(self, rules: list[base.Rule]) -> None:
        """Initialize with a list of rule instances.

        Args:
            rules: Rule instances to run on every analysis request.
        """
        self.rules = rules

    def run_rules(self, document: parse.Document) -> list[base.Diagnostic]:
        """Run every rule, in order, against an already parsed document.

        A rule that raises is logged and skipped; the remaining rules still
        run. Diagnostics keep the order in which the rules reported them.
        """
        diagnostics: list[base.Diagnostic] = []
        for rule in self.rules:
            try:
                diagnostics.extend(rule.check(document.tree, document.source))
            except Exception:
                logger.exception("Rule %s failed", rule.rule_id)
        return diagnostics

    def analyze(self, source: str) -> list[base.Diagnostic]:
        """Parse source, run all rules, and apply inline suppressions.

        Args:
            source: Raw Markdown source to analyze.

        Returns:
            Diagnostics sorted by (line, column) with suppressed entries
            removed. The sort is stable, so diagnostics of one rule keep
            their relative order.
        """
        document = parse.parse(source)
        diagnostics = sorted(
            self.run_rules(document),
            key=lambda diag: (diag.line, diag.column),
        )
        return _apply_suppressions(diagnostics, source)
