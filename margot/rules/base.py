"""Base abstractions for margot rules."""

from __future__ import annotations

import abc
import logging
import typing

from margot import report, style

if typing.TYPE_CHECKING:
    from margot import nodes

logger = logging.getLogger(__name__)

# Re-exported so rule modules and callers only need ``rules.base``.
Diagnostic = report.Diagnostic
Severity = report.Severity
OptionError = style.OptionError


class Rule(abc.ABC):
    """Abstract base class for all margot rules.

    A rule instance carries its raw option, exactly as configured. The option
    is validated by :meth:`parse_option` at the start of every :meth:`check`,
    before the tree is touched, so a misconfigured rule reports one fatal
    diagnostic and nothing else.

    Subclasses set ``rule_id`` and, when they take an option, ``option_key``
    (the key read from the rule's table in the configuration).
    """

    rule_id: typing.ClassVar[str]
    option_key: typing.ClassVar[str | None] = None

    def __init__(self, option: object = None) -> None:
        """Initialise with a raw option value.

        Args:
            option: The configured option, or None for the rule's default.
        """
        self.option = option

    def configure(self, options: dict[str, int | str | bool]) -> Rule:
        """Return a new rule of the same type with options applied.

        Args:
            options: Option values keyed by name. Only ``option_key`` is read.

        Returns:
            A new instance carrying the option, or self if the rule takes no
            option or the key is absent.
        """
        if self.option_key is None or self.option_key not in options:
            return self
        return type(self)(options[self.option_key])

    def parse_option(self, option: object) -> object:
        """Validate *option* and return the value :meth:`run` receives.

        The default accepts nothing but None.

        Raises:
            OptionError: If the rule does not accept *option*.
        """
        if option is not None:
            raise OptionError(f"Unexpected option `{option}`: {self.rule_id} takes none")
        return None

    @abc.abstractmethod
    def run(self, tree: nodes.Node, file: report.Reporter, option: typing.Any) -> None:
        """Inspect *tree* and report violations through *file*.

        Args:
            tree: The root of the parsed document. Must not be mutated.
            file: The reporter for this invocation; also holds the source text.
            option: The value returned by :meth:`parse_option`.
        """

    def check(self, tree: nodes.Node, source: str) -> list[report.Diagnostic]:
        """Run the rule against a parsed document and return its diagnostics.

        Args:
            tree: The parsed AST of the document.
            source: The raw source text the tree was parsed from.

        Returns:
            Diagnostics in the order they were reported. A rejected option
            yields a single fatal diagnostic.
        """
        file = report.Reporter(source, self.rule_id)
        try:
            self.run(tree, file, self._resolve_option(file))
        except report.RuleFailure as exc:
            logger.debug("Rule %s stopped: %s", self.rule_id, exc)
        return file.messages

    def _resolve_option(self, file: report.Reporter) -> object:
        try:
            return self.parse_option(self.option)
        except OptionError as exc:
            file.fail(str(exc))
