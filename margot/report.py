"""Diagnostics and the per-invocation reporter rules emit them through."""

import dataclasses
import enum
import logging
import typing

from margot import location, nodes

logger = logging.getLogger(__name__)


class Severity(enum.Enum):
    """LSP diagnostic severity levels."""

    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


@dataclasses.dataclass(frozen=True)
class Diagnostic:
    """A single diagnostic emitted by a rule.

    ``start`` is None only for fatal diagnostics, which describe the rule
    configuration rather than a place in the document. ``end`` is None when
    the diagnostic marks a single point.
    """

    rule_id: str
    message: str
    start: nodes.Point | None
    end: nodes.Point | None = None
    severity: Severity = Severity.WARNING
    fatal: bool = False

    @property
    def line(self) -> int:
        return self.start.line if self.start else 1

    @property
    def column(self) -> int:
        return self.start.column if self.start else 1

    def to_dict(self) -> dict:
        """Return the JSON-ready shape other tooling consumes."""
        if self.start is None:
            position = None
        elif self.end is None:
            position = dataclasses.asdict(self.start)
        else:
            position = {
                "start": dataclasses.asdict(self.start),
                "end": dataclasses.asdict(self.end),
            }
        return {
            "message": self.message,
            "position": position,
            "ruleId": self.rule_id,
            "severity": self.severity.name.lower(),
            "fatal": self.fatal,
        }


class RuleFailure(Exception):
    """Raised by :meth:`Reporter.fail` to stop the current rule invocation."""

    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(diagnostic.message)
        self.diagnostic = diagnostic


Place = nodes.Node | nodes.Position | nodes.Point | None


class Reporter:
    """Collects the diagnostics of one rule run against one document.

    A Reporter is owned by a single rule invocation. Diagnostics are kept in
    the order they were reported.
    """

    def __init__(self, source: str, rule_id: str) -> None:
        self.source = source
        self.rule_id = rule_id
        self.location = location.Location(source)
        self.messages: list[Diagnostic] = []

    def is_generated(self, node: nodes.Node) -> bool:
        """Return True if *node* cannot be placed in this reporter's source."""
        return nodes.is_generated(node, self.location)

    def message(self, text: str, place: Place = None) -> Diagnostic | None:
        """Append a warning at *place* and return it.

        *place* may be a node, a position, a point, or None. Generated nodes
        are never reported: the call is dropped and None returned.
        """
        start: nodes.Point | None = None
        end: nodes.Point | None = None
        if isinstance(place, nodes.Node):
            if self.is_generated(place):
                logger.debug(
                    "%s: dropped report on generated %s node", self.rule_id, place.kind
                )
                return None
            start, end = place.position.start, place.position.end
        elif isinstance(place, nodes.Position):
            start, end = place.start, place.end
        elif isinstance(place, nodes.Point):
            start = place
        diagnostic = Diagnostic(
            rule_id=self.rule_id,
            message=text,
            start=start,
            end=end,
        )
        self.messages.append(diagnostic)
        return diagnostic

    def fail(self, text: str) -> typing.NoReturn:
        """Append a fatal diagnostic and stop the rule.

        Raises:
            RuleFailure: Always, carrying the fatal diagnostic.
        """
        diagnostic = Diagnostic(
            rule_id=self.rule_id,
            message=text,
            start=None,
            severity=Severity.ERROR,
            fatal=True,
        )
        self.messages.append(diagnostic)
        raise RuleFailure(diagnostic)
