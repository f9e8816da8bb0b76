"""Consistent-style inference and option parsing shared by rules.

Several rules accept either a concrete style or ``"consistent"``. In the
consistent case the first node in the document decides the style and every
later node is compared against it; with a concrete style every node is
compared, the first included. The comparison itself is the same either way.
"""

import dataclasses
import typing
from collections.abc import Callable, Hashable, Iterable, Iterator

from margot import nodes

CONSISTENT = "consistent"

StyleT = typing.TypeVar("StyleT", bound=Hashable)


class OptionError(ValueError):
    """Raised when a rule option is outside the rule's accepted values."""


@dataclasses.dataclass(frozen=True)
class Verdict(typing.Generic[StyleT]):
    """The outcome of comparing one node's style with the preferred style."""

    node: nodes.Node
    preferred: StyleT
    observed: StyleT

    @property
    def is_mismatch(self) -> bool:
        return self.preferred != self.observed


def infer(
    candidates: Iterable[nodes.Node],
    is_generated: Callable[[nodes.Node], bool],
    extract_style: Callable[[nodes.Node], StyleT],
    preferred: StyleT | None = None,
) -> Iterator[Verdict[StyleT]]:
    """Compare the style of each non-generated node with the preferred style.

    Args:
        candidates: Nodes in document order, typically from ``walk.iter_nodes``.
        is_generated: Predicate for nodes to skip entirely.
        extract_style: Returns the style a node uses.
        preferred: A fixed style, or None to take it from the first node.

    Yields:
        A Verdict for every compared node. When the style is inferred the
        first node only sets it and yields nothing.
    """
    for node in candidates:
        if is_generated(node):
            continue
        observed = extract_style(node)
        if preferred is None:
            preferred = observed
            continue
        yield Verdict(node=node, preferred=preferred, observed=observed)


def mismatches(
    candidates: Iterable[nodes.Node],
    is_generated: Callable[[nodes.Node], bool],
    extract_style: Callable[[nodes.Node], StyleT],
    preferred: StyleT | None = None,
) -> Iterator[Verdict[StyleT]]:
    """Yield only the verdicts from :func:`infer` whose style differs."""
    for verdict in infer(candidates, is_generated, extract_style, preferred):
        if verdict.is_mismatch:
            yield verdict


def _quote_choices(choices: list[str]) -> str:
    quoted = [f"`'{choice}'`" for choice in choices]
    if len(quoted) < 3:
        return " or ".join(quoted)
    return ", ".join(quoted[:-1]) + f", or {quoted[-1]}"


def parse_style(option: object, styles: Iterable[str], label: str) -> str | None:
    """Return the fixed style named by *option*, or None to infer it.

    Args:
        option: The raw option. ``None`` and ``"consistent"`` both infer.
        styles: The concrete styles the rule accepts.
        label: What the option configures, used in the error message.

    Raises:
        OptionError: If *option* is neither a known style nor consistent.
    """
    if option is None or option == CONSISTENT:
        return None
    allowed = list(styles)
    if isinstance(option, str) and option in allowed:
        return option
    raise OptionError(
        f"Incorrect {label} `{option}`: use either"
        f" {_quote_choices([CONSISTENT, *allowed])}"
    )


def parse_count(
    option: object,
    label: str,
    *,
    default: int | None = None,
    allow_consistent: bool = True,
) -> int | None:
    """Return the number given by *option*, or *default* when it is absent.

    ``"consistent"`` is accepted only with *allow_consistent* and returns
    None. Booleans are not numbers here even though ``bool`` subclasses
    ``int``.

    Raises:
        OptionError: If *option* is not a non-negative integer or an
            accepted sentinel.
    """
    if option is None:
        return default
    if allow_consistent and option == CONSISTENT:
        return None
    if isinstance(option, int) and not isinstance(option, bool) and option >= 0:
        return option
    if allow_consistent:
        expected = f"either `'{CONSISTENT}'` or a number"
    else:
        expected = "a number"
    raise OptionError(f"Incorrect {label} `{option}`: use {expected}")
