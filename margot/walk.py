"""Depth-first, document-order traversal of a node tree."""

from collections.abc import Callable, Iterator

from margot import nodes

Test = str | tuple[str, ...] | Callable[[nodes.Node], bool] | None


def _matcher(test: Test) -> Callable[[nodes.Node], bool]:
    """Turn a kind, a tuple of kinds, or a predicate into a predicate."""
    if test is None:
        return lambda node: True
    if isinstance(test, str):
        return lambda node: node.kind == test
    if isinstance(test, tuple):
        return lambda node: node.kind in test
    return test


def iter_nodes(tree: nodes.Node, test: Test = None) -> Iterator[nodes.Node]:
    """Yield every node under *tree* (itself included) that matches *test*.

    Nodes come in pre-order: a parent before its children, children left to
    right, which for block content is top-to-bottom source order. No
    filtering beyond *test* happens here; generated nodes are yielded too.
    """
    is_match = _matcher(test)
    stack = [tree]
    while stack:
        node = stack.pop()
        if is_match(node):
            yield node
        stack.extend(reversed(node.children))


def visit(
    tree: nodes.Node,
    test: Test,
    visitor: Callable[[nodes.Node], None],
) -> None:
    """Call *visitor* with every node under *tree* that matches *test*.

    Returning early from *visitor* for a node has no effect on the
    traversal of its siblings or descendants.
    """
    for node in iter_nodes(tree, test):
        visitor(node)
