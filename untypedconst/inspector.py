"""untypedconst/inspector.py – Pre-order traversal with a node-type filter."""

from __future__ import annotations

from typing import Callable, Iterable, Iterator, Sequence, Tuple, Type

from untypedconst import ast as A

__all__ = ["Inspector", "walk"]


def walk(node: A.Node) -> Iterator[A.Node]:
    """Yield *node* and all of its descendants in pre-order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        children = list(current.children())
        stack.extend(reversed(children))


class Inspector:
    """Visits the nodes of a set of files.

    Each node is visited exactly once per traversal, parents before
    children, files in the order given.
    """

    def __init__(self, files: Sequence[A.File]) -> None:
        self._files: Tuple[A.File, ...] = tuple(files)

    def nodes(self) -> Iterator[A.Node]:
        for f in self._files:
            yield from walk(f)

    def preorder(
        self,
        types: Iterable[Type[A.Node]],
        fn: Callable[[A.Node], None],
    ) -> None:
        """Call *fn* for every node whose class is in *types*.

        An empty *types* selects every node.
        """
        wanted = tuple(types)
        for node in self.nodes():
            if not wanted or isinstance(node, wanted):
                fn(node)
