"""The TreeSpec descriptor and structural equality."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from treespec.errors import MalformedSpecError
from treespec.kinds import Kind
from treespec.nodes import LEAF, NONE, Node
from treespec.reconstruct import reconstruct
from treespec.render import render


class TreeSpec:
    """Flat post-order descriptor of one structure's shape.

    The root is always the last node. A TreeSpec is immutable once built and
    may be shared freely between threads.

    Pickling goes through serialization.encode, and unpickling resolves
    CUSTOM registrations against default_registry. A spec built with a
    private KindRegistry must be restored with
    serialization.decode(encode(spec), registry) instead.
    """

    __slots__ = ("_traversal",)

    def __init__(self, traversal: Iterable[Node]) -> None:
        nodes = tuple(traversal)
        if not nodes:
            msg = "TreeSpec traversal must contain at least one node."
            raise MalformedSpecError(msg)
        self._traversal = nodes

    @classmethod
    def leaf(cls) -> TreeSpec:
        """Spec of a bare leaf."""
        return cls((LEAF,))

    @classmethod
    def none(cls) -> TreeSpec:
        """Spec of a bare None."""
        return cls((NONE,))

    @property
    def traversal(self) -> tuple[Node, ...]:
        return self._traversal

    @property
    def num_leaves(self) -> int:
        return self._traversal[-1].leaf_count

    @property
    def num_nodes(self) -> int:
        return len(self._traversal)

    @property
    def kind(self) -> Kind:
        """Kind of the root node."""
        return self._traversal[-1].kind

    def is_leaf(self) -> bool:
        return self.num_nodes == 1 and self.kind is Kind.LEAF

    def unflatten(self, leaves: Iterable[Any]) -> Any:
        """Rebuild a structure of this shape from leaves."""
        return reconstruct(self, leaves)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TreeSpec):
            return NotImplemented
        return equal(self, other)

    def __hash__(self) -> int:
        return hash(
            tuple(
                (node.kind, node.arity, id(node.registration))
                for node in self._traversal
            ),
        )

    def __repr__(self) -> str:
        return render(self)

    def __reduce__(self) -> tuple[Any, ...]:
        from treespec.serialization import decode, encode  # noqa: PLC0415

        return decode, (encode(self),)


def equal(a: TreeSpec, b: TreeSpec) -> bool:
    """Compare two specs node by node, ignoring aggregate counts."""
    if a.num_nodes != b.num_nodes:
        return False
    return all(x.matches(y) for x, y in zip(a.traversal, b.traversal, strict=True))
