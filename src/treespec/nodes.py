"""Traversal nodes and the auxiliary payloads attached to them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from treespec.kinds import Kind

if TYPE_CHECKING:
    from treespec.registry import Registration


@dataclass(frozen=True)
class AuxData:
    """Base for kind-dependent auxiliary data carried by a node."""

    @property
    def payload(self) -> Any:
        """Raw value stored on the wire for this aux variant."""
        raise NotImplementedError


@dataclass(frozen=True)
class KeyList(AuxData):
    """Mapping keys in stored order: {"b": 1, "a": 2} → KeyList(("a", "b"))."""

    keys: tuple[Any, ...]

    @property
    def payload(self) -> list[Any]:
        return list(self.keys)


@dataclass(frozen=True)
class RecordType(AuxData):
    """Named record constructor, compared by identity."""

    type: type

    @property
    def payload(self) -> type:
        return self.type

    @property
    def name(self) -> str:
        return self.type.__name__

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self.type._fields)  # type: ignore[attr-defined]


@dataclass(frozen=True)
class CustomData(AuxData):
    """Opaque blob produced by a custom registration's decompose function."""

    data: Any

    @property
    def payload(self) -> Any:
        return self.data


@dataclass(frozen=True, eq=False, slots=True)
class Node:
    """One entry of a post-order traversal.

    Attributes:
        kind: Structural kind of the node
        arity: Number of immediate children consumed from the stack
        aux: Kind-dependent auxiliary data, or None
        registration: Registry entry for CUSTOM nodes, compared by identity
        leaf_count: Total leaves in this node's subtree
        node_count: Total nodes in this node's subtree, including itself

    """

    kind: Kind
    arity: int = 0
    aux: AuxData | None = None
    registration: Registration | None = None
    leaf_count: int = 0
    node_count: int = 1

    def matches(self, other: Node) -> bool:
        """Compare shape-relevant fields; aggregate counts are ignored."""
        if self.kind != other.kind or self.arity != other.arity:
            return False
        if (self.aux is None) != (other.aux is None):
            return False
        if self.registration is not other.registration:
            return False
        return self.aux is None or bool(self.aux == other.aux)

    @property
    def payload(self) -> Any:
        """Raw aux payload, or None when the node carries no aux."""
        return None if self.aux is None else self.aux.payload


LEAF = Node(Kind.LEAF, leaf_count=1)
NONE = Node(Kind.NONE)
