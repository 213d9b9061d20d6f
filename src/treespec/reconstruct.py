"""Rebuild structures from a spec and a flat sequence of leaves."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from treespec.errors import (
    AuxMismatchError,
    ExhaustedLeavesError,
    MalformedSpecError,
    TooManyLeavesError,
    UnknownRegistrationError,
)
from treespec.kinds import Kind
from treespec.nodes import KeyList, RecordType

if TYPE_CHECKING:
    from treespec.nodes import Node
    from treespec.treespec import TreeSpec

_EXHAUSTED = object()


def reconstruct(spec: TreeSpec, leaves: Iterable[Any]) -> Any:
    """Replay the spec's traversal over leaves and return the rebuilt structure.

    Args:
        spec: Shape descriptor
        leaves: Leaf values in flatten order; consumed as a forward iterator

    Returns:
        A structure equivalent to the one the spec was flattened from

    Raises:
        ExhaustedLeavesError: If leaves run out before the traversal ends
        TooManyLeavesError: If leaves remain after the traversal ends
        MalformedSpecError: If the traversal violates the stack invariant

    """
    stack: list[Any] = []
    it = iter(leaves)
    consumed = 0

    for node in spec.traversal:
        if node.kind is Kind.LEAF:
            leaf = next(it, _EXHAUSTED)
            if leaf is _EXHAUSTED:
                msg = (
                    f"Too few leaves for TreeSpec; expected {spec.num_leaves}, "
                    f"got {consumed}."
                )
                raise ExhaustedLeavesError(msg)
            stack.append(leaf)
            consumed += 1
            continue

        if len(stack) < node.arity:
            msg = (
                f"Too few elements for {node.kind.name} node; "
                f"expected {node.arity}, got {len(stack)}."
            )
            raise MalformedSpecError(msg)

        start = len(stack) - node.arity
        children = tuple(stack[start:])
        del stack[start:]
        stack.append(make_node(node, children))

    if next(it, _EXHAUSTED) is not _EXHAUSTED:
        msg = f"Too many leaves for TreeSpec; expected {spec.num_leaves}."
        raise TooManyLeavesError(msg)
    if len(stack) != 1:
        msg = f"TreeSpec traversal did not yield a singleton (got {len(stack)})."
        raise MalformedSpecError(msg)
    return stack[0]


def make_node(node: Node, children: tuple[Any, ...]) -> Any:
    """Build one container from its node and already-built children."""
    if len(children) != node.arity:
        msg = f"Node arity {node.arity} did not match {len(children)} children."
        raise MalformedSpecError(msg)

    match node.kind:
        case Kind.NONE:
            if children:
                msg = "NONE node cannot have children."
                raise MalformedSpecError(msg)
            return None

        case Kind.SEQUENCE:
            return children

        case Kind.MUTABLE_SEQUENCE:
            return list(children)

        case Kind.NAMED_RECORD:
            if not isinstance(node.aux, RecordType):
                msg = "NAMED_RECORD node is missing its record type."
                raise MalformedSpecError(msg)
            return node.aux.type(*children)

        case Kind.ORDERED_MAPPING:
            if not isinstance(node.aux, KeyList):
                msg = "ORDERED_MAPPING node is missing its key list."
                raise MalformedSpecError(msg)
            keys = node.aux.keys
            if len(keys) != node.arity:
                msg = (
                    f"Number of keys ({len(keys)}) and entries ({node.arity}) "
                    "does not match."
                )
                raise AuxMismatchError(msg)
            return dict(zip(keys, children, strict=True))

        case Kind.CUSTOM:
            registration = node.registration
            if registration is None or registration.recompose is None:
                msg = "CUSTOM node has no registration to recompose it."
                raise UnknownRegistrationError(msg)
            if registration.keys is not None:
                keys = registration.keys(node.payload)
                if len(keys) != node.arity:
                    msg = (
                        f"Number of keys ({len(keys)}) and entries "
                        f"({node.arity}) does not match for {registration.name}."
                    )
                    raise AuxMismatchError(msg)
            return registration.recompose(node.payload, children)

        case Kind.LEAF:
            msg = "make_node is not defined for leaves."
            raise MalformedSpecError(msg)

    msg = f"Unknown node kind: {node.kind!r}"
    raise MalformedSpecError(msg)
