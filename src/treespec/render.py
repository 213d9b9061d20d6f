"""Canonical text rendering of a spec's shape."""

from __future__ import annotations

from typing import TYPE_CHECKING

from treespec.errors import (
    AuxMismatchError,
    MalformedSpecError,
    UnknownRegistrationError,
)
from treespec.kinds import Kind
from treespec.nodes import KeyList, RecordType

if TYPE_CHECKING:
    from treespec.nodes import Node
    from treespec.treespec import TreeSpec

LEAF_TOKEN = "*"
NONE_TOKEN = "none"


def render(spec: TreeSpec) -> str:
    """Render a spec as deterministic text, e.g. Spec({'a': [*, *], 'b': none}).

    Raises:
        MalformedSpecError: If the traversal violates the stack invariant
        AuxMismatchError: If a key or field count disagrees with the arity
        UnknownRegistrationError: If a CUSTOM node has no registration

    """
    agenda: list[str] = []
    for node in spec.traversal:
        if len(agenda) < node.arity:
            msg = "Too few elements for container."
            raise MalformedSpecError(msg)

        start = len(agenda) - node.arity
        children = agenda[start:]
        del agenda[start:]
        agenda.append(_render_node(node, children))

    if len(agenda) != 1:
        msg = "TreeSpec traversal did not yield a singleton."
        raise MalformedSpecError(msg)
    return f"Spec({agenda[0]})"


def _check_count(what: str, count: int, node: Node) -> None:
    if count != node.arity:
        msg = f"Number of {what} ({count}) and entries ({node.arity}) does not match."
        raise AuxMismatchError(msg)


def _render_node(node: Node, children: list[str]) -> str:
    joined = ", ".join(children)

    match node.kind:
        case Kind.LEAF | Kind.NONE:
            if node.arity != 0:
                msg = f"{node.kind.name} node cannot have children."
                raise MalformedSpecError(msg)
            return LEAF_TOKEN if node.kind is Kind.LEAF else NONE_TOKEN

        case Kind.SEQUENCE:
            # One-element tuples keep a trailing comma.
            return f"({joined},)" if node.arity == 1 else f"({joined})"

        case Kind.MUTABLE_SEQUENCE:
            return f"[{joined}]"

        case Kind.ORDERED_MAPPING:
            if not isinstance(node.aux, KeyList):
                msg = "ORDERED_MAPPING node is missing its key list."
                raise MalformedSpecError(msg)
            _check_count("keys", len(node.aux.keys), node)
            items = ", ".join(
                f"{key!r}: {child}"
                for key, child in zip(node.aux.keys, children, strict=True)
            )
            return f"{{{items}}}"

        case Kind.NAMED_RECORD:
            if not isinstance(node.aux, RecordType):
                msg = "NAMED_RECORD node is missing its record type."
                raise MalformedSpecError(msg)
            fields = node.aux.fields
            _check_count("fields", len(fields), node)
            items = ", ".join(
                f"{field}={child}"
                for field, child in zip(fields, children, strict=True)
            )
            return f"{node.aux.name}({items})"

        case Kind.CUSTOM:
            return _render_custom(node, children, joined)

    msg = f"Unknown node kind: {node.kind!r}"
    raise MalformedSpecError(msg)


def _render_custom(node: Node, children: list[str], joined: str) -> str:
    registration = node.registration
    if registration is None:
        msg = "CUSTOM node has no registration to render it."
        raise UnknownRegistrationError(msg)

    payload = node.payload
    if registration.keys is not None:
        _check_count("keys", len(registration.keys(payload)), node)
    if registration.render is not None:
        return registration.render(payload, children)

    name = registration.type.__name__
    if node.aux is None:
        return f"{name}({joined})"
    return f"{name}[{payload}]({joined})"
