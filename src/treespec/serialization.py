"""Portable record form of a TreeSpec."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, TypeAlias

from treespec import codecs
from treespec.errors import (
    AuxMismatchError,
    MalformedEncodingError,
    MalformedSpecError,
    UnknownRegistrationError,
)
from treespec.kinds import Kind
from treespec.nodes import AuxData, CustomData, KeyList, Node, RecordType
from treespec.registry import (
    KindRegistry,
    Registration,
    default_registry,
    has_named_fields,
    qualified_name,
)
from treespec.treespec import TreeSpec

logger = logging.getLogger(__name__)

# (kind-tag, arity, aux, registration-type, leaf_count, node_count)
Record: TypeAlias = tuple[int, int, Any, Any, int, int]

_RECORD_FIELDS = 6


def encode(spec: TreeSpec) -> list[Record]:
    """Encode a spec as one 6-field record per node, in traversal order.

    The records hold live Python objects (record types, registration types,
    aux blobs) and are suitable for pickling. Use to_builtins for a
    JSON-compatible form.
    """
    return [
        (
            int(node.kind),
            node.arity,
            node.payload,
            node.registration.type if node.registration is not None else None,
            node.leaf_count,
            node.node_count,
        )
        for node in spec.traversal
    ]


def decode(
    records: Iterable[Any],
    registry: KindRegistry | None = None,
) -> TreeSpec:
    """Decode records produced by encode back into a TreeSpec.

    Every record is validated, and leaf_count/node_count are recomputed from
    the traversal and checked against the stored values.

    Args:
        records: Sequence of 6-field records
        registry: Registry used to resolve CUSTOM registration types

    Returns:
        The decoded TreeSpec

    Raises:
        MalformedEncodingError: If a record has the wrong shape, fields that
            do not fit its kind, or wrong aggregate counts
        UnknownRegistrationError: If a CUSTOM registration type is unknown
        AuxMismatchError: If a key list's length differs from the arity
        MalformedSpecError: If the traversal violates the stack invariant

    """
    registry = default_registry if registry is None else registry
    nodes = [_decode_record(record, registry) for record in records]
    if not nodes:
        msg = "Encoded TreeSpec contains no records."
        raise MalformedEncodingError(msg)
    _verify_counts(nodes)
    logger.debug(f"Decoded TreeSpec with {len(nodes)} nodes")
    return TreeSpec(nodes)


def _decode_record(record: Any, registry: KindRegistry) -> Node:
    if not isinstance(record, tuple | list) or len(record) != _RECORD_FIELDS:
        msg = f"Malformed TreeSpec record: expected {_RECORD_FIELDS} fields."
        raise MalformedEncodingError(msg)
    tag, arity, raw_aux, reg_type, leaf_count, node_count = record

    kind = _decode_kind(tag)
    for name, value in (
        ("arity", arity),
        ("leaf_count", leaf_count),
        ("node_count", node_count),
    ):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            msg = f"Malformed TreeSpec record: {name} must be a non-negative int."
            raise MalformedEncodingError(msg)
    if not kind.is_container and arity != 0:
        msg = f"Malformed TreeSpec record: {kind.name} node must have arity 0."
        raise MalformedEncodingError(msg)

    aux = _decode_aux(kind, arity, raw_aux)
    registration = _decode_registration(kind, reg_type, registry)

    return Node(
        kind=kind,
        arity=arity,
        aux=aux,
        registration=registration,
        leaf_count=leaf_count,
        node_count=node_count,
    )


def _decode_kind(tag: Any) -> Kind:
    if isinstance(tag, bool) or not isinstance(tag, int):
        msg = f"Malformed TreeSpec record: kind tag must be an int, got {tag!r}."
        raise MalformedEncodingError(msg)
    try:
        return Kind(tag)
    except ValueError as e:
        msg = f"Malformed TreeSpec record: unknown kind tag {tag}."
        raise MalformedEncodingError(msg) from e


def _decode_aux(kind: Kind, arity: int, raw_aux: Any) -> AuxData | None:
    match kind:
        case Kind.NAMED_RECORD:
            if not isinstance(raw_aux, type) or not has_named_fields(raw_aux):
                msg = "Malformed TreeSpec record: NAMED_RECORD aux must be a record type."
                raise MalformedEncodingError(msg)
            return RecordType(raw_aux)
        case Kind.ORDERED_MAPPING:
            if not isinstance(raw_aux, tuple | list):
                msg = "Malformed TreeSpec record: ORDERED_MAPPING aux must be a key list."
                raise MalformedEncodingError(msg)
            if len(raw_aux) != arity:
                msg = (
                    f"Number of keys ({len(raw_aux)}) and entries ({arity}) "
                    "does not match."
                )
                raise AuxMismatchError(msg)
            return KeyList(tuple(raw_aux))
        case Kind.CUSTOM:
            return None if raw_aux is None else CustomData(raw_aux)
        case _:
            if raw_aux is not None:
                msg = f"Malformed TreeSpec record: {kind.name} node cannot carry aux."
                raise MalformedEncodingError(msg)
            return None


def _decode_registration(
    kind: Kind,
    reg_type: Any,
    registry: KindRegistry,
) -> Registration | None:
    if kind is not Kind.CUSTOM:
        if reg_type is not None:
            msg = (
                f"Malformed TreeSpec record: {kind.name} node cannot carry "
                "a registration type."
            )
            raise MalformedEncodingError(msg)
        return None

    registration = None if reg_type is None else registry.lookup(reg_type)
    if registration is None or registration.kind is not Kind.CUSTOM:
        msg = f"Unknown custom type in encoded TreeSpec: {reg_type!r}."
        raise UnknownRegistrationError(msg, reg_type)
    return registration


def _verify_counts(nodes: list[Node]) -> None:
    """Replay the traversal and check the stored aggregate counts."""
    agenda: list[tuple[int, int]] = []
    for node in nodes:
        if len(agenda) < node.arity:
            msg = "Too few elements for TreeSpec node."
            raise MalformedSpecError(msg)
        start = len(agenda) - node.arity
        children = agenda[start:]
        del agenda[start:]

        leaf_count = 1 if node.kind is Kind.LEAF else sum(c[0] for c in children)
        node_count = 1 + sum(c[1] for c in children)
        if (node.leaf_count, node.node_count) != (leaf_count, node_count):
            msg = (
                f"Malformed TreeSpec record: {node.kind.name} node stores "
                f"leaf_count={node.leaf_count}, node_count={node.node_count}; "
                f"expected {leaf_count}, {node_count}."
            )
            raise MalformedEncodingError(msg)
        agenda.append((leaf_count, node_count))

    if len(agenda) != 1:
        msg = "TreeSpec traversal did not yield a singleton."
        raise MalformedSpecError(msg)


def to_builtins(spec: TreeSpec) -> list[list[Any]]:
    """Encode a spec as JSON-compatible 6-element lists.

    Record types are written as 'module:qualname' strings, registrations as
    their registered names, and other aux payloads through
    treespec.codecs.to_builtins.
    """
    rows: list[list[Any]] = []
    for node, record in zip(spec.traversal, encode(spec), strict=True):
        tag, arity, aux, _, leaf_count, node_count = record
        if node.kind is Kind.NAMED_RECORD:
            aux = qualified_name(aux)
        else:
            aux = codecs.to_builtins(aux)
        reg_name = node.registration.name if node.registration is not None else None
        rows.append([tag, arity, aux, reg_name, leaf_count, node_count])
    return rows


def from_builtins(
    rows: Any,
    registry: KindRegistry | None = None,
) -> TreeSpec:
    """Decode the output of to_builtins back into a TreeSpec.

    Raises:
        MalformedEncodingError: If the rows have the wrong shape
        UnknownRegistrationError: If a record type or registration name
            cannot be resolved

    """
    registry = default_registry if registry is None else registry
    if not isinstance(rows, list):
        msg = "Encoded TreeSpec must be a list of records."
        raise MalformedEncodingError(msg)
    return decode([_resolve_row(row, registry) for row in rows], registry)


def _resolve_row(row: Any, registry: KindRegistry) -> Record:
    if not isinstance(row, list) or len(row) != _RECORD_FIELDS:
        msg = f"Malformed TreeSpec record: expected {_RECORD_FIELDS} fields."
        raise MalformedEncodingError(msg)
    tag, arity, aux, reg_name, leaf_count, node_count = row
    kind = _decode_kind(tag)

    if kind is Kind.NAMED_RECORD:
        if not isinstance(aux, str):
            msg = "Malformed TreeSpec record: NAMED_RECORD aux must be a type name."
            raise MalformedEncodingError(msg)
        aux = codecs.resolve_type(aux)
    else:
        aux = codecs.from_builtins(aux)

    reg_type = None
    if reg_name is not None:
        if kind is not Kind.CUSTOM:
            msg = (
                f"Malformed TreeSpec record: {kind.name} node cannot carry "
                "a registration type."
            )
            raise MalformedEncodingError(msg)
        if not isinstance(reg_name, str):
            msg = "Malformed TreeSpec record: registration must be a name."
            raise MalformedEncodingError(msg)
        registration = registry.lookup_by_name(reg_name)
        if registration is None:
            msg = f"Unknown custom type in encoded TreeSpec: {reg_name!r}."
            raise UnknownRegistrationError(msg, reg_name)
        reg_type = registration.type

    return (tag, arity, aux, reg_type, leaf_count, node_count)
