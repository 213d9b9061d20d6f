"""Flatten nested structures into leaves plus a TreeSpec."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, TypeAlias

from treespec.errors import UnknownRegistrationError
from treespec.kinds import Kind
from treespec.nodes import LEAF, NONE, CustomData, KeyList, Node, RecordType
from treespec.reconstruct import reconstruct
from treespec.registry import KindRegistry, default_registry, sorted_keys
from treespec.treespec import TreeSpec

IsLeaf: TypeAlias = Callable[[Any], bool]


def tree_flatten(
    tree: Any,
    registry: KindRegistry | None = None,
    *,
    is_leaf: IsLeaf | None = None,
) -> tuple[list[Any], TreeSpec]:
    """Flatten a structure into its leaves and shape.

    Args:
        tree: Nested structure of tuples, lists, dicts, named tuples, None,
            and registered custom containers
        registry: Kind registry used for classification (default registry
            if omitted)
        is_leaf: Optional predicate; values it accepts are kept whole

    Returns:
        (leaves, spec): leaves in left-to-right depth-first order

    Example:
        >>> leaves, spec = tree_flatten({"a": [1, 2], "b": None})
        >>> leaves
        [1, 2]
        >>> spec
        Spec({'a': [*, *], 'b': none})

    """
    registry = default_registry if registry is None else registry
    leaves: list[Any] = []
    traversal: list[Node] = []
    _flatten_into(tree, leaves, traversal, registry, is_leaf)
    return leaves, TreeSpec(traversal)


def _flatten_into(
    tree: Any,
    leaves: list[Any],
    traversal: list[Node],
    registry: KindRegistry,
    is_leaf: IsLeaf | None,
) -> None:
    if is_leaf is not None and is_leaf(tree):
        kind, registration = Kind.LEAF, None
    else:
        kind, registration = registry.classify(tree)

    aux: KeyList | RecordType | CustomData | None = None
    children: Iterable[Any]
    match kind:
        case Kind.LEAF:
            leaves.append(tree)
            traversal.append(LEAF)
            return
        case Kind.NONE:
            traversal.append(NONE)
            return
        case Kind.SEQUENCE | Kind.MUTABLE_SEQUENCE:
            children = tree
        case Kind.NAMED_RECORD:
            aux = RecordType(type(tree))
            children = tree
        case Kind.ORDERED_MAPPING:
            keys = tuple(sorted_keys(tree))
            aux = KeyList(keys)
            children = [tree[key] for key in keys]
        case Kind.CUSTOM:
            if registration is None or registration.decompose is None:
                msg = f"No decompose function registered for {type(tree)!r}."
                raise UnknownRegistrationError(msg, type(tree))
            payload, children = registration.decompose(tree)
            if payload is not None:
                aux = CustomData(payload)

    start_leaves = len(leaves)
    start_nodes = len(traversal)
    arity = 0
    for child in children:
        _flatten_into(child, leaves, traversal, registry, is_leaf)
        arity += 1

    traversal.append(
        Node(
            kind=kind,
            arity=arity,
            aux=aux,
            registration=registration,
            leaf_count=len(leaves) - start_leaves,
            node_count=len(traversal) - start_nodes + 1,
        ),
    )


def tree_leaves(
    tree: Any,
    registry: KindRegistry | None = None,
    *,
    is_leaf: IsLeaf | None = None,
) -> list[Any]:
    """Return only the leaves of a structure."""
    return tree_flatten(tree, registry, is_leaf=is_leaf)[0]


def tree_structure(
    tree: Any,
    registry: KindRegistry | None = None,
    *,
    is_leaf: IsLeaf | None = None,
) -> TreeSpec:
    """Return only the spec of a structure."""
    return tree_flatten(tree, registry, is_leaf=is_leaf)[1]


def tree_unflatten(spec: TreeSpec, leaves: Iterable[Any]) -> Any:
    """Rebuild a structure from a spec and leaves."""
    return reconstruct(spec, leaves)
