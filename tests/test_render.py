"""Tests for treespec.render module."""

from collections import OrderedDict, defaultdict, deque
from dataclasses import dataclass
from typing import Any, NamedTuple

import pytest

from treespec.errors import (
    AuxMismatchError,
    MalformedSpecError,
    UnknownRegistrationError,
)
from treespec.flatten import tree_structure
from treespec.kinds import Kind
from treespec.nodes import LEAF, CustomData, KeyList, Node, RecordType
from treespec.registry import KindRegistry
from treespec.render import render
from treespec.treespec import TreeSpec


class Point(NamedTuple):
    x: Any
    y: Any


@dataclass
class Pair:
    first: Any
    second: Any


@dataclass
class Labeled:
    label: str
    value: Any


class TestRender:
    """Test the canonical text of each kind."""

    @pytest.mark.parametrize(
        ("tree", "expected"),
        [
            (1, "Spec(*)"),
            (None, "Spec(none)"),
            ((), "Spec(())"),
            ((1,), "Spec((*,))"),
            ((1, 2), "Spec((*, *))"),
            ([], "Spec([])"),
            ([1, [2]], "Spec([*, [*]])"),
            ({}, "Spec({})"),
            ({"a": [1, 2], "b": None}, "Spec({'a': [*, *], 'b': none})"),
            ({1: (2,)}, "Spec({1: (*,)})"),
            (Point(1, None), "Spec(Point(x=*, y=none))"),
            (
                OrderedDict([("b", 1), ("a", 2)]),
                "Spec(OrderedDict([('b', *), ('a', *)]))",
            ),
            (
                defaultdict(list, {"a": 1}),
                "Spec(defaultdict(<class 'list'>, {'a': *}))",
            ),
            (deque([1, 2]), "Spec(deque([*, *]))"),
            (deque([1], maxlen=3), "Spec(deque([*], maxlen=3))"),
        ],
    )
    def test_render(self, tree: Any, expected: str) -> None:
        """Test rendering of builtin structures."""
        assert render(tree_structure(tree)) == expected

    def test_repr_and_str_use_render(self) -> None:
        """Test that TreeSpec's repr is its canonical rendering."""
        spec = tree_structure([1, (2,)])

        assert repr(spec) == "Spec([*, (*,)])"
        assert str(spec) == repr(spec)

    def test_custom_generic_form(self) -> None:
        """Test the fallback form for custom types without a renderer."""
        registry = KindRegistry()
        registry.register(
            Pair,
            decompose=lambda p: (None, (p.first, p.second)),
            recompose=lambda _, children: Pair(*children),
        )

        assert render(tree_structure(Pair(1, [2]), registry)) == "Spec(Pair(*, [*]))"

    def test_custom_generic_form_with_aux(self) -> None:
        """Test that the aux payload appears in brackets."""
        registry = KindRegistry()
        registry.register(
            Labeled,
            decompose=lambda v: (v.label, (v.value,)),
            recompose=lambda label, children: Labeled(label, *children),
        )

        spec = tree_structure(Labeled("tag", 1), registry)
        assert render(spec) == "Spec(Labeled[tag](*))"

    def test_custom_renderer(self) -> None:
        """Test a registration-supplied renderer."""
        registry = KindRegistry()
        registry.register(
            Pair,
            decompose=lambda p: (None, (p.first, p.second)),
            recompose=lambda _, children: Pair(*children),
            render=lambda _, children: f"<{' & '.join(children)}>",
        )

        assert render(tree_structure(Pair(1, None), registry)) == "Spec(<* & none>)"


class TestRenderErrors:
    """Test rendering of malformed specs."""

    def test_underflow(self) -> None:
        """Test insufficient stack depth for a node's arity."""
        spec = TreeSpec([LEAF, Node(Kind.MUTABLE_SEQUENCE, arity=2)])

        with pytest.raises(MalformedSpecError, match="Too few elements"):
            render(spec)

    def test_not_singleton(self) -> None:
        """Test a traversal that does not reduce to one root."""
        with pytest.raises(MalformedSpecError, match="singleton"):
            render(TreeSpec([LEAF, LEAF]))

    @pytest.mark.parametrize(
        "node",
        [Node(Kind.NONE, arity=1), Node(Kind.LEAF, arity=1, leaf_count=1)],
    )
    def test_childless_kind_with_children(self, node: Node) -> None:
        """Test that LEAF and NONE nodes cannot consume children."""
        spec = TreeSpec([LEAF, node])

        with pytest.raises(MalformedSpecError, match="cannot have children"):
            render(spec)

    def test_mapping_key_mismatch(self) -> None:
        """Test a mapping whose key count disagrees with its arity."""
        spec = TreeSpec(
            [LEAF, Node(Kind.ORDERED_MAPPING, arity=1, aux=KeyList(("a", "b")))],
        )

        with pytest.raises(AuxMismatchError, match="keys"):
            render(spec)

    def test_record_field_mismatch(self) -> None:
        """Test a record whose field count disagrees with its arity."""
        spec = TreeSpec(
            [LEAF, Node(Kind.NAMED_RECORD, arity=1, aux=RecordType(Point))],
        )

        with pytest.raises(AuxMismatchError, match="fields"):
            render(spec)

    def test_custom_key_mismatch(self) -> None:
        """Test a custom node whose registration declares a key list."""
        registration = KindRegistry().lookup(OrderedDict)
        spec = TreeSpec(
            [
                LEAF,
                Node(
                    Kind.CUSTOM,
                    arity=1,
                    aux=CustomData(("a", "b")),
                    registration=registration,
                ),
            ],
        )

        with pytest.raises(AuxMismatchError):
            render(spec)

    def test_custom_without_registration(self) -> None:
        """Test a CUSTOM node with no registration."""
        with pytest.raises(UnknownRegistrationError):
            render(TreeSpec([Node(Kind.CUSTOM)]))
