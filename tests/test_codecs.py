"""Tests for ValueCodecs - aux value encoding for the builtins/JSON form."""

from __future__ import annotations

from collections.abc import Iterator
from decimal import Decimal
from fractions import Fraction

import pytest

from treespec.codecs import ValueCodecs, from_builtins, resolve_type, to_builtins
from treespec.errors import MalformedEncodingError, UnknownRegistrationError


@pytest.fixture(autouse=True)
def _reset_codecs() -> Iterator[None]:
    yield
    ValueCodecs.clear()


class TestToBuiltins:
    """Test to_builtins() on aux values."""

    def test_primitives_pass_through(self) -> None:
        """Test JSON-native values."""
        for value in ("s", 1, 1.5, True, None):
            assert to_builtins(value) == value

    def test_list_stays_array(self) -> None:
        """Test that lists become JSON arrays."""
        assert to_builtins(["a", 1]) == ["a", 1]

    def test_tuple_is_tagged(self) -> None:
        """Test that tuples are wrapped in a type tag."""
        assert to_builtins(("a", 1)) == {"tag": "tuple", "val": ["a", 1]}

    def test_dict_is_tagged_pairs(self) -> None:
        """Test that dicts become tagged key/value pairs."""
        assert to_builtins({1: "a"}) == {"tag": "dict", "val": [[1, "a"]]}

    def test_bytes(self) -> None:
        """Test base64 encoding of bytes."""
        assert to_builtins(b"hi") == {"tag": "bytes", "val": "aGk="}

    def test_decimal(self) -> None:
        """Test Decimal encoding."""
        assert to_builtins(Decimal("1.10")) == {"tag": "Decimal", "val": "1.10"}

    def test_type(self) -> None:
        """Test that types encode as module:qualname."""
        assert to_builtins(list) == {"tag": "type", "val": "builtins:list"}

    def test_nested(self) -> None:
        """Test nested tagged values."""
        assert to_builtins((list, ("a",))) == {
            "tag": "tuple",
            "val": [
                {"tag": "type", "val": "builtins:list"},
                {"tag": "tuple", "val": ["a"]},
            ],
        }

    def test_unregistered_type_raises(self) -> None:
        """Test that unknown types require a codec."""
        with pytest.raises(ValueError, match="ValueCodecs.register"):
            to_builtins(Fraction(1, 2))


class TestFromBuiltins:
    """Test from_builtins() decoding."""

    @pytest.mark.parametrize(
        "value",
        [
            "s",
            3,
            None,
            ["a", ["b"]],
            ("a", (1, 2)),
            {(1, 2): "x"},
            b"\x00\xff",
            Decimal("2.5"),
            frozenset({1, 2}),
            int,
        ],
    )
    def test_inverts_to_builtins(self, value: object) -> None:
        """Test decoding what to_builtins produced."""
        assert from_builtins(to_builtins(value)) == value

    def test_plain_dict_rejected(self) -> None:
        """Test that every dict must be a type tag envelope."""
        with pytest.raises(MalformedEncodingError, match="envelope"):
            from_builtins({"a": 1})

    def test_unknown_tag(self) -> None:
        """Test an envelope with an unregistered tag."""
        with pytest.raises(MalformedEncodingError, match="No aux codec"):
            from_builtins({"tag": "Nope", "val": 1})

    def test_type_tag_needs_string(self) -> None:
        """Test a malformed type envelope."""
        with pytest.raises(MalformedEncodingError):
            from_builtins({"tag": "type", "val": 1})


class TestResolveType:
    """Test resolve_type()."""

    def test_resolves_importable_type(self) -> None:
        """Test resolving a stdlib type."""
        assert resolve_type("collections:OrderedDict").__name__ == "OrderedDict"

    def test_missing_module(self) -> None:
        """Test that unknown modules raise UnknownRegistrationError."""
        with pytest.raises(UnknownRegistrationError) as exc_info:
            resolve_type("no_such_module_xyz:Thing")
        assert exc_info.value.identity == "no_such_module_xyz:Thing"

    def test_not_a_type(self) -> None:
        """Test that non-type objects are rejected."""
        with pytest.raises(UnknownRegistrationError, match="does not name a type"):
            resolve_type("os.path:join")


class TestValueCodecsRegistration:
    """Test the ValueCodecs.register() API."""

    def test_register_and_round_trip(self) -> None:
        """Test registering a new aux value type."""
        ValueCodecs.register(
            Fraction,
            encode=lambda f: [f.numerator, f.denominator],
            decode=lambda pair: Fraction(*pair),
        )

        encoded = to_builtins(Fraction(1, 3))
        assert encoded == {"tag": "Fraction", "val": [1, 3]}
        assert from_builtins(encoded) == Fraction(1, 3)

    def test_lookup_and_unregister(self) -> None:
        """Test lookup by type and by tag, then removal."""
        ValueCodecs.register(Fraction, encode=str, decode=Fraction)

        assert ValueCodecs.lookup(Fraction) is not None
        assert ValueCodecs.lookup_tag("Fraction") is not None
        assert ValueCodecs.unregister(Fraction) is True
        assert ValueCodecs.lookup(Fraction) is None
        assert ValueCodecs.unregister(Fraction) is False
        assert ValueCodecs.lookup_tag("Fraction") is None

    def test_explicit_tag(self) -> None:
        """Test registering a type under a tag other than its name."""

        class Decimal:  # noqa: A001
            def __eq__(self, other: object) -> bool:
                return type(other) is type(self)

            __hash__ = object.__hash__

        codec = ValueCodecs.register(
            Decimal, encode=lambda _: None, decode=lambda _: Decimal(), tag="LocalDecimal"
        )

        assert codec.tag == "LocalDecimal"
        assert to_builtins(Decimal()) == {"tag": "LocalDecimal", "val": None}
        assert from_builtins({"tag": "LocalDecimal", "val": None}) == Decimal()
        assert ValueCodecs.lookup_tag("Decimal").type.__module__ == "decimal"

    def test_reregister_replaces_codec(self) -> None:
        """Test that registering a type again moves it to the new tag."""
        ValueCodecs.register(Fraction, encode=str, decode=Fraction)
        ValueCodecs.register(Fraction, encode=str, decode=Fraction, tag="frac")

        assert ValueCodecs.lookup_tag("Fraction") is None
        assert ValueCodecs.lookup(Fraction).tag == "frac"
        assert from_builtins({"tag": "frac", "val": "1/2"}) == Fraction(1, 2)

    def test_name_collision(self) -> None:
        """Test that a different type with the same name is rejected."""

        class Decimal:  # noqa: A001
            pass

        with pytest.raises(ValueError, match="already decodes"):
            ValueCodecs.register(Decimal, encode=str, decode=lambda s: Decimal())

    def test_reserved_name(self) -> None:
        """Test that the 'type' tag cannot be taken."""
        reserved = type("type", (), {})

        with pytest.raises(ValueError, match="reserved"):
            ValueCodecs.register(reserved, encode=str, decode=lambda s: reserved())

    def test_clear_restores_builtins(self) -> None:
        """Test that clear() drops custom codecs and keeps builtins."""
        ValueCodecs.register(Fraction, encode=str, decode=Fraction)

        ValueCodecs.clear()

        assert ValueCodecs.lookup(Fraction) is None
        assert ValueCodecs.lookup(tuple) is not None
