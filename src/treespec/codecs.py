"""Codec registry for auxiliary values carried by the builtins/JSON form."""

from __future__ import annotations

import base64
import pkgutil
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar, TypeVar

from treespec.errors import MalformedEncodingError, UnknownRegistrationError
from treespec.registry import qualified_name

# Envelope: {"tag": "<codec tag>", "val": <encoded value>}
_TAG_KEY = "tag"
_VAL_KEY = "val"
_TYPE_TAG = "type"

T = TypeVar("T")

_NATIVE: tuple[type, ...] = (str, int, float, bool, type(None))


@dataclass(frozen=True)
class ValueCodec:
    """How one aux value type is written to and read from builtins."""

    type: type
    tag: str
    encode: Callable[[Any], Any]
    decode: Callable[[Any], Any]


class ValueCodecs:
    """Codecs for aux payloads that have no JSON equivalent.

    Key lists may hold tuple or bytes keys, defaultdict aux holds a factory
    type, and custom registrations may return arbitrary blobs. Each such
    value is written inside an envelope whose tag selects the codec that
    reads it back.

    Usage:
        ValueCodecs.register(
            Fraction,
            encode=lambda f: [f.numerator, f.denominator],
            decode=lambda pair: Fraction(*pair),
        )
    """

    _by_type: ClassVar[dict[type, ValueCodec]] = {}
    _by_tag: ClassVar[dict[str, ValueCodec]] = {}

    @classmethod
    def register(
        cls,
        typ: type[T],
        encode: Callable[[T], Any],
        decode: Callable[[Any], T],
        *,
        tag: str | None = None,
    ) -> ValueCodec:
        """Add a codec for an aux value type.

        Args:
            typ: Exact type of the aux values to handle
            encode: Turns a value into something to_builtins accepts
            decode: Turns the decoded envelope contents back into a value
            tag: Envelope tag (default typ.__name__)

        Returns:
            The stored codec; re-registering a type replaces its codec

        Raises:
            ValueError: If the tag is 'type' or already belongs to another type

        """
        tag = typ.__name__ if tag is None else tag
        if tag == _TYPE_TAG:
            msg = f"Envelope tag '{_TYPE_TAG}' is reserved for type objects."
            raise ValueError(msg)
        owner = cls._by_tag.get(tag)
        if owner is not None and owner.type is not typ:
            msg = (
                f"Envelope tag '{tag}' already decodes to {owner.type!r}; "
                f"pass tag= to register {typ!r} under another tag."
            )
            raise ValueError(msg)

        if (previous := cls._by_type.pop(typ, None)) is not None:
            del cls._by_tag[previous.tag]
        codec = ValueCodec(type=typ, tag=tag, encode=encode, decode=decode)
        cls._by_type[typ] = codec
        cls._by_tag[tag] = codec
        return codec

    @classmethod
    def lookup(cls, typ: type) -> ValueCodec | None:
        """Codec used to write values of exactly this type."""
        return cls._by_type.get(typ)

    @classmethod
    def lookup_tag(cls, tag: str) -> ValueCodec | None:
        """Codec used to read envelopes carrying this tag."""
        return cls._by_tag.get(tag)

    @classmethod
    def unregister(cls, typ: type) -> bool:
        """Drop the codec for a type; False if it had none."""
        codec = cls._by_type.pop(typ, None)
        if codec is None:
            return False
        del cls._by_tag[codec.tag]
        return True

    @classmethod
    def clear(cls) -> None:
        """Drop every codec, then restore the builtin ones."""
        cls._by_type.clear()
        cls._by_tag.clear()
        _register_builtins()


def _register_builtins() -> None:
    """Pre-register codecs for builtin types that JSON lacks."""
    ValueCodecs.register(tuple, encode=list, decode=tuple)

    ValueCodecs.register(
        dict,
        encode=lambda d: [[k, v] for k, v in d.items()],
        decode=lambda pairs: {k: v for k, v in pairs},
    )

    ValueCodecs.register(
        bytes,
        encode=lambda b: base64.b64encode(b).decode("ascii"),
        decode=base64.b64decode,
    )

    ValueCodecs.register(Decimal, encode=str, decode=Decimal)

    ValueCodecs.register(frozenset, encode=list, decode=frozenset)


# Register builtins on module load
_register_builtins()


def _envelope(tag: str, value: Any) -> dict[str, Any]:
    return {_TAG_KEY: tag, _VAL_KEY: value}


def resolve_type(name: str) -> type:
    """Resolve a 'module:qualname' identity back to a type.

    Raises:
        UnknownRegistrationError: If the name cannot be imported or is not a type

    """
    try:
        resolved = pkgutil.resolve_name(name)
    except (ImportError, AttributeError, ValueError) as e:
        msg = f"Cannot resolve type '{name}': {e}"
        raise UnknownRegistrationError(msg, name) from e
    if not isinstance(resolved, type):
        msg = f"'{name}' does not name a type."
        raise UnknownRegistrationError(msg, name)
    return resolved


def to_builtins(obj: Any) -> Any:
    """Convert an aux value to JSON-compatible Python builtins.

    Lists stay JSON arrays. Type objects and values with a registered codec
    are written as {"tag": <codec tag>, "val": <encoded value>}.

    Raises:
        ValueError: If no codec is registered for the value's type

    """
    if isinstance(obj, _NATIVE):
        return obj

    if isinstance(obj, type):
        return _envelope(_TYPE_TAG, qualified_name(obj))

    typ = type(obj)
    if (codec := ValueCodecs.lookup(typ)) is not None:
        return _envelope(codec.tag, to_builtins(codec.encode(obj)))

    if isinstance(obj, list):
        return [to_builtins(item) for item in obj]

    msg = (
        f"Cannot encode auxiliary value of type {typ.__name__}; "
        "register a codec with ValueCodecs.register()."
    )
    raise ValueError(msg)


def _is_envelope(data: Any) -> bool:
    return isinstance(data, dict) and set(data.keys()) == {_TAG_KEY, _VAL_KEY}


def from_builtins(data: Any) -> Any:
    """Decode JSON-compatible builtins produced by to_builtins.

    Raises:
        MalformedEncodingError: If a dict is not an envelope or its tag
            has no codec
        UnknownRegistrationError: If a tagged type cannot be resolved

    """
    if isinstance(data, list):
        return [from_builtins(item) for item in data]

    if isinstance(data, dict):
        if not _is_envelope(data):
            msg = f"Expected an aux value envelope, got keys {sorted(data)}."
            raise MalformedEncodingError(msg)
        tag, raw_value = data[_TAG_KEY], data[_VAL_KEY]

        if tag == _TYPE_TAG:
            if not isinstance(raw_value, str):
                msg = "Type tag value must be a 'module:qualname' string."
                raise MalformedEncodingError(msg)
            return resolve_type(raw_value)

        codec = ValueCodecs.lookup_tag(tag)
        if codec is None:
            msg = f"No aux codec registered for envelope tag '{tag}'."
            raise MalformedEncodingError(msg)
        return codec.decode(from_builtins(raw_value))

    # Primitives pass through
    return data
