"""Kind registry: classifies runtime values and holds custom registrations."""

from __future__ import annotations

import logging
from collections import OrderedDict, defaultdict, deque
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias, TypeVar

from treespec.errors import AuxMismatchError
from treespec.kinds import Kind

logger = logging.getLogger(__name__)

T = TypeVar("T")

Decompose: TypeAlias = Callable[[Any], tuple[Any, Iterable[Any]]]
Recompose: TypeAlias = Callable[[Any, tuple[Any, ...]], Any]
Renderer: TypeAlias = Callable[[Any, list[str]], str]
KeyExtractor: TypeAlias = Callable[[Any], Sequence[Any]]


@dataclass(frozen=True, eq=False)
class Registration:
    """Registry entry binding a type to its structural kind.

    Registrations compare by identity. For CUSTOM kinds they also carry the
    functions that split a value into (aux, children) and rebuild it.

    Attributes:
        type: The registered Python type
        kind: Structural kind values of this type flatten to
        name: Stable identity used by the builtins/JSON form
        decompose: value -> (aux, children)
        recompose: (aux, children) -> value
        render: Optional (aux, child_texts) -> text for the renderer
        keys: Optional aux -> key list, checked against arity when rendering

    """

    type: type
    kind: Kind
    name: str
    decompose: Decompose | None = None
    recompose: Recompose | None = None
    render: Renderer | None = None
    keys: KeyExtractor | None = None

    def __repr__(self) -> str:
        return f"Registration({self.name!r}, kind={self.kind.name})"


def qualified_name(typ: type) -> str:
    """Return the 'module:qualname' identity of a type."""
    return f"{typ.__module__}:{typ.__qualname__}"


def has_named_fields(typ: type) -> bool:
    """Check whether a type behaves like a fixed-field named tuple."""
    return (
        isinstance(typ, type)
        and issubclass(typ, tuple)
        and isinstance(getattr(typ, "_fields", None), tuple)
    )


class KindRegistry:
    """Table mapping types to registrations.

    Lookups are by exact type. A miss falls back to named-record detection,
    then to LEAF. Mutate the registry at startup, before concurrent lookups.

    Usage:
        registry = KindRegistry()
        registry.register(
            Pair,
            decompose=lambda p: (None, (p.first, p.second)),
            recompose=lambda _, children: Pair(*children),
        )
    """

    def __init__(self, *, builtins: bool = True) -> None:
        self._by_type: dict[type, Registration] = {}
        self._by_name: dict[str, Registration] = {}
        if builtins:
            _register_builtins(self)

    def register(
        self,
        typ: type[T],
        decompose: Callable[[T], tuple[Any, Iterable[Any]]],
        recompose: Callable[[Any, tuple[Any, ...]], T],
        *,
        render: Renderer | None = None,
        keys: KeyExtractor | None = None,
        name: str | None = None,
    ) -> Registration:
        """Register a custom container type.

        Args:
            typ: The container type
            decompose: Function splitting a value into (aux, children)
            recompose: Function rebuilding a value from (aux, children)
            render: Optional renderer receiving (aux, rendered children)
            keys: Optional function returning the key list held in aux
            name: Identity for the builtins/JSON form (default 'module:qualname')

        Returns:
            The new registration

        Raises:
            ValueError: If the type or name is already registered

        """
        registration = Registration(
            type=typ,
            kind=Kind.CUSTOM,
            name=name if name is not None else qualified_name(typ),
            decompose=decompose,
            recompose=recompose,
            render=render,
            keys=keys,
        )
        self._add(registration)
        logger.debug(f"Registered custom kind {registration.name}")
        return registration

    def _add(self, registration: Registration) -> None:
        if (existing := self._by_type.get(registration.type)) is not None:
            msg = f"Type {registration.type!r} is already registered ({existing!r})."
            raise ValueError(msg)
        if (existing := self._by_name.get(registration.name)) is not None:
            msg = (
                f"Cannot register {registration.type!r}: name "
                f"'{registration.name}' is already registered to "
                f"{existing.type!r}. Names must be unique."
            )
            raise ValueError(msg)
        self._by_type[registration.type] = registration
        self._by_name[registration.name] = registration

    def _register_kind(self, typ: type, kind: Kind) -> None:
        self._add(Registration(type=typ, kind=kind, name=qualified_name(typ)))

    def unregister(self, typ: type) -> bool:
        """Unregister a type.

        Returns:
            True if the type was registered and removed, False otherwise.

        """
        registration = self._by_type.pop(typ, None)
        if registration is None:
            return False
        del self._by_name[registration.name]
        logger.debug(f"Unregistered {registration.name}")
        return True

    def lookup(self, typ: Any) -> Registration | None:
        """Get the registration for an exact type, or None."""
        try:
            return self._by_type.get(typ)
        except TypeError:
            return None

    def lookup_by_name(self, name: str) -> Registration | None:
        """Get a registration by its registered name, or None."""
        return self._by_name.get(name)

    def classify(self, value: Any) -> tuple[Kind, Registration | None]:
        """Decide the structural kind of a value.

        Returns:
            (kind, registration) where registration is set only for CUSTOM.

        """
        typ = type(value)
        if (registration := self._by_type.get(typ)) is not None:
            if registration.kind is Kind.CUSTOM:
                return registration.kind, registration
            return registration.kind, None
        if has_named_fields(typ):
            return Kind.NAMED_RECORD, None
        return Kind.LEAF, None

    def clear(self) -> None:
        """Clear all registrations and re-register builtins."""
        self._by_type.clear()
        self._by_name.clear()
        _register_builtins(self)

    def __contains__(self, typ: object) -> bool:
        return self.lookup(typ) is not None

    def __len__(self) -> int:
        return len(self._by_type)


def sorted_keys(mapping: Iterable[Any]) -> list[Any]:
    """Sort mapping keys, keeping insertion order when they are not comparable."""
    try:
        return sorted(mapping)
    except TypeError:
        return list(mapping)


def _render_items(keys: Iterable[Any], children: list[str], fmt: str) -> str:
    return ", ".join(fmt.format(repr(k), c) for k, c in zip(keys, children, strict=True))


def _defaultdict_keys(aux: Any) -> Sequence[Any]:
    if not isinstance(aux, tuple | list) or len(aux) != 2:
        msg = "defaultdict aux must be a (default_factory, keys) pair."
        raise AuxMismatchError(msg)
    return aux[1]


def _register_builtins(registry: KindRegistry) -> None:
    """Pre-register the builtin container types."""
    registry._register_kind(type(None), Kind.NONE)
    registry._register_kind(tuple, Kind.SEQUENCE)
    registry._register_kind(list, Kind.MUTABLE_SEQUENCE)
    registry._register_kind(dict, Kind.ORDERED_MAPPING)

    registry.register(
        OrderedDict,
        decompose=lambda od: (tuple(od), tuple(od.values())),
        recompose=lambda keys, children: OrderedDict(zip(keys, children)),
        render=lambda keys, children: (
            f"OrderedDict([{_render_items(keys, children, '({}, {})')}])"
        ),
        keys=lambda keys: keys,
    )

    def _decompose_defaultdict(dd: defaultdict[Any, Any]) -> tuple[Any, Any]:
        keys = tuple(sorted_keys(dd))
        return (dd.default_factory, keys), tuple(dd[k] for k in keys)

    def _recompose_defaultdict(aux: Any, children: tuple[Any, ...]) -> Any:
        keys = _defaultdict_keys(aux)
        return defaultdict(aux[0], zip(keys, children, strict=True))

    registry.register(
        defaultdict,
        decompose=_decompose_defaultdict,
        recompose=_recompose_defaultdict,
        render=lambda aux, children: (
            f"defaultdict({aux[0]!r}, "
            f"{{{_render_items(aux[1], children, '{}: {}')}}})"
        ),
        keys=_defaultdict_keys,
    )

    def _render_deque(maxlen: Any, children: list[str]) -> str:
        if maxlen is None:
            return f"deque([{', '.join(children)}])"
        return f"deque([{', '.join(children)}], maxlen={maxlen})"

    registry.register(
        deque,
        decompose=lambda dq: (dq.maxlen, tuple(dq)),
        recompose=lambda maxlen, children: deque(children, maxlen=maxlen),
        render=_render_deque,
    )


default_registry = KindRegistry()
