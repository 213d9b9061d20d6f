"""Structural kinds a tree node can take."""

from __future__ import annotations

from enum import IntEnum


class Kind(IntEnum):
    """Structural category of a node.

    The integer value is the kind tag used by the serialized form, so
    existing members must never be renumbered.
    """

    LEAF = 0
    NONE = 1
    SEQUENCE = 2
    NAMED_RECORD = 3
    ORDERED_MAPPING = 4
    MUTABLE_SEQUENCE = 5
    CUSTOM = 6

    @property
    def is_container(self) -> bool:
        """Whether nodes of this kind consume children."""
        return self not in (Kind.LEAF, Kind.NONE)
