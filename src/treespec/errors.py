"""Exceptions raised while building, reading, or decoding tree specs."""

from __future__ import annotations

from typing import Any


class TreeSpecError(Exception):
    """Base class for all treespec errors."""


class MalformedSpecError(TreeSpecError, ValueError):
    """A traversal violates the post-order stack machine invariant."""


class LeafCountError(TreeSpecError, ValueError):
    """The number of leaves supplied does not match the spec."""


class ExhaustedLeavesError(LeafCountError):
    """Reconstruction ran out of leaves before the traversal ended."""


class TooManyLeavesError(LeafCountError):
    """Leaves were left over after the traversal ended."""


class AuxMismatchError(TreeSpecError, ValueError):
    """A node's key or field count disagrees with its arity."""


class UnknownRegistrationError(TreeSpecError, LookupError):
    """A custom node's registration cannot be resolved.

    Attributes:
        identity: The type or registered name that failed to resolve.

    """

    def __init__(self, msg: str, identity: Any = None) -> None:
        super().__init__(msg)
        self.identity = identity


class MalformedEncodingError(TreeSpecError, ValueError):
    """A serialized spec violates the record shape or field rules."""
