"""JSON format adapter."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from treespec.errors import MalformedEncodingError
from treespec.serialization import from_builtins, to_builtins

if TYPE_CHECKING:
    from treespec.registry import KindRegistry
    from treespec.treespec import TreeSpec


def to_json(spec: TreeSpec, *, indent: int | None = 2) -> str:
    """Serialize a TreeSpec to a JSON string.

    Args:
        spec: The spec to serialize
        indent: JSON indentation level (default 2, None for compact)

    Returns:
        JSON array with one 6-element array per node

    """
    return json.dumps(to_builtins(spec), indent=indent)


def from_json(s: str, registry: KindRegistry | None = None) -> TreeSpec:
    """Deserialize a JSON string to a TreeSpec.

    Args:
        s: JSON string produced by to_json
        registry: Registry used to resolve custom registration names

    Raises:
        MalformedEncodingError: If the JSON is invalid or not a record list
        UnknownRegistrationError: If a type or registration cannot be resolved

    """
    try:
        data = json.loads(s)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON for TreeSpec: {e}"
        raise MalformedEncodingError(msg) from e
    return from_builtins(data, registry)
