"""treespec - Flatten nested Python structures into shape specs and rebuild them."""

from treespec.codecs import ValueCodec, ValueCodecs
from treespec.errors import (
    AuxMismatchError,
    ExhaustedLeavesError,
    LeafCountError,
    MalformedEncodingError,
    MalformedSpecError,
    TooManyLeavesError,
    TreeSpecError,
    UnknownRegistrationError,
)
from treespec.flatten import (
    tree_flatten,
    tree_leaves,
    tree_structure,
    tree_unflatten,
)
from treespec.formats.json import (
    from_json,
    to_json,
)
from treespec.kinds import Kind
from treespec.nodes import (
    AuxData,
    CustomData,
    KeyList,
    Node,
    RecordType,
)
from treespec.reconstruct import reconstruct
from treespec.registry import (
    KindRegistry,
    Registration,
    default_registry,
    has_named_fields,
)
from treespec.render import render
from treespec.serialization import (
    decode,
    encode,
    from_builtins,
    to_builtins,
)
from treespec.treespec import TreeSpec, equal

__all__ = [
    # Errors
    "AuxMismatchError",
    # Descriptor
    "AuxData",
    "CustomData",
    "ExhaustedLeavesError",
    "KeyList",
    "Kind",
    # Registry
    "KindRegistry",
    "LeafCountError",
    "MalformedEncodingError",
    "MalformedSpecError",
    "Node",
    "RecordType",
    "Registration",
    "TooManyLeavesError",
    "TreeSpec",
    "TreeSpecError",
    "UnknownRegistrationError",
    # Serialization
    "ValueCodec",
    "ValueCodecs",
    "decode",
    "default_registry",
    "encode",
    "equal",
    "from_builtins",
    "from_json",
    "has_named_fields",
    "reconstruct",
    "render",
    "to_builtins",
    "to_json",
    # Flatten
    "tree_flatten",
    "tree_leaves",
    "tree_structure",
    "tree_unflatten",
]
