"""
Flatten / Unflatten Example
===========================

Demonstrates:
- Flattening nested containers into leaves plus a TreeSpec
- Registering a custom container type
- Rebuilding a structure from transformed leaves
- Saving a spec as JSON and loading it back
"""

from dataclasses import dataclass
from typing import Any, NamedTuple

from treespec import KindRegistry, from_json, to_json, tree_flatten


# ============================================================================
# Define Containers
# ============================================================================

class Params(NamedTuple):
    """Named record: flattened automatically."""
    weight: Any
    bias: Any


@dataclass
class Layer:
    """Custom container: needs a registration."""
    name: str
    params: Params


registry = KindRegistry()
registry.register(
    Layer,
    decompose=lambda layer: (layer.name, (layer.params,)),
    recompose=lambda name, children: Layer(name, *children),
)


# ============================================================================
# Example Usage
# ============================================================================

if __name__ == "__main__":
    model = {
        "encoder": [Layer("enc0", Params(1.0, 0.5)), Layer("enc1", Params(2.0, None))],
        "head": Layer("out", Params(3.0, 0.1)),
    }

    leaves, spec = tree_flatten(model, registry)
    print(f"Leaves: {leaves}")
    print(f"Spec:   {spec}")

    scaled = spec.unflatten(leaf * 10 for leaf in leaves)
    print(f"Scaled: {scaled}")

    saved = to_json(spec, indent=None)
    print(f"JSON:   {saved}")

    restored = from_json(saved, registry)
    assert restored == spec
    print("Restored spec matches.")
