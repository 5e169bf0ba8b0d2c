"""Layered field resolution for node configuration.

Node handlers read each field from up to three places, in order: the node's
stored ``config``, a nested payload inside the incoming data (for example
``input["emailData"]``), and the flat incoming data itself. The first truthy
value wins, otherwise the field default applies.

Truthiness mirrors the stored JSON values: ``None``, ``False``, zero, NaN and
the empty string are falsy; everything else, including empty objects and
arrays, is truthy.
"""

import math
from typing import Any, Iterable, Mapping, Optional, Tuple


def is_truthy(value: Any) -> bool:
    """Truth test used by condition gates and field resolution."""
    if value is None or value is False:
        return False
    if value is True:
        return True
    if isinstance(value, (int, float)):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def first_truthy(values: Iterable[Any], default: Any = None) -> Any:
    """Return the first truthy value, or ``default``."""
    for value in values:
        if is_truthy(value):
            return value
    return default


def nested_payload(data: Any, key: str) -> Mapping[str, Any]:
    """Return ``data[key]`` when it is a mapping, else an empty mapping."""
    if isinstance(data, Mapping):
        payload = data.get(key)
        if isinstance(payload, Mapping):
            return payload
    return {}


class LayeredConfig:
    """Ordered stack of optional mappings merged left to right."""

    def __init__(self, *layers: Any):
        self.layers: Tuple[Mapping[str, Any], ...] = tuple(
            layer if isinstance(layer, Mapping) else {} for layer in layers
        )

    @classmethod
    def for_node(cls, config: Any, input_data: Any, nested_key: str) -> "LayeredConfig":
        """Build the standard ``config -> input[nested_key] -> input`` stack."""
        return cls(config, nested_payload(input_data, nested_key), input_data)

    def get(
        self,
        key: str,
        default: Any = None,
        flat_keys: Optional[Tuple[str, ...]] = None,
    ) -> Any:
        """Resolve ``key`` across the layers.

        ``flat_keys`` replaces ``key`` when reading the last layer, so a field
        can fall back to differently named keys in the flat input.
        """
        if not self.layers:
            return default

        *upper, flat = self.layers
        candidates = [layer.get(key) for layer in upper]
        candidates.extend(flat.get(name) for name in (flat_keys or (key,)))
        return first_truthy(candidates, default)

    def any_layer_equals(self, key: str, expected: Any, depth: int = 2) -> bool:
        """Check whether one of the first ``depth`` layers has ``key == expected``."""
        return any(layer.get(key) == expected for layer in self.layers[:depth])
