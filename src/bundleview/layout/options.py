"""Global geometry and palette options of a bundle view."""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from .colors import Gradient, to_gradient

logger = logging.getLogger(__name__)


def _default_node_colors() -> dict[str, Any]:
    return {
        "basic": {"r": 0x99, "g": 0x99, "b": 0x99},
        "leaf": {"r": 0x66, "g": 0x66, "b": 0xAF},
        "small": {"r": 0xCA, "g": 0x44, "b": 0x44},
    }


@dataclass(frozen=True)
class BundleViewOptions:
    """Flat set of named options with defaults.

    Radii are in scene units, ``node_padding`` is an angle in radians and
    ``bundling_strength`` is a blend factor in [0, 1].
    """

    outer_radius: float = 150
    inner_radius: float = 110
    safe_radius: float = 20  # relations are never routed inside this radius
    max_node_height: float = 20
    layer_padding: float = 2
    node_padding: float = 0.01
    relation_width: float = 3
    bundling_strength: float = 0.85
    remove_lca: bool = True
    node_colors: dict[str, Any] = field(default_factory=_default_node_colors)
    node_text_color: Any = field(default_factory=lambda: {"r": 0, "g": 0, "b": 0})
    node_gradient_colors: Gradient = Gradient(
        {"r": 0x00, "g": 0x00, "b": 0x00}, {"r": 0xFF, "g": 0xFF, "b": 0xFF}
    )
    relation_gradient_colors: Gradient = Gradient(
        {"r": 0x33, "g": 0xDD, "b": 0x33}, {"r": 0xDD, "g": 0x66, "b": 0x44}
    )

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> "BundleViewOptions":
        """Build options from a flat mapping with camelCase or snake_case keys.

        Unknown keys are logged and ignored.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in (values or {}).items():
            name = _snake_case(key)
            if name not in known:
                logger.warning("Ignoring unknown bundle view option '%s'", key)
                continue
            if value is None:
                continue
            if name in ("node_gradient_colors", "relation_gradient_colors"):
                value = to_gradient(value)
            kwargs[name] = value
        return cls(**kwargs)


def _snake_case(name: str) -> str:
    """Convert ``removeLCA``/``outerRadius``/``outer-radius`` to snake_case."""
    name = name.replace("-", "_")
    return re.sub(r"(?<=[a-z0-9])([A-Z])|(?<=[A-Z])([A-Z])(?=[a-z])", r"_\1\2", name).lower()
