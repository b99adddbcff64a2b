"""Color coercion and gradient interpolation."""

from collections.abc import Mapping
from typing import Any, NamedTuple


class Color(NamedTuple):
    """RGB color with float channels in [0, 1]."""

    r: float
    g: float
    b: float

    @property
    def hex(self) -> str:
        """Return the color as a ``#rrggbb`` string."""
        return "#{:02x}{:02x}{:02x}".format(*(_to_byte(c) for c in self))


class Gradient(NamedTuple):
    """Start/end color pair consumed by relative color handlers."""

    start: Any
    end: Any


def _to_byte(channel: float) -> int:
    return max(0, min(255, round(channel * 255)))


def to_color(value: Any) -> Color:
    """Coerce a handler color setting to a Color.

    Accepts a Color, an ``(r, g, b)`` tuple or ``{"r", "g", "b"}`` mapping
    with 0-255 channels, a ``0xRRGGBB`` integer or a ``"#rrggbb"`` string.

    Raises:
        ValueError: If the value cannot be interpreted as a color.
    """
    if isinstance(value, Color):
        return value
    if isinstance(value, Mapping):
        return Color(value["r"] / 255, value["g"] / 255, value["b"] / 255)
    if isinstance(value, bool):
        raise ValueError(f"Not a color: {value!r}")
    if isinstance(value, int):
        return Color(
            ((value >> 16) & 0xFF) / 255,
            ((value >> 8) & 0xFF) / 255,
            (value & 0xFF) / 255,
        )
    if isinstance(value, str):
        text = value.lstrip("#")
        if len(text) != 6:
            raise ValueError(f"Not a color: {value!r}")
        return to_color(int(text, 16))
    if isinstance(value, (tuple, list)) and len(value) == 3:
        return Color(value[0] / 255, value[1] / 255, value[2] / 255)
    raise ValueError(f"Not a color: {value!r}")


def to_gradient(value: Any) -> Gradient:
    """Coerce a gradient handler result (Gradient or start/end mapping)."""
    if isinstance(value, Mapping):
        return Gradient(value["start"], value["end"])
    return Gradient(*value)


def interpolate_colors(start: Any, end: Any, t: float) -> Color:
    """Blend linearly from start to end; t is clamped to [0, 1]."""
    c1 = to_color(start)
    c2 = to_color(end)
    t = max(0.0, min(1.0, t))
    return Color(*(a + (b - a) * t for a, b in zip(c1, c2)))
