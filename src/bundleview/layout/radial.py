"""Weighted angular subdivision and ring radii.

Every ring (layer) spans the full circle. Root nodes split the circle
proportionally to their ``node_length`` weight; every other node splits its
parent's span the same way among its siblings. Ring radii are derived from
the global options and the deepest ring that still holds a visible node.
"""

import logging
import math
from typing import TYPE_CHECKING

from .cache import CacheTag
from .handlers import PropertyKey

if TYPE_CHECKING:
    from .model import BundleView, Layer, Node

logger = logging.getLogger(__name__)

# Spans narrower than this (after padding) are too small to carry a label
MIN_SPAN = 1e-3
# Fallback width for degenerate spans in padded_span()
DEGENERATE_SPAN = 1e-4

_LAYOUT_TAGS = (CacheTag.STRUCTURE, CacheTag.VISIBILITY)
_SPAN_TAGS = (CacheTag.STRUCTURE, CacheTag.VISIBILITY, PropertyKey.NODE_LENGTH)


def _ratio(numerator: float, denominator: float) -> float:
    """Divide, degrading to 0 for an empty denominator."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def weight(node: "Node", key: PropertyKey | str) -> float:
    """Raw handler weight of a node; 0 for invisible nodes.

    Asking for the weight of a non-relative property is a handler contract
    violation, as is a handler result that is not a finite, non-negative
    number. Both are logged and the weight degrades to 0.
    """
    key = PropertyKey.coerce(key)
    if not node.is_visible():
        return 0.0
    handler = node.view.handlers[key]
    if not handler.relative:
        logger.error("Property '%s' is not registered as a relative property", key.value)
        return 0.0
    try:
        value = float(handler(node))
    except (TypeError, ValueError):
        logger.error("Property '%s' gave a non-numeric weight for %r", key.value, node)
        return 0.0
    if not math.isfinite(value) or value < 0:
        logger.error("Property '%s' gave invalid weight %r for %r", key.value, value, node)
        return 0.0
    return value


def total_weight(owner: "Node | Layer", key: PropertyKey | str) -> float:
    """Sum of the weights of a node's children or a layer's members."""
    key = PropertyKey.coerce(key)
    view = owner.view

    def compute() -> float:
        if owner.is_node and not owner.is_visible():
            return 0.0
        return sum(weight(member, key) for member in _members(owner))

    return view.cache.get(
        ("total_weight", owner.kind, owner.id, key), _LAYOUT_TAGS + (key,), compute
    )


def max_weight(owner: "Node | Layer", key: PropertyKey | str) -> float:
    """Largest weight among a node's children or a layer's members (0 if none)."""
    key = PropertyKey.coerce(key)
    view = owner.view

    def compute() -> float:
        return max((weight(member, key) for member in _members(owner)), default=0.0)

    return view.cache.get(
        ("max_weight", owner.kind, owner.id, key), _LAYOUT_TAGS + (key,), compute
    )


def _members(owner: "Node | Layer") -> list["Node"]:
    return owner.children if owner.is_node else owner.nodes


def relative_total_weight(node: "Node", key: PropertyKey | str) -> float:
    """Share of the full circle that the node's weight claims."""
    if node.is_root():
        return _ratio(weight(node, key), total_weight(node.layer, key))
    parent = node.parent
    return _ratio(weight(node, key), total_weight(parent, key)) * relative_total_weight(
        parent, key
    )


def relative_max_weight(node: "Node", key: PropertyKey | str) -> float:
    """Node weight relative to the heaviest of its siblings, in [0, 1]."""
    if node.is_root():
        return _ratio(weight(node, key), max_weight(node.layer, key))
    return _ratio(weight(node, key), max_weight(node.parent, key))


def angular_span(node: "Node") -> tuple[float, float]:
    """Return the cached ``(start_angle, end_angle)`` of a node.

    A miss recomputes the spans of the node and all its siblings in one pass,
    since one sibling's weight shifts every sibling's proportional span.
    """
    return node.view.cache.get(
        ("span", node.id), _SPAN_TAGS, lambda: _compute_sibling_spans(node)[node.id]
    )


def _compute_sibling_spans(node: "Node") -> dict[int, tuple[float, float]]:
    if node.is_root():
        siblings = node.layer.nodes
        angle = 0.0
    else:
        siblings = node.parent.children
        angle = node.parent.start_angle()

    spans: dict[int, tuple[float, float]] = {}
    for sibling in siblings:
        end = angle + 2 * math.pi * relative_total_weight(sibling, PropertyKey.NODE_LENGTH)
        spans[sibling.id] = (angle, end)
        angle = end

    cache = node.view.cache
    for sibling_id, span in spans.items():
        if sibling_id != node.id:
            cache.get(("span", sibling_id), _SPAN_TAGS, lambda span=span: span)
    return spans


def too_small(node: "Node") -> bool:
    """True if the span minus half the node padding on each side is below MIN_SPAN."""
    start, end = padded_bounds(node)
    return end - start < MIN_SPAN


def padded_bounds(node: "Node") -> tuple[float, float]:
    half_padding = node.view.options.node_padding / 2
    start, end = angular_span(node)
    return start + half_padding, end - half_padding


def padded_span(node: "Node") -> tuple[float, float]:
    """Span to draw for a node, clamped so it never collapses to zero width."""
    if not too_small(node):
        return padded_bounds(node)
    start, end = angular_span(node)
    return start, max(end, start + DEGENERATE_SPAN)


def max_depth(view: "BundleView") -> int:
    """Greatest layer index holding a visible node (0 if none)."""

    def compute() -> int:
        depth = 0
        for node in view.nodes:
            if node.is_visible():
                depth = max(depth, node.layer.index())
        return depth

    return view.cache.get(("max_depth",), _LAYOUT_TAGS, compute)


def node_thickness(view: "BundleView") -> float:
    """Radial thickness of one ring, shared by all visible rings."""
    options = view.options
    depth = max_depth(view)
    return (
        options.outer_radius - options.inner_radius - depth * options.layer_padding
    ) / (depth + 1)


def layer_outer_radius(layer: "Layer") -> float:
    def compute() -> float:
        if layer.parent is None:
            return layer.view.options.outer_radius
        return layer_inner_radius(layer.parent) - layer.view.options.layer_padding

    return layer.view.cache.get(("outer_radius", layer.id), _LAYOUT_TAGS, compute)


def layer_inner_radius(layer: "Layer") -> float:
    def compute() -> float:
        if layer.child is None:
            return layer.view.options.inner_radius
        return layer_outer_radius(layer) - node_thickness(layer.view)

    return layer.view.cache.get(("inner_radius", layer.id), _LAYOUT_TAGS, compute)


def routing_radius(layer: "Layer") -> float:
    """Radius of the routing points of a layer's nodes.

    Shallower layers route closer to the center; all routing stays between
    the safe radius and the inner radius.
    """
    options = layer.view.options
    num_layers = len(layer.view.layers)
    return options.inner_radius - (num_layers - layer.index()) * (
        options.inner_radius - options.safe_radius
    ) / num_layers


def node_inner_radius(node: "Node") -> float:
    """Leaves reach down to the global inner radius."""
    if node.is_leaf():
        return node.view.options.inner_radius
    return layer_inner_radius(node.layer)


def node_height(node: "Node") -> float:
    handler = node.view.handlers[PropertyKey.NODE_HEIGHT]
    if handler.relative:
        return node.view.options.max_node_height * relative_max_weight(
            node, PropertyKey.NODE_HEIGHT
        )
    return handler(node)
