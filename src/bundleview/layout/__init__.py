"""Radial hierarchical edge bundling layout.

A tree is placed on concentric rings, each ring's angular span is split among
siblings by weight, and relations are routed as B-splines through the mirrored
hierarchy.
"""

from .cache import CacheTag, LayoutCache
from .colors import Color, Gradient, interpolate_colors, to_color
from .handlers import HandlerRegistry, PropertyHandler, PropertyKey
from .model import BundleView, Layer, Node, Relation
from .options import BundleViewOptions
from .routing import (
    BSplineCurve,
    calculate_path,
    map_path_to_vertices,
    strengthen_points,
)

__all__ = [
    "BundleView",
    "BundleViewOptions",
    "Layer",
    "Node",
    "Relation",
    "PropertyKey",
    "PropertyHandler",
    "HandlerRegistry",
    "CacheTag",
    "LayoutCache",
    "Color",
    "Gradient",
    "to_color",
    "interpolate_colors",
    "BSplineCurve",
    "calculate_path",
    "map_path_to_vertices",
    "strengthen_points",
]
