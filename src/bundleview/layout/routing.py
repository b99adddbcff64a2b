"""Relation routing through the mirrored hierarchy.

A relation is drawn as a uniform cubic B-spline whose control points are the
routing points of the nodes between its endpoints and their least common
ancestor, pulled towards the straight chord by the bundling strength.
"""

import logging
import math
from typing import TYPE_CHECKING, Optional

from .cache import CacheTag
from .colors import Color, interpolate_colors, to_color, to_gradient
from .handlers import PropertyKey
from .radial import angular_span, node_inner_radius, routing_radius

if TYPE_CHECKING:
    from .model import Node, Relation

logger = logging.getLogger(__name__)

Point = tuple[float, float, float]

# Relations sit slightly in front of the node geometry
Z_OFFSET = -0.01
# Sub-segments per control-point segment when sampling a curve for drawing
SUBDIVISIONS = 6

_CURVE_TAGS = (CacheTag.STRUCTURE, CacheTag.VISIBILITY, PropertyKey.NODE_LENGTH)


def _bisecting_angle(node: "Node") -> float:
    start, end = angular_span(node)
    return (start + end) / 2


def _polar(angle: float, radius: float) -> Point:
    return (math.cos(angle) * radius, math.sin(angle) * radius, Z_OFFSET)


def routing_point(node: "Node") -> Point:
    """Point at the layer's routing radius that relations are threaded through."""
    return _polar(_bisecting_angle(node), routing_radius(node.layer))


def anchor_point(node: "Node") -> Point:
    """Point on the node's inner boundary where relations attach."""
    return _polar(_bisecting_angle(node), node_inner_radius(node))


def calculate_path(relation: "Relation") -> list["Node"]:
    """Nodes a relation is routed through, from source to target.

    Both root paths are walked back from their shared tail. The least common
    ancestor is dropped when ``remove_lca`` is set, unless dropping it would
    leave fewer than three path entries.
    """
    remove_lca = relation.view.options.remove_lca
    path_a: list[Optional["Node"]] = relation.source.root_path() + [None]
    path_b: list[Optional["Node"]] = relation.target.root_path() + [None]

    minified = False
    while not minified:
        minified = True
        if (
            len(path_a) > 1
            and len(path_b) > 1
            and path_a[-1] is path_b[-1]
            and path_a[-2] is path_b[-2]
        ):
            path_a.pop()
            path_b.pop()
            minified = False
        elif path_a[-1] is path_b[-1]:
            common = path_a.pop()
            if common is None or (remove_lca and len(path_a) + len(path_b) > 3):
                path_b.pop()

    return path_a + path_b[::-1]


def map_path_to_vertices(path: list["Node"]) -> list[Point]:
    """Anchor points for the endpoints, routing points in between."""
    if not path:
        return []
    vertices = [anchor_point(path[0])]
    vertices.extend(routing_point(node) for node in path[1:-1])
    vertices.append(anchor_point(path[-1]))
    return vertices


def strengthen_points(points: list[Point], strength: float) -> list[Point]:
    """Blend interior points towards the straight line between the endpoints.

    Each interior point ``p_i`` becomes
    ``b * p_i + (1 - b) * lerp(p_0, p_n, i / n)``. A strength of 1 leaves the
    points untouched; 0 puts every point on the chord.
    """
    n = len(points) - 1
    if n <= 0 or strength == 1:
        return list(points)

    p0 = points[0]
    pn = points[n]
    result = [p0]
    for i in range(1, n):
        t = i / n
        result.append(
            tuple(
                strength * p + (1 - strength) * (a + (b - a) * t)
                for p, a, b in zip(points[i], p0, pn)
            )
        )
    result.append(pn)
    return result


def _b_spline(p0: float, p1: float, p2: float, p3: float, t: float) -> float:
    t2 = t * t
    t3 = t2 * t
    return (
        (1 - t) ** 3 * p0
        + (3 * t3 - 6 * t2 + 4) * p1
        + (-3 * t3 + 3 * t2 + 3 * t + 1) * p2
        + t3 * p3
    ) / 6


class BSplineCurve:
    """Uniform cubic B-spline over a sequence of control points.

    The parameter is spread evenly over the control points rather than over
    arc length, so ``t = i / (n - 1)`` lies near control point ``i``.
    """

    def __init__(self, points: list[Point]):
        self.points = list(points)

    def point(self, t: float) -> Point:
        points = self.points
        if not points:
            raise ValueError("Curve has no control points")
        last = len(points) - 1
        if last == 0:
            return points[0]

        t = max(0.0, min(1.0, t))
        position = last * t
        index = int(math.floor(position))
        weight = position - index

        p0 = points[index - 1 if index > 0 else index]
        p1 = points[index]
        p2 = points[min(index + 1, last)]
        p3 = points[min(index + 2, last)]
        return tuple(
            _b_spline(a, b, c, d, weight) for a, b, c, d in zip(p0, p1, p2, p3)
        )

    def point_at(self, u: float) -> Point:
        """Point at curve parameter u in [0, 1]."""
        return self.point(u)

    def __len__(self) -> int:
        return len(self.points)


def control_points(relation: "Relation") -> list[Point]:
    """Bundled control points of a relation's curve."""
    return relation_curve(relation).points


def relation_curve(relation: "Relation") -> BSplineCurve:
    def compute() -> BSplineCurve:
        path = calculate_path(relation)
        if len(path) < 2:
            logger.debug("Relation %d collapses to a single node", relation.id)
        points = map_path_to_vertices(path)
        return BSplineCurve(strengthen_points(points, relation.view.options.bundling_strength))

    return relation.view.cache.get(("curve", relation.id), _CURVE_TAGS, compute)


def relation_color(relation: "Relation", u: float) -> Color:
    handlers = relation.view.handlers
    color_handler = handlers[PropertyKey.RELATION_COLOR]
    if color_handler.relative:
        t = color_handler(relation, u)
        gradient = to_gradient(handlers[PropertyKey.RELATION_GRADIENT_COLOR](relation))
        return interpolate_colors(gradient.start, gradient.end, t)
    return to_color(color_handler(relation, u))


def sample_relation(
    relation: "Relation", subdivisions: int = SUBDIVISIONS
) -> list[tuple[Point, Color]]:
    """Sample a relation's curve for drawing.

    Every control-point segment is split into ``subdivisions`` sub-segments;
    each sample carries the color at its curve parameter.
    """
    if subdivisions < 1:
        logger.warning(
            "Clamping %d subdivisions to 1 for relation %d", subdivisions, relation.id
        )
        subdivisions = 1
    curve = relation_curve(relation)
    steps = max(len(curve) - 1, 1) * subdivisions
    samples = []
    for i in range(steps + 1):
        u = i / steps
        samples.append((curve.point_at(u), relation_color(relation, u)))
    return samples
