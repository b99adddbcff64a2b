"""Tree/graph model of a bundle view.

The BundleView owns arenas of layers, nodes and relations keyed by integer
handles. Entities only store handles of each other and resolve them through
the view, so removing an entity never leaves a dangling back-reference.
"""

import itertools
import logging
from collections.abc import Callable, Mapping
from typing import Any

from . import radial, routing, visibility
from .cache import CacheTag, LayoutCache
from .colors import Color, interpolate_colors, to_color, to_gradient
from .handlers import HandlerRegistry, PropertyHandler, PropertyKey, default_handlers
from .options import BundleViewOptions

logger = logging.getLogger(__name__)


class Layer:
    """One concentric ring, holding the nodes of one tree depth."""

    kind = "layer"
    is_node = False

    def __init__(self, view: "BundleView", layer_id: int):
        self.view = view
        self.id = layer_id
        self._parent_id: int | None = None
        self._child_id: int | None = None
        self._node_ids: list[int] = []

    def __repr__(self) -> str:
        return f"Layer(id={self.id}, nodes={len(self._node_ids)})"

    @property
    def parent(self) -> "Layer | None":
        """The next layer outwards."""
        return self.view._layers.get(self._parent_id)

    @property
    def child(self) -> "Layer | None":
        """The next layer inwards."""
        return self.view._layers.get(self._child_id)

    @property
    def nodes(self) -> list["Node"]:
        return [self.view._nodes[node_id] for node_id in self._node_ids]

    def index(self) -> int:
        """Position in the layer chain; 0 is the outer (root) layer."""
        index = 0
        layer = self.parent
        while layer is not None:
            index += 1
            layer = layer.parent
        return index

    def total_weight(self, key: PropertyKey | str) -> float:
        return radial.total_weight(self, key)

    def max_weight(self, key: PropertyKey | str) -> float:
        return radial.max_weight(self, key)

    def outer_radius(self) -> float:
        return radial.layer_outer_radius(self)

    def inner_radius(self) -> float:
        return radial.layer_inner_radius(self)

    def routing_radius(self) -> float:
        return radial.routing_radius(self)


class Node:
    """A tree vertex with arbitrary string attributes.

    Geometry accessors (angles, radii, points) and appearance accessors
    (height, colors, tooltip) are computed lazily and cached by the view.
    """

    kind = "node"
    is_node = True

    def __init__(
        self,
        view: "BundleView",
        node_id: int,
        label: str = "",
        attributes: Mapping[str, Any] | None = None,
    ):
        self.view = view
        self.id = node_id
        self.label = label
        self.attributes: dict[str, Any] = dict(attributes or {})
        self._parent_id: int | None = None
        self._child_ids: list[int] = []
        self._layer_id: int | None = None
        self._out_ids: list[int] = []
        self._in_ids: list[int] = []
        self._visible: bool | None = None
        self._show_relations = True

    def __repr__(self) -> str:
        return f"Node(id={self.id}, label={self.label!r})"

    # -- structure ---------------------------------------------------------

    @property
    def parent(self) -> "Node | None":
        return self.view._nodes.get(self._parent_id)

    @property
    def children(self) -> list["Node"]:
        return [self.view._nodes[child_id] for child_id in self._child_ids]

    @property
    def layer(self) -> Layer:
        return self.view._layers[self._layer_id]

    @property
    def relations(self) -> list["Relation"]:
        """Outgoing relations."""
        return [self.view._relations[relation_id] for relation_id in self._out_ids]

    @property
    def incoming_relations(self) -> list["Relation"]:
        return [self.view._relations[relation_id] for relation_id in self._in_ids]

    def attribute(self, name: str) -> Any:
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: Any) -> Any:
        self.attributes[name] = value
        return value

    def add_child(self, child: "Node") -> None:
        """Attach child (and its subtree) below this node, reparenting if needed."""
        if child.id in self._child_ids:
            return
        if child is self or child in self.root_path():
            logger.error("Cannot attach %r below its own descendant %r", child, self)
            return
        old_parent = child.parent
        if old_parent is not None:
            old_parent._child_ids.remove(child.id)
        self._child_ids.append(child.id)
        child._parent_id = self.id
        self.view._relayer(child, self.view._child_layer(self.layer))
        self.view._invalidate(CacheTag.STRUCTURE)

    def remove_child(self, child: "Node") -> None:
        """Detach child; it becomes a root node in the outer layer."""
        if child.id not in self._child_ids:
            return
        self._child_ids.remove(child.id)
        child._parent_id = None
        self.view._relayer(child, self.view._root_layer())
        self.view._invalidate(CacheTag.STRUCTURE)

    def is_root(self) -> bool:
        return self._parent_id is None

    def is_leaf(self) -> bool:
        """True if no child is visible."""
        return not any(child.is_visible() for child in self.children)

    def siblings(self) -> list["Node"]:
        """All nodes on the same layer, including this one."""
        return self.layer.nodes

    def descendants(self) -> list["Node"]:
        """Pre-order list of the whole subtree, excluding this node."""
        result: list[Node] = []
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            result.append(node)
            stack.extend(reversed(node.children))
        return result

    def root_path(self) -> list["Node"]:
        """This node followed by its ancestors up to the root."""
        path = [self]
        node = self
        while not node.is_root():
            node = node.parent
            path.append(node)
        return path

    def find_all_relations(self) -> list["Relation"]:
        """Outgoing relations of this node and its whole subtree."""
        relations = list(self.relations)
        for node in self.descendants():
            relations.extend(node.relations)
        return relations

    # -- weights and layout ------------------------------------------------

    def weight(self, key: PropertyKey | str) -> float:
        return radial.weight(self, key)

    def total_weight(self, key: PropertyKey | str) -> float:
        return radial.total_weight(self, key)

    def max_weight(self, key: PropertyKey | str) -> float:
        return radial.max_weight(self, key)

    def relative_total_weight(self, key: PropertyKey | str) -> float:
        return radial.relative_total_weight(self, key)

    def relative_max_weight(self, key: PropertyKey | str) -> float:
        return radial.relative_max_weight(self, key)

    def start_angle(self) -> float:
        return radial.angular_span(self)[0]

    def end_angle(self) -> float:
        return radial.angular_span(self)[1]

    def too_small(self) -> bool:
        return radial.too_small(self)

    def padded_span(self) -> tuple[float, float]:
        return radial.padded_span(self)

    def inner_radius(self) -> float:
        return radial.node_inner_radius(self)

    def outer_radius(self) -> float:
        return self.layer.outer_radius()

    def routing_point(self) -> routing.Point:
        return routing.routing_point(self)

    def anchor_point(self) -> routing.Point:
        return routing.anchor_point(self)

    # -- appearance --------------------------------------------------------

    def height(self) -> float:
        return radial.node_height(self)

    def color(self) -> Color:
        return self._resolve_color(PropertyKey.NODE_COLOR, PropertyKey.NODE_GRADIENT_COLOR)

    def text_color(self) -> Color:
        return self._resolve_color(
            PropertyKey.NODE_TEXT_COLOR, PropertyKey.NODE_GRADIENT_TEXT_COLOR
        )

    def _resolve_color(self, key: PropertyKey, gradient_key: PropertyKey) -> Color:
        handler = self.view.handlers[key]
        if handler.relative:
            gradient = to_gradient(self.view.handlers[gradient_key](self))
            return interpolate_colors(
                gradient.start, gradient.end, self.relative_max_weight(key)
            )
        return to_color(handler(self))

    def tooltip_text(self) -> str:
        return self.view.handlers[PropertyKey.NODE_TOOLTIP_TEXT](self)

    # -- visibility --------------------------------------------------------

    def is_visible(self) -> bool:
        return visibility.node_is_visible(self)

    def show(self) -> None:
        visibility.show_node(self)

    def hide(self) -> None:
        visibility.hide_node(self)

    def toggle_relations(self, show: bool | None = None) -> bool:
        return visibility.toggle_node_relations(self, show)


class Relation:
    """A directed edge between two nodes, drawn through the hierarchy."""

    def __init__(
        self,
        view: "BundleView",
        relation_id: int,
        source: Node,
        target: Node,
        attributes: Mapping[str, Any] | None = None,
    ):
        self.view = view
        self.id = relation_id
        self._source_id = source.id
        self._target_id = target.id
        self.attributes: dict[str, Any] = dict(attributes or {})
        self._visible: bool | None = None

    def __repr__(self) -> str:
        return f"Relation(id={self.id}, {self._source_id} -> {self._target_id})"

    @property
    def source(self) -> Node:
        return self.view._nodes[self._source_id]

    @property
    def target(self) -> Node:
        return self.view._nodes[self._target_id]

    @property
    def nodes(self) -> tuple[Node, Node]:
        return self.source, self.target

    def attribute(self, name: str) -> Any:
        return self.attributes.get(name)

    def calculate_path(self) -> list[Node]:
        return routing.calculate_path(self)

    def control_points(self) -> list[routing.Point]:
        return routing.control_points(self)

    def curve(self) -> routing.BSplineCurve:
        return routing.relation_curve(self)

    def color(self, u: float) -> Color:
        return routing.relation_color(self, u)

    def sample(self, subdivisions: int = routing.SUBDIVISIONS) -> list[tuple[routing.Point, Color]]:
        return routing.sample_relation(self, subdivisions)

    def is_visible(self) -> bool:
        return visibility.relation_is_visible(self)

    def show(self) -> None:
        visibility.set_relation_visible(self, True)

    def hide(self) -> None:
        visibility.set_relation_visible(self, False)

    def toggle(self, show: bool | None = None) -> bool:
        return visibility.set_relation_visible(self, show)


class BundleView:
    """Container owning the layers, nodes and relations of one visualized tree.

    Options may be given as a BundleViewOptions instance and/or as keyword
    overrides, e.g. ``BundleView(bundling_strength=0.5)``.
    """

    def __init__(self, options: BundleViewOptions | None = None, **overrides: Any):
        if options is None:
            options = BundleViewOptions.from_mapping(overrides)
        elif overrides:
            options = BundleViewOptions.from_mapping({**vars(options), **overrides})
        self.options = options
        self.handlers = HandlerRegistry(default_handlers(options))
        self.cache = LayoutCache()
        self._layers: dict[int, Layer] = {}
        self._nodes: dict[int, Node] = {}
        self._relations: dict[int, Relation] = {}
        self._ids = itertools.count(1)

    def __repr__(self) -> str:
        return (
            f"BundleView(layers={len(self._layers)}, nodes={len(self._nodes)}, "
            f"relations={len(self._relations)})"
        )

    # -- collections -------------------------------------------------------

    @property
    def layers(self) -> list[Layer]:
        """Layers from the outer (index 0) to the innermost one."""
        result = []
        layer = self._root_layer(create=False)
        while layer is not None:
            result.append(layer)
            layer = layer.child
        return result

    @property
    def nodes(self) -> list[Node]:
        return list(self._nodes.values())

    @property
    def relations(self) -> list[Relation]:
        return list(self._relations.values())

    def roots(self) -> list[Node]:
        root_layer = self._root_layer(create=False)
        return root_layer.nodes if root_layer is not None else []

    def node(self, node_id: int) -> Node | None:
        return self._nodes.get(node_id)

    def find_nodes(self, label: str) -> list[Node]:
        return [node for node in self._nodes.values() if node.label == label]

    # -- structural edits --------------------------------------------------

    def add_layer(self) -> Layer:
        """Append a new innermost layer to the chain."""
        layer = Layer(self, next(self._ids))
        layers = self.layers
        if layers:
            innermost = layers[-1]
            innermost._child_id = layer.id
            layer._parent_id = innermost.id
        self._layers[layer.id] = layer
        self._invalidate(CacheTag.STRUCTURE)
        return layer

    def remove_layer(self, layer: Layer) -> None:
        """Remove a layer, its member nodes and their subtrees."""
        if self._layers.get(layer.id) is not layer:
            return
        for node in layer.nodes:
            self.remove_node(node)
        parent, child = layer.parent, layer.child
        if parent is not None:
            parent._child_id = child.id if child is not None else None
        if child is not None:
            child._parent_id = parent.id if parent is not None else None
        del self._layers[layer.id]
        self._invalidate(CacheTag.STRUCTURE)

    def add_node(
        self,
        label: str = "",
        parent: Node | None = None,
        attributes: Mapping[str, Any] | None = None,
    ) -> Node:
        """Create a node below parent, or a root node if parent is None.

        The node joins the layer below its parent's layer (or the root
        layer); missing layers are created on demand.
        """
        node = Node(self, next(self._ids), label, attributes)
        self._nodes[node.id] = node
        if parent is None:
            self._place(node, self._root_layer())
        else:
            parent._child_ids.append(node.id)
            node._parent_id = parent.id
            self._place(node, self._child_layer(parent.layer))
        self._invalidate(CacheTag.STRUCTURE)
        return node

    def remove_node(self, node: Node) -> None:
        """Remove a node with its subtree and every incident relation."""
        if self._nodes.get(node.id) is not node:
            return
        parent = node.parent
        if parent is not None:
            parent._child_ids.remove(node.id)
        for doomed in reversed([node] + node.descendants()):
            for relation in doomed.relations + doomed.incoming_relations:
                self.remove_relation(relation)
            self._layers[doomed._layer_id]._node_ids.remove(doomed.id)
            del self._nodes[doomed.id]
        self._invalidate(CacheTag.STRUCTURE)

    def add_relation(
        self,
        source: Node,
        target: Node,
        attributes: Mapping[str, Any] | None = None,
    ) -> Relation | None:
        """Create a relation from source to target.

        Returns:
            The new relation, or None if an endpoint does not belong to this view.
        """
        for endpoint in (source, target):
            if endpoint is None or self._nodes.get(endpoint.id) is not endpoint:
                logger.warning("Relation endpoint %r is not part of this view", endpoint)
                return None
        relation = Relation(self, next(self._ids), source, target, attributes)
        self._relations[relation.id] = relation
        source._out_ids.append(relation.id)
        target._in_ids.append(relation.id)
        self._invalidate(CacheTag.STRUCTURE)
        return relation

    def remove_relation(self, relation: Relation) -> None:
        if self._relations.get(relation.id) is not relation:
            return
        source, target = relation.source, relation.target
        if relation.id in source._out_ids:
            source._out_ids.remove(relation.id)
        if relation.id in target._in_ids:
            target._in_ids.remove(relation.id)
        del self._relations[relation.id]
        self._invalidate(CacheTag.STRUCTURE)

    def _root_layer(self, create: bool = True) -> Layer | None:
        for layer in self._layers.values():
            if layer._parent_id is None:
                return layer
        if not create:
            return None
        return self.add_layer()

    def _child_layer(self, layer: Layer) -> Layer:
        child = layer.child
        if child is not None:
            return child
        logger.debug("Creating layer below %r", layer)
        child = Layer(self, next(self._ids))
        child._parent_id = layer.id
        layer._child_id = child.id
        self._layers[child.id] = child
        return child

    def _place(self, node: Node, layer: Layer) -> None:
        if node._layer_id == layer.id:
            return
        if node._layer_id is not None:
            self._layers[node._layer_id]._node_ids.remove(node.id)
        layer._node_ids.append(node.id)
        node._layer_id = layer.id

    def _relayer(self, node: Node, layer: Layer) -> None:
        """Move node to layer and its subtree to the layers below."""
        self._place(node, layer)
        for child in node.children:
            self._relayer(child, self._child_layer(layer))

    # -- handlers ----------------------------------------------------------

    def set_property_handler(
        self, handlers: Mapping[PropertyKey | str, PropertyHandler]
    ) -> None:
        """Replace one or more property handlers at once.

        Example:
            view.set_property_handler(
                {"node_length": PropertyHandler(lambda node: 2, relative=True)}
            )
        """
        replaced = self.handlers.replace(handlers)
        if PropertyKey.NODE_VISIBILITY in replaced:
            self.reset_node_visibility_cache()
        if PropertyKey.RELATION_VISIBILITY in replaced:
            self.reset_relation_visibility_cache()
        self._invalidate(*replaced)

    def _set_handler(self, key: PropertyKey, compute: Callable[..., Any], relative: bool) -> None:
        self.set_property_handler({key: PropertyHandler(compute, relative)})

    def set_node_length_handler(self, compute: Callable[..., Any], relative: bool = True) -> None:
        self._set_handler(PropertyKey.NODE_LENGTH, compute, relative)

    def set_node_height_handler(self, compute: Callable[..., Any], relative: bool = True) -> None:
        self._set_handler(PropertyKey.NODE_HEIGHT, compute, relative)

    def set_node_color_handler(self, compute: Callable[..., Any], relative: bool = False) -> None:
        self._set_handler(PropertyKey.NODE_COLOR, compute, relative)

    def set_node_text_color_handler(
        self, compute: Callable[..., Any], relative: bool = False
    ) -> None:
        self._set_handler(PropertyKey.NODE_TEXT_COLOR, compute, relative)

    def set_node_gradient_color_handler(self, compute: Callable[..., Any]) -> None:
        self._set_handler(PropertyKey.NODE_GRADIENT_COLOR, compute, False)

    def set_node_gradient_text_color_handler(self, compute: Callable[..., Any]) -> None:
        self._set_handler(PropertyKey.NODE_GRADIENT_TEXT_COLOR, compute, False)

    def set_node_visibility_handler(self, compute: Callable[..., Any]) -> None:
        self._set_handler(PropertyKey.NODE_VISIBILITY, compute, False)

    def set_node_tooltip_text_handler(self, compute: Callable[..., Any]) -> None:
        self._set_handler(PropertyKey.NODE_TOOLTIP_TEXT, compute, False)

    def set_relation_color_handler(
        self, compute: Callable[..., Any], relative: bool = True
    ) -> None:
        self._set_handler(PropertyKey.RELATION_COLOR, compute, relative)

    def set_relation_gradient_color_handler(self, compute: Callable[..., Any]) -> None:
        self._set_handler(PropertyKey.RELATION_GRADIENT_COLOR, compute, False)

    def set_relation_visibility_handler(self, compute: Callable[..., Any]) -> None:
        self._set_handler(PropertyKey.RELATION_VISIBILITY, compute, False)

    def reset_node_visibility_cache(self) -> None:
        """Re-evaluate the node visibility handler on the next query."""
        for node in self._nodes.values():
            node._visible = None
        self._invalidate(CacheTag.VISIBILITY)

    def reset_relation_visibility_cache(self) -> None:
        for relation in self._relations.values():
            relation._visible = None
        self._invalidate(CacheTag.VISIBILITY)

    # -- layout ------------------------------------------------------------

    def max_depth(self) -> int:
        return radial.max_depth(self)

    def node_thickness(self) -> float:
        return radial.node_thickness(self)

    def _invalidate(self, *tags: Any) -> None:
        self.cache.invalidate(*tags)
