"""Visibility resolution and cascade.

Nodes and relations memoize their visibility in a tri-state flag
(``None`` = unset, ``True``, ``False``). An unset flag is resolved through
the visibility handler the first time it is needed. Explicit changes cascade
down the subtree and invalidate every cached value tagged VISIBILITY, which
covers sibling spans, ring radii and relation curves.
"""

from typing import TYPE_CHECKING

from .cache import CacheTag
from .handlers import PropertyKey

if TYPE_CHECKING:
    from .model import Node, Relation


def node_is_visible(node: "Node") -> bool:
    """Resolve a node's visibility; an invisible parent always wins."""
    if node._visible is not None:
        if node._visible is False:
            return False
        if node.is_root():
            return True
        return node.parent.is_visible()
    if not node.is_root() and not node.parent.is_visible():
        # Not memoized: the handler is consulted once the parent shows up again
        return False
    node._visible = bool(node.view.handlers[PropertyKey.NODE_VISIBILITY](node))
    return node._visible


def relation_is_visible(relation: "Relation") -> bool:
    """A relation is visible iff both endpoints and its own flag are."""
    if not relation.source.is_visible() or not relation.target.is_visible():
        return False
    if relation._visible is None:
        relation._visible = bool(
            relation.view.handlers[PropertyKey.RELATION_VISIBILITY](relation)
        )
    return relation._visible


def _cascade(node: "Node") -> None:
    visible = node.is_visible()
    for child in node.children:
        child._visible = visible
        _cascade(child)


def show_node(node: "Node") -> None:
    node._visible = True
    _cascade(node)
    node.view._invalidate(CacheTag.VISIBILITY)


def hide_node(node: "Node") -> None:
    node._visible = False
    _cascade(node)
    node.view._invalidate(CacheTag.VISIBILITY)


def toggle_node_relations(node: "Node", show: bool | None = None) -> bool:
    """Show or hide the outgoing relations of a node and its whole subtree.

    Args:
        node: Subtree root.
        show: Target state. If None, the node's current state is flipped.

    Returns:
        The state that was applied.
    """
    if show is None:
        show = not node._show_relations
    _apply_relations(node, show)
    node.view._invalidate(CacheTag.VISIBILITY)
    return show


def _apply_relations(node: "Node", show: bool) -> None:
    node._show_relations = show
    for child in node.children:
        _apply_relations(child, show)
    for relation in node.relations:
        relation._visible = show


def set_relation_visible(relation: "Relation", show: bool | None = None) -> bool:
    """Set a relation's own flag, flipping the resolved flag if show is None."""
    if show is None:
        current = relation._visible
        if current is None:
            current = bool(
                relation.view.handlers[PropertyKey.RELATION_VISIBILITY](relation)
            )
        show = not current
    relation._visible = show
    relation.view._invalidate(CacheTag.VISIBILITY)
    return show
