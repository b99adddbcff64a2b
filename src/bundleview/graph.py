"""Build bundle views from the normalized intermediate form and back.

The intermediate form is what import adapters (XML, JSON, ...) produce:

    nodes:     {node_id: {"label": ..., "parentId": ..., "attributes": {...}}}
    relations: [{"sourceId": ..., "destId": ..., "attributes": {...}}]

A ``parentId`` of ``0``, ``-1`` or ``"root"`` marks a top-level node. Node
ids are compared as strings, so ``3`` and ``"3"`` name the same node.
"""

import itertools
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import networkx as nx

from .layout import BundleView, BundleViewOptions, Node, Relation

logger = logging.getLogger(__name__)

# Synthetic root node name
ROOT_NODE = "__root__"
TOP_LEVEL_IDS = frozenset({"0", "-1", "root"})


@dataclass
class ImportResult:
    """Result of importing the intermediate form into a bundle view."""

    view: BundleView
    nodes: dict[str, Node] = field(default_factory=dict)  # keyed by str(node id)
    relations: list[Relation] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)  # skipped nodes/relations


def _is_top_level(parent_id: Any) -> bool:
    return parent_id is None or str(parent_id) in TOP_LEVEL_IDS


def build_hierarchy_graph(nodes: Mapping[Any, Mapping[str, Any]]) -> nx.DiGraph:
    """Build the parent -> child graph of the intermediate form.

    Top-level nodes hang below ROOT_NODE. Placeholder root records (ids
    ``0``, ``-1``, ``"root"``) are skipped.

    Args:
        nodes: Node records keyed by node id.

    Returns:
        NetworkX DiGraph with one incoming edge per record.
    """
    G = nx.DiGraph()
    G.add_node(ROOT_NODE)

    for node_id, record in nodes.items():
        key = str(node_id)
        if key in TOP_LEVEL_IDS:
            continue
        G.add_node(key, label=record.get("label", ""))
        parent_id = record.get("parentId")
        parent = ROOT_NODE if _is_top_level(parent_id) else str(parent_id)
        G.add_edge(parent, key)

    return G


def import_tree(
    nodes: Mapping[Any, Mapping[str, Any]],
    relations: Iterable[Mapping[str, Any]] = (),
    view: BundleView | None = None,
) -> ImportResult:
    """Populate a bundle view from the intermediate form.

    One layer is created per depth on the first node at that depth. Nodes
    that cannot be reached from a top-level node (unknown parent, parent
    cycle) and relations with an unknown endpoint are reported and skipped.

    Args:
        nodes: Node records keyed by node id.
        relations: Relation records.
        view: View to populate. A new default view is created if None.

    Returns:
        ImportResult with the view, the created nodes and relations, and warnings.
    """
    result = ImportResult(view=view if view is not None else BundleView())
    records = {str(node_id): record for node_id, record in nodes.items()}

    G = build_hierarchy_graph(nodes)
    reachable = nx.descendants(G, ROOT_NODE)

    for key, record in records.items():
        if key in TOP_LEVEL_IDS or key in reachable:
            continue
        parent_id = str(record.get("parentId"))
        if parent_id not in records:
            _warn(result, f"Node {key} references unknown parent {parent_id}, skipped")
        else:
            _warn(result, f"Node {key} is not connected to a top-level node, skipped")

    def create(key: str) -> Node:
        if key in result.nodes:
            return result.nodes[key]
        record = records[key]
        parent_id = record.get("parentId")
        parent = None if _is_top_level(parent_id) else create(str(parent_id))
        node = result.view.add_node(
            label=str(record.get("label", "")),
            parent=parent,
            attributes=record.get("attributes") or {},
        )
        result.nodes[key] = node
        return node

    for key in records:
        if key in reachable:
            create(key)

    for index, record in enumerate(relations):
        source = result.nodes.get(str(record.get("sourceId")))
        target = result.nodes.get(str(record.get("destId")))
        if source is None or target is None:
            _warn(
                result,
                f"Relation {index} ({record.get('sourceId')} -> {record.get('destId')}) "
                "references an undefined node, skipped",
            )
            continue
        relation = result.view.add_relation(source, target, record.get("attributes") or {})
        result.relations.append(relation)

    logger.debug(
        "Imported %d nodes and %d relations (%d warnings)",
        len(result.nodes),
        len(result.relations),
        len(result.warnings),
    )
    return result


def _warn(result: ImportResult, message: str) -> None:
    logger.warning(message)
    result.warnings.append(message)


def normalize_nested(
    root: Mapping[str, Any],
    relations: Iterable[Mapping[str, Any]] = (),
) -> tuple[dict[str, dict[str, Any]], list[dict[str, Any]]]:
    """Flatten a nested ``{"children": [...]}`` record tree to the intermediate form.

    The outermost record is the invisible root; its children become top-level
    nodes. Records without an ``id`` get sequential ids. Relation records use
    ``source``/``target`` keys.

    Returns:
        Tuple of (node records, relation records).
    """
    nodes: dict[str, dict[str, Any]] = {}
    used = {str(record["id"]) for record in _walk(root) if "id" in record}
    fresh = (str(i) for i in itertools.count(1) if str(i) not in used)

    stack: list[tuple[Mapping[str, Any], str]] = [
        (child, "0") for child in reversed(root.get("children", []))
    ]
    while stack:
        record, parent_id = stack.pop()
        node_id = str(record["id"]) if "id" in record else next(fresh)
        nodes[node_id] = {
            "label": record.get("label", ""),
            "parentId": parent_id,
            "attributes": dict(record.get("attributes") or {}),
        }
        stack.extend((child, node_id) for child in reversed(record.get("children", [])))

    flat_relations = [
        {
            "sourceId": str(relation["source"]),
            "destId": str(relation["target"]),
            "attributes": dict(relation.get("attributes") or {}),
        }
        for relation in relations
    ]
    return nodes, flat_relations


def _walk(root: Mapping[str, Any]) -> Iterable[Mapping[str, Any]]:
    stack = list(root.get("children", []))
    while stack:
        record = stack.pop()
        yield record
        stack.extend(record.get("children", []))


def import_document(
    document: Mapping[str, Any],
    options: BundleViewOptions | None = None,
) -> ImportResult:
    """Import a ``{"nodes": ..., "relations": [...]}`` document.

    ``nodes`` is either the flat intermediate mapping or a nested record
    tree (detected by its ``children`` list).
    """
    nodes = document.get("nodes", {})
    relations = document.get("relations", [])
    if isinstance(nodes.get("children"), list):
        nodes, relations = normalize_nested(nodes, relations)
    return import_tree(nodes, relations, view=BundleView(options))


def export_tree(view: BundleView) -> dict[str, Any]:
    """Export a view to the intermediate form.

    Nodes are numbered from 1 in view order; top-level nodes get parentId 0.
    """
    ids = {node.id: index for index, node in enumerate(view.nodes, start=1)}
    nodes = {
        str(ids[node.id]): {
            "label": node.label,
            "parentId": ids[node.parent.id] if node.parent is not None else 0,
            "attributes": dict(node.attributes),
        }
        for node in view.nodes
    }
    relations = [
        {
            "sourceId": str(ids[relation.source.id]),
            "destId": str(ids[relation.target.id]),
            "attributes": dict(relation.attributes),
        }
        for relation in view.relations
    ]
    return {"nodes": nodes, "relations": relations}


def tree_graph(view: BundleView) -> nx.DiGraph:
    """Hierarchy of a view as a DiGraph rooted at ROOT_NODE.

    Graph nodes are node handles carrying ``label`` and ``depth`` attributes.
    """
    G = nx.DiGraph()
    G.add_node(ROOT_NODE)
    for node in view.nodes:
        G.add_node(node.id, label=node.label, depth=node.layer.index())
        parent = node.parent
        G.add_edge(parent.id if parent is not None else ROOT_NODE, node.id)
    return G
