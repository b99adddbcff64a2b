"""Pytest fixtures for bundleview tests."""

import pytest

from bundleview.layout import BundleView, Node, Relation


@pytest.fixture
def three_layer_tree() -> tuple[BundleView, dict[str, Node]]:
    """Single root R with children X (leaves x1, x2) and Y (leaf y1)."""
    view = BundleView()
    r = view.add_node("R")
    x = view.add_node("X", parent=r)
    y = view.add_node("Y", parent=r)
    nodes = {
        "R": r,
        "X": x,
        "Y": y,
        "x1": view.add_node("x1", parent=x),
        "x2": view.add_node("x2", parent=x),
        "y1": view.add_node("y1", parent=y),
    }
    return view, nodes


@pytest.fixture
def weighted_roots() -> tuple[BundleView, Node, Node]:
    """Two roots A and B with node_length weights 1 and 3."""
    view = BundleView()
    a = view.add_node("A", attributes={"size": 1})
    b = view.add_node("B", attributes={"size": 3})
    view.set_node_length_handler(lambda node: node.attribute("size") or 1)
    return view, a, b


@pytest.fixture
def related_forest() -> tuple[BundleView, dict[str, Node], dict[str, Relation]]:
    """Roots A (leaves a1, a2) and B (leaf b1) with relations between leaves.

    Relations: a1 -> b1, a1 -> a2, b1 -> a1.
    """
    view = BundleView()
    a = view.add_node("A")
    b = view.add_node("B")
    nodes = {
        "A": a,
        "B": b,
        "a1": view.add_node("a1", parent=a),
        "a2": view.add_node("a2", parent=a),
        "b1": view.add_node("b1", parent=b),
    }
    relations = {
        "a1->b1": view.add_relation(nodes["a1"], nodes["b1"], {"kind": "call"}),
        "a1->a2": view.add_relation(nodes["a1"], nodes["a2"], {"kind": "import"}),
        "b1->a1": view.add_relation(nodes["b1"], nodes["a1"], {"kind": "call"}),
    }
    return view, nodes, relations


@pytest.fixture
def flat_document() -> dict:
    """Intermediate-form document: two top-level nodes, three leaves, two relations."""
    return {
        "nodes": {
            "1": {"label": "core", "parentId": 0, "attributes": {"team": "infra"}},
            "2": {"label": "ui", "parentId": "root", "attributes": {}},
            "3": {"label": "cache", "parentId": 1, "attributes": {"lines": "120"}},
            "4": {"label": "store", "parentId": "1"},
            "5": {"label": "button", "parentId": 2},
        },
        "relations": [
            {"sourceId": 5, "destId": 3, "attributes": {"kind": "call"}},
            {"sourceId": "3", "destId": "4"},
        ],
    }
