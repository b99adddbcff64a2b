"""Tests for visibility.py module."""

import math

TOL = 1e-9


def span(node):
    return node.end_angle() - node.start_angle()


class TestNodeVisibility:
    """Tests for hiding and showing nodes."""

    def test_visible_by_default(self, three_layer_tree):
        """The default handler shows everything."""
        view, _ = three_layer_tree
        assert all(node.is_visible() for node in view.nodes)

    def test_hide_cascades(self, three_layer_tree):
        """Hiding a node hides its whole subtree."""
        _, nodes = three_layer_tree
        nodes["X"].hide()

        assert not nodes["X"].is_visible()
        assert not nodes["x1"].is_visible()
        assert not nodes["x2"].is_visible()
        assert nodes["Y"].is_visible()
        assert nodes["y1"].is_visible()

    def test_siblings_fill_freed_span(self, three_layer_tree):
        """Visible siblings take over the span of a hidden one."""
        _, nodes = three_layer_tree
        nodes["X"].hide()

        assert abs(span(nodes["Y"]) - 2 * math.pi) < TOL
        assert abs(span(nodes["y1"]) - 2 * math.pi) < TOL
        assert span(nodes["X"]) == 0.0

    def test_show_restores_subtree(self, three_layer_tree):
        """Showing a node again shows its subtree and restores spans."""
        _, nodes = three_layer_tree
        nodes["X"].hide()
        nodes["X"].show()

        assert nodes["x1"].is_visible()
        assert abs(span(nodes["X"]) - math.pi) < TOL
        assert abs(span(nodes["x1"]) - math.pi / 2) < TOL

    def test_hidden_parent_overrides_child(self, three_layer_tree):
        """An explicitly shown child stays invisible under a hidden parent."""
        _, nodes = three_layer_tree
        nodes["X"].hide()
        nodes["x1"]._visible = True

        assert not nodes["x1"].is_visible()

    def test_visibility_handler(self, three_layer_tree):
        """The visibility handler is consulted for unset flags."""
        view, nodes = three_layer_tree
        view.set_node_visibility_handler(lambda node: node.label != "X")

        assert not nodes["X"].is_visible()
        assert not nodes["x1"].is_visible()
        assert abs(span(nodes["Y"]) - 2 * math.pi) < TOL

    def test_replacing_handler_resets_memo(self, three_layer_tree):
        """A new visibility handler re-evaluates every node."""
        view, nodes = three_layer_tree
        view.set_node_visibility_handler(lambda node: node.label != "X")
        assert not nodes["X"].is_visible()

        view.set_node_visibility_handler(lambda node: True)

        assert nodes["X"].is_visible()
        assert nodes["x1"].is_visible()

    def test_child_memo_deferred_under_hidden_parent(self, three_layer_tree):
        """A child under a hidden parent is not memoized."""
        view, nodes = three_layer_tree
        view.set_node_visibility_handler(lambda node: node.label != "X")
        nodes["x1"].is_visible()

        assert nodes["x1"]._visible is None

    def test_reset_node_visibility_cache(self, three_layer_tree):
        """Resetting re-runs the handler on the next query."""
        view, nodes = three_layer_tree
        hidden = {"y1"}
        view.set_node_visibility_handler(lambda node: node.label not in hidden)
        assert not nodes["y1"].is_visible()

        hidden.clear()
        assert not nodes["y1"].is_visible()

        view.reset_node_visibility_cache()
        assert nodes["y1"].is_visible()

    def test_hiding_leaves_changes_radii(self, three_layer_tree):
        """Hiding every node of the innermost layer thickens the rings."""
        view, nodes = three_layer_tree
        for label in ("x1", "x2", "y1"):
            nodes[label].hide()

        assert view.max_depth() == 1
        assert abs(view.node_thickness() - (40 - 2) / 2) < TOL
        assert nodes["X"].is_leaf()


class TestRelationVisibility:
    """Tests for relation visibility."""

    def test_hidden_endpoint_hides_relation(self, related_forest):
        """Relations touching a hidden subtree are invisible."""
        _, nodes, relations = related_forest
        nodes["B"].hide()

        assert not relations["a1->b1"].is_visible()
        assert not relations["b1->a1"].is_visible()
        assert relations["a1->a2"].is_visible()

    def test_show_hide_relation(self, related_forest):
        """A relation's own flag can be set independently."""
        _, _, relations = related_forest
        relation = relations["a1->b1"]

        relation.hide()
        assert not relation.is_visible()
        relation.show()
        assert relation.is_visible()

    def test_toggle_relation(self, related_forest):
        """toggle flips the flag, or applies the requested state."""
        _, _, relations = related_forest
        relation = relations["a1->a2"]

        assert relation.toggle() is False
        assert not relation.is_visible()
        assert relation.toggle() is True
        assert relation.toggle(True) is True
        assert relation.is_visible()

    def test_own_flag_needs_visible_endpoints(self, related_forest):
        """Showing a relation does not override a hidden endpoint."""
        _, nodes, relations = related_forest
        nodes["a2"].hide()
        relations["a1->a2"].show()

        assert not relations["a1->a2"].is_visible()

    def test_relation_visibility_handler(self, related_forest):
        """The relation visibility handler filters by attribute."""
        view, _, relations = related_forest
        view.set_relation_visibility_handler(
            lambda relation: relation.attribute("kind") == "call"
        )

        assert relations["a1->b1"].is_visible()
        assert not relations["a1->a2"].is_visible()

    def test_toggle_node_relations(self, related_forest):
        """toggle_relations switches the outgoing relations of a subtree."""
        _, nodes, relations = related_forest

        assert nodes["A"].toggle_relations() is False
        assert not relations["a1->b1"].is_visible()
        assert not relations["a1->a2"].is_visible()
        assert relations["b1->a1"].is_visible()

        assert nodes["A"].toggle_relations() is True
        assert relations["a1->b1"].is_visible()

    def test_toggle_node_relations_explicit(self, related_forest):
        """An explicit state is applied regardless of the current one."""
        _, nodes, relations = related_forest

        assert nodes["B"].toggle_relations(show=False) is False
        assert nodes["B"].toggle_relations(show=False) is False
        assert not relations["b1->a1"].is_visible()
