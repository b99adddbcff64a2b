"""Generate layout outputs for external renderers."""

import csv
import json
import math
from pathlib import Path
from typing import Any

from .layout import BundleView, Node, Relation


def node_record(node: Node) -> dict[str, Any]:
    """Everything a renderer needs to draw one node."""
    record: dict[str, Any] = {
        "id": node.id,
        "label": node.label,
        "parent": node.parent.id if node.parent is not None else None,
        "layer": node.layer.index(),
        "visible": node.is_visible(),
    }
    if not record["visible"]:
        return record

    start, end = node.padded_span()
    record.update(
        {
            "start_angle": node.start_angle(),
            "end_angle": node.end_angle(),
            "padded_span": [start, end],
            "too_small": node.too_small(),
            "inner_radius": node.inner_radius(),
            "outer_radius": node.outer_radius(),
            "height": node.height(),
            "color": node.color().hex,
            "text_color": node.text_color().hex,
            "tooltip": node.tooltip_text(),
            "anchor_point": list(node.anchor_point()),
            "routing_point": list(node.routing_point()),
        }
    )
    return record


def relation_record(relation: Relation, subdivisions: int | None = None) -> dict[str, Any]:
    """Control points and color samples of one relation."""
    record: dict[str, Any] = {
        "id": relation.id,
        "source": relation.source.id,
        "target": relation.target.id,
        "visible": relation.is_visible(),
        "attributes": dict(relation.attributes),
    }
    if not record["visible"]:
        return record

    samples = relation.sample() if subdivisions is None else relation.sample(subdivisions)
    record["path"] = [node.id for node in relation.calculate_path()]
    record["control_points"] = [list(point) for point in relation.control_points()]
    record["samples"] = [
        {"point": list(point), "color": color.hex} for point, color in samples
    ]
    return record


def generate_json(view: BundleView, output_file: Path) -> None:
    """Write the full layout (options, layers, nodes, relations) as JSON.

    Args:
        view: Bundle view to export.
        output_file: Path to write the JSON file.
    """
    layers = [
        {
            "index": layer.index(),
            "nodes": [node.id for node in layer.nodes],
            "outer_radius": layer.outer_radius(),
            "inner_radius": layer.inner_radius(),
            "routing_radius": layer.routing_radius(),
        }
        for layer in view.layers
    ]
    data = {
        "options": {
            "outer_radius": view.options.outer_radius,
            "inner_radius": view.options.inner_radius,
            "safe_radius": view.options.safe_radius,
            "relation_width": view.options.relation_width,
            "bundling_strength": view.options.bundling_strength,
            "remove_lca": view.options.remove_lca,
        },
        "layers": layers,
        "nodes": [node_record(node) for node in view.nodes],
        "relations": [relation_record(relation) for relation in view.relations],
    }
    with open(output_file, "w") as f:
        json.dump(data, f, indent=2)


def generate_csv(view: BundleView, output_file: Path) -> None:
    """Write one row per node with its angles (in degrees) and radii."""
    with open(output_file, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(
            [
                "id",
                "label",
                "layer",
                "visible",
                "start_deg",
                "end_deg",
                "inner_radius",
                "outer_radius",
                "too_small",
                "out_relations",
                "in_relations",
            ]
        )
        for node in view.nodes:
            writer.writerow(
                [
                    node.id,
                    node.label,
                    node.layer.index(),
                    node.is_visible(),
                    f"{math.degrees(node.start_angle()):.3f}",
                    f"{math.degrees(node.end_angle()):.3f}",
                    f"{node.inner_radius():.3f}",
                    f"{node.outer_radius():.3f}",
                    node.too_small(),
                    len(node.relations),
                    len(node.incoming_relations),
                ]
            )


def generate_summary(view: BundleView, output_file: Path) -> None:
    """Generate human-readable summary file.

    Args:
        view: Bundle view to summarize.
        output_file: Path to write the summary file.
    """
    visible_nodes = [node for node in view.nodes if node.is_visible()]
    visible_relations = [relation for relation in view.relations if relation.is_visible()]

    with open(output_file, "w") as f:
        f.write("=" * 60 + "\n")
        f.write("Bundle View Layout Summary\n")
        f.write("=" * 60 + "\n\n")

        f.write(f"Layers: {len(view.layers)}\n")
        f.write(f"Nodes: {len(view.nodes)} ({len(visible_nodes)} visible)\n")
        f.write(f"Relations: {len(view.relations)} ({len(visible_relations)} visible)\n")
        f.write(f"Node thickness: {view.node_thickness():.2f}\n")
        too_small = sum(1 for node in visible_nodes if node.too_small())
        f.write(f"Nodes too small for a label: {too_small}\n\n")

        f.write("Layers:\n")
        f.write("-" * 40 + "\n")
        for layer in view.layers:
            visible = sum(1 for node in layer.nodes if node.is_visible())
            f.write(
                f"  {layer.index():2d}  {len(layer.nodes):5d} nodes ({visible} visible), "
                f"r={layer.inner_radius():.1f}..{layer.outer_radius():.1f}\n"
            )

        senders = [node for node in view.nodes if node.relations]
        if senders:
            f.write("\nTop 10 by outgoing relations:\n")
            f.write("-" * 40 + "\n")
            for node in sorted(senders, key=lambda n: -len(n.relations))[:10]:
                f.write(f"  {len(node.relations):4d}  {node.label}\n")
