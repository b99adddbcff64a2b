"""CLI for bundleview."""

import argparse
import json
from pathlib import Path

from .graph import ImportResult, import_document
from .layout import BundleViewOptions
from .visualize import generate_csv, generate_json, generate_summary

# Command-line flags that map onto BundleViewOptions fields
OPTION_FLAGS = {
    "outer_radius": float,
    "inner_radius": float,
    "safe_radius": float,
    "max_node_height": float,
    "layer_padding": float,
    "node_padding": float,
    "bundling_strength": float,
}


def load_config(config_path: Path) -> dict:
    """Load configuration from YAML file.

    Args:
        config_path: Path to the YAML config file.

    Returns:
        Dictionary of configuration values.
    """
    try:
        import yaml

        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    except ImportError as err:
        raise ImportError("PyYAML required for config files: pip install pyyaml") from err


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments shared between subcommands."""
    parser.add_argument("input", type=Path, help="JSON document with nodes and relations")
    parser.add_argument("--config", type=Path, help="Path to YAML config file")
    for name, kind in OPTION_FLAGS.items():
        flag = "--" + name.replace("_", "-")
        parser.add_argument(flag, type=kind, dest=name, help=f"Override the {name} option")
    parser.add_argument(
        "--keep-lca",
        action="store_true",
        help="Route relations through their least common ancestor",
    )


def resolve_options(
    args: argparse.Namespace, parser: argparse.ArgumentParser
) -> BundleViewOptions:
    """Merge config file options with command-line overrides."""
    values: dict = {}
    if args.config:
        config = load_config(args.config)
        if isinstance(config, dict):
            config = config.get("options", config)
        if not isinstance(config, dict):
            parser.error(f"config file must hold a mapping of options: {args.config}")
        values.update(config)
    for name in OPTION_FLAGS:
        value = getattr(args, name)
        if value is not None:
            values[name] = value
    if args.keep_lca:
        values["remove_lca"] = False
    return BundleViewOptions.from_mapping(values)


def build_view(args: argparse.Namespace, parser: argparse.ArgumentParser) -> ImportResult:
    """Load the input document into a bundle view."""
    if not args.input.exists():
        parser.error(f"input file not found: {args.input}")

    print(f"Loading {args.input}...")
    with open(args.input) as f:
        document = json.load(f)

    result = import_document(document, resolve_options(args, parser))
    for warning in result.warnings:
        print(f"Warning: {warning}")
    view = result.view
    print(
        f"Built {len(view.layers)} layers, {len(view.nodes)} nodes, "
        f"{len(view.relations)} relations"
    )
    return result


def cmd_layout(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    """Compute the layout and write JSON, CSV and summary outputs."""
    result = build_view(args, parser)
    args.output = args.output.resolve()
    args.output.mkdir(parents=True, exist_ok=True)

    generate_json(result.view, args.output / "layout.json")
    print("Wrote layout.json")
    generate_csv(result.view, args.output / "nodes.csv")
    print("Wrote nodes.csv")
    generate_summary(result.view, args.output / "summary.txt")
    print("Wrote summary.txt")
    print(f"\nAll outputs written to {args.output}/")


def find_matching_node(view, label: str):
    """Find the node with exactly this label. Error if missing or ambiguous."""
    matches = view.find_nodes(label)
    if len(matches) == 0:
        print(f"Error: No node labelled '{label}'")
        return None
    if len(matches) > 1:
        print(f"Error: Ambiguous label '{label}' matches {len(matches)} nodes")
        return None
    return matches[0]


def print_route(path: list) -> None:
    """Print the routed node chain with indentation."""
    for i, node in enumerate(path):
        indent = "  " * i
        arrow = "-> " if i > 0 else ""
        print(f"{indent}{arrow}{node.label} (layer {node.layer.index()})")


def cmd_trace(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    """Show how the relations between two nodes are routed."""
    view = build_view(args, parser).view

    source = find_matching_node(view, args.from_label)
    target = find_matching_node(view, args.to_label)
    if source is None or target is None:
        return

    relations = [r for r in source.relations if r.target is target]
    if not relations:
        print(f"No relation from {source.label} to {target.label}")
        return

    for i, relation in enumerate(relations):
        if i > 0:
            print()
        print(f"Relation {i + 1}{'' if relation.is_visible() else ' (hidden)'}:")
        print_route(relation.calculate_path())
        points = relation.control_points()
        print(f"  {len(points)} control points")


def main(argv: list[str] | None = None) -> None:
    """Main entry point for bundleview CLI."""
    parser = argparse.ArgumentParser(
        description="Radial hierarchical edge bundling layout"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    layout_parser = subparsers.add_parser(
        "layout",
        help="Compute the layout and write renderer inputs",
    )
    add_common_args(layout_parser)
    layout_parser.add_argument(
        "--output",
        type=Path,
        default=Path("results"),
        help="Output directory (default: results)",
    )

    trace_parser = subparsers.add_parser(
        "trace",
        help="Show the routed path of the relations between two nodes",
    )
    add_common_args(trace_parser)
    trace_parser.add_argument(
        "--from",
        dest="from_label",
        required=True,
        help="Source node label",
    )
    trace_parser.add_argument(
        "--to",
        dest="to_label",
        required=True,
        help="Target node label",
    )

    args = parser.parse_args(argv)

    if args.command == "layout":
        cmd_layout(args, layout_parser)
    elif args.command == "trace":
        cmd_trace(args, trace_parser)
    else:
        # No subcommand provided - show help
        parser.print_help()


if __name__ == "__main__":
    main()
