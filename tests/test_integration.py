"""Integration tests for layout outputs and the CLI."""

import csv
import json

import pytest

from bundleview.cli import main
from bundleview.graph import import_document
from bundleview.visualize import generate_csv, generate_json, generate_summary


@pytest.fixture
def input_file(tmp_path, flat_document):
    """The flat document written to disk."""
    path = tmp_path / "deps.json"
    path.write_text(json.dumps(flat_document))
    return path


class TestOutputs:
    """Tests for the JSON, CSV and summary outputs."""

    def test_generate_json(self, tmp_path, flat_document):
        """The JSON output carries geometry for every visible entity."""
        view = import_document(flat_document).view
        output = tmp_path / "layout.json"

        generate_json(view, output)
        data = json.loads(output.read_text())

        assert data["options"]["outer_radius"] == 150
        assert [layer["index"] for layer in data["layers"]] == [0, 1]
        assert len(data["nodes"]) == 5
        assert len(data["relations"]) == 2

        core = data["nodes"][0]
        assert core["label"] == "core"
        assert core["parent"] is None
        assert core["start_angle"] <= core["end_angle"]
        assert core["color"].startswith("#")

        relation = data["relations"][0]
        assert len(relation["control_points"]) == len(relation["path"]) == 4
        assert len(relation["samples"]) == 3 * 6 + 1

    def test_hidden_entities_have_no_geometry(self, tmp_path, flat_document):
        """Hidden nodes and relations are exported without geometry."""
        result = import_document(flat_document)
        result.nodes["2"].hide()
        output = tmp_path / "layout.json"

        generate_json(result.view, output)
        data = json.loads(output.read_text())

        ui = next(node for node in data["nodes"] if node["label"] == "ui")
        assert ui["visible"] is False
        assert "start_angle" not in ui
        assert data["relations"][0]["visible"] is False
        assert "control_points" not in data["relations"][0]

    def test_generate_csv(self, tmp_path, flat_document):
        """One CSV row per node, angles in degrees."""
        view = import_document(flat_document).view
        output = tmp_path / "nodes.csv"

        generate_csv(view, output)
        with open(output, newline="") as f:
            rows = list(csv.DictReader(f))

        assert len(rows) == 5
        assert rows[0]["label"] == "core"
        assert float(rows[0]["start_deg"]) == 0.0
        assert float(rows[0]["end_deg"]) == 180.0
        assert rows[4]["out_relations"] == "1"

    def test_generate_summary(self, tmp_path, flat_document):
        """The summary lists counts, layers and the busiest senders."""
        view = import_document(flat_document).view
        output = tmp_path / "summary.txt"

        generate_summary(view, output)
        content = output.read_text()

        assert "Bundle View Layout Summary" in content
        assert "Nodes: 5 (5 visible)" in content
        assert "Relations: 2 (2 visible)" in content
        assert "Top 10 by outgoing relations" in content


class TestCli:
    """Tests for the bundleview command line."""

    def test_layout(self, tmp_path, input_file, capsys):
        """layout writes all outputs to the output directory."""
        output = tmp_path / "out"
        main(["layout", str(input_file), "--output", str(output)])

        assert (output / "layout.json").exists()
        assert (output / "nodes.csv").exists()
        assert (output / "summary.txt").exists()
        assert "Built 2 layers, 5 nodes, 2 relations" in capsys.readouterr().out

    def test_config_and_flags(self, tmp_path, input_file):
        """Command-line flags override the YAML config."""
        config = tmp_path / "config.yaml"
        config.write_text("options:\n  outerRadius: 200\n  bundlingStrength: 0.5\n")
        output = tmp_path / "out"

        main(
            [
                "layout",
                str(input_file),
                "--config",
                str(config),
                "--outer-radius",
                "300",
                "--keep-lca",
                "--output",
                str(output),
            ]
        )
        options = json.loads((output / "layout.json").read_text())["options"]

        assert options["outer_radius"] == 300
        assert options["bundling_strength"] == 0.5
        assert options["remove_lca"] is False

    def test_import_warnings_printed(self, tmp_path, flat_document, capsys):
        """Skipped records are reported."""
        flat_document["relations"].append({"sourceId": 1, "destId": 42})
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(flat_document))

        main(["layout", str(path), "--output", str(tmp_path / "out")])

        assert "Warning: Relation 2" in capsys.readouterr().out

    def test_trace(self, input_file, capsys):
        """trace prints the routed node chain."""
        main(["trace", str(input_file), "--from", "button", "--to", "cache"])
        out = capsys.readouterr().out

        assert "Relation 1:" in out
        assert "button (layer 1)" in out
        assert "  -> ui (layer 0)" in out
        assert "    -> core (layer 0)" in out
        assert "4 control points" in out

    def test_trace_missing_label(self, input_file, capsys):
        """Unknown labels are reported."""
        main(["trace", str(input_file), "--from", "nope", "--to", "cache"])
        assert "No node labelled 'nope'" in capsys.readouterr().out

    def test_trace_no_relation(self, input_file, capsys):
        """Pairs without a relation are reported."""
        main(["trace", str(input_file), "--from", "cache", "--to", "button"])
        assert "No relation from cache to button" in capsys.readouterr().out

    def test_missing_input(self, tmp_path):
        """A missing input file is a usage error."""
        with pytest.raises(SystemExit):
            main(["layout", str(tmp_path / "missing.json")])

    def test_no_command(self, capsys):
        """Without a subcommand the help is printed."""
        main([])
        assert "usage" in capsys.readouterr().out

    @pytest.mark.parametrize("content", ["- 1\n- 2\n", "42\n", "options: [1, 2]\n"])
    def test_config_not_a_mapping(self, tmp_path, input_file, content):
        """A config file without an options mapping is a usage error."""
        config = tmp_path / "config.yaml"
        config.write_text(content)

        with pytest.raises(SystemExit):
            main(["layout", str(input_file), "--config", str(config)])
