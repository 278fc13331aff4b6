"""Tests for the nodeflow CLI."""

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from nodeflow.cli import app

runner = CliRunner()

EXAMPLE_GRAPH = Path(__file__).parents[2] / "examples" / "word_lengths" / "graph.yaml"


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    # The CLI points the root handler at the runner's captured stderr
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def _write_graph(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "graph.yaml"
    path.write_text(body)
    return path


class TestCLIBasics:
    """Version and help."""

    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "nodeflow version" in result.stdout

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "run" in result.stdout
        assert "operations" in result.stdout


class TestRunCommand:
    """Running graph documents."""

    def test_runs_example_graph(self) -> None:
        result = runner.invoke(app, ["run", str(EXAMPLE_GRAPH), "--param", "sentence=the quick brown fox"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["succeeded"] is True
        assert payload["outputs"] == {"word_count": 4}

    def test_dry_run_only_validates(self) -> None:
        result = runner.invoke(app, ["run", str(EXAMPLE_GRAPH), "--dry-run"])

        assert result.exit_code == 0
        assert "Graph is valid: 5 nodes, 4 connections" in result.stdout
        assert "Run parameters: sentence" in result.stdout

    def test_missing_graph_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["run", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "Graph document not found" in result.output

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = _write_graph(tmp_path, "nodes: [unclosed\n")

        result = runner.invoke(app, ["run", str(path)])

        assert result.exit_code == 1
        assert "YAML syntax error" in result.output

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "graph.json"
        path.write_text('{"nodes": [{"id": "a",}]')

        result = runner.invoke(app, ["run", str(path)])

        assert result.exit_code == 1
        assert "JSON syntax error" in result.output
        assert isinstance(result.exception, SystemExit)

    def test_malformed_document(self, tmp_path: Path) -> None:
        path = _write_graph(tmp_path, "nodes:\n  - id: a\n")

        result = runner.invoke(app, ["run", str(path)])

        assert result.exit_code == 1
        assert "Graph document errors:" in result.output
        assert "nodes.0.type" in result.output

    def test_unknown_operation(self, tmp_path: Path) -> None:
        path = _write_graph(tmp_path, "nodes:\n  - id: a\n    type: strat\n")

        result = runner.invoke(app, ["run", str(path)])

        assert result.exit_code == 1
        assert "Graph error: Unknown operation type 'strat'. Did you mean: start?" in result.output

    def test_failed_node_exits_nonzero(self, tmp_path: Path) -> None:
        path = _write_graph(
            tmp_path,
            "nodes:\n"
            "  - {id: start, type: start}\n"
            "  - id: pick\n    type: first\n    input_map: {collection: '[]'}\n"
            "connections:\n  - {source: start, target: pick}\n",
        )

        result = runner.invoke(app, ["run", str(path)])

        assert result.exit_code == 1
        assert '"succeeded": false' in result.stdout
        assert "Node 'first' failed: Collection is empty" in result.stdout

    def test_usage_error_reported(self, tmp_path: Path) -> None:
        path = _write_graph(
            tmp_path,
            "nodes:\n"
            "  - {id: start, type: start}\n"
            "  - id: loop\n    type: repeat\n    input_map: {times: '-2'}\n"
            "connections:\n  - {source: start, target: loop}\n",
        )

        result = runner.invoke(app, ["run", str(path)])

        assert result.exit_code == 1
        assert "Error during graph run: times must be non-negative" in result.output

    def test_param_without_value_rejected(self) -> None:
        result = runner.invoke(app, ["run", str(EXAMPLE_GRAPH), "--param", "sentence"])

        assert result.exit_code == 1
        assert "--param expects key=value" in result.output

    def test_missing_settings_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["run", str(EXAMPLE_GRAPH), "--settings", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1
        assert "Settings file not found" in result.output

    def test_invalid_settings(self, tmp_path: Path) -> None:
        settings = tmp_path / "settings.yaml"
        settings.write_text("logging:\n  level: LOUD\n")

        result = runner.invoke(app, ["run", str(EXAMPLE_GRAPH), "--settings", str(settings)])

        assert result.exit_code == 1
        assert "Configuration errors:" in result.output


class TestOperationsCommand:
    """Listing registered operations."""

    def test_lists_builtins_with_ports(self) -> None:
        result = runner.invoke(app, ["operations"])

        assert result.exit_code == 0
        line = next(line for line in result.stdout.splitlines() if line.startswith("for_each_string"))
        assert "[ports: item, done]" in line

    def test_category_filter(self) -> None:
        result = runner.invoke(app, ["operations", "--category", "iteration"])

        assert result.exit_code == 0
        tags = {line.split()[0] for line in result.stdout.splitlines() if line.strip()}
        assert "repeat" in tags
        assert "count" not in tags

    def test_plugins_from_settings(self, tmp_path: Path) -> None:
        settings = tmp_path / "settings.yaml"
        settings.write_text("registry:\n  include_builtins: false\n  plugins:\n    - tests.plugins.sample_plugin\n")

        result = runner.invoke(app, ["operations", "--settings", str(settings)])

        assert result.exit_code == 0
        assert result.stdout.split()[0] == "reverse_text"
