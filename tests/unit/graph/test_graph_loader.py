"""Tests for loading graph definition files."""

import json
from pathlib import Path

import pytest

from chatflow.core.errors import ConfigError
from chatflow.graph.loader import GraphLoader
from chatflow.graph.validator import validate_graph

SAMPLE_GRAPHS = Path(__file__).resolve().parents[3] / "examples" / "graphs"

YAML_GRAPH = """
id: greet
companyId: acme
version: 2
nodes:
  - id: start
    type: start
  - id: hello
    type: message
    data:
      content: "Olá {{nome}}"
edges:
  - source: start
    target: hello
"""


class TestGraphLoaderLoad:
    def test_load_yaml(self, tmp_path):
        path = tmp_path / "greet.yaml"
        path.write_text(YAML_GRAPH, encoding="utf-8")

        graph = GraphLoader.load(path)

        assert graph.id == "greet"
        assert graph.version == 2
        assert graph.get_node("hello").data["content"] == "Olá {{nome}}"

    def test_load_json_export(self, tmp_path):
        path = tmp_path / "greet.json"
        path.write_text(
            json.dumps(
                {
                    "id": "greet",
                    "companyId": "acme",
                    "nodes": [{"id": "s", "type": "start"}],
                    "edges": [],
                }
            ),
            encoding="utf-8",
        )

        assert GraphLoader.load(str(path)).company_id == "acme"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            GraphLoader.load(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("id: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigError, match="not valid YAML"):
            GraphLoader.load(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="mapping"):
            GraphLoader.load(path)

    def test_invalid_definition(self, tmp_path):
        path = tmp_path / "incomplete.yaml"
        path.write_text("name: no id here\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid graph definition"):
            GraphLoader.load(path)


class TestGraphLoaderDirectory:
    def test_loads_graph_files_sorted(self, tmp_path):
        (tmp_path / "b.yaml").write_text(YAML_GRAPH.replace("greet", "b"), encoding="utf-8")
        (tmp_path / "a.yml").write_text(YAML_GRAPH.replace("greet", "a"), encoding="utf-8")
        (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

        graphs = GraphLoader.load_directory(tmp_path)

        assert [graph.id for graph in graphs] == ["a", "b"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ConfigError):
            GraphLoader.load_directory(tmp_path / "missing")


class TestSampleGraphs:
    def test_sample_graphs_are_valid(self):
        """
        GIVEN the graphs shipped in examples/graphs
        WHEN they are loaded and validated
        THEN none of them reports an issue
        """
        graphs = GraphLoader.load_directory(SAMPLE_GRAPHS)

        assert graphs
        for graph in graphs:
            assert validate_graph(graph) == [], graph.id
