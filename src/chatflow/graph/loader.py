"""Loader for graph definition files (YAML or JSON)."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from chatflow.core.errors import ConfigError
from chatflow.graph.models import GraphDefinition

GRAPH_SUFFIXES = (".yaml", ".yml", ".json")


class GraphLoader:
    """Load GraphDefinition snapshots from files."""

    @staticmethod
    def load(path: Path | str) -> GraphDefinition:
        """Load a single graph definition.

        JSON is a subset of YAML, so exports of the authoring UI load as-is.

        Args:
            path: Path to a .yaml/.yml/.json file

        Returns:
            Parsed GraphDefinition

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigError: If the file is not a valid definition
        """
        graph_path = Path(path)
        if not graph_path.exists():
            raise FileNotFoundError(f"Graph file not found: {graph_path}")

        with open(graph_path, encoding="utf-8") as f:
            try:
                data: Any = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(
                    f"Graph file is not valid YAML/JSON: {e}", path=str(graph_path)
                ) from e

        if not isinstance(data, dict):
            raise ConfigError("Graph file must contain a mapping", path=str(graph_path))

        try:
            return GraphDefinition.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid graph definition: {e}", path=str(graph_path)) from e

    @staticmethod
    def load_directory(path: Path | str) -> list[GraphDefinition]:
        """Load every graph file of a directory, sorted by file name."""
        directory = Path(path)
        if not directory.is_dir():
            raise ConfigError(f"Graph directory not found: {directory}", path=str(directory))

        files = sorted(p for p in directory.iterdir() if p.suffix in GRAPH_SUFFIXES)
        return [GraphLoader.load(file) for file in files]
