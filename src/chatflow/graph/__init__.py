"""Graph definitions: models, routing, validation and loading."""

from chatflow.graph.loader import GraphLoader
from chatflow.graph.models import Edge, GraphDefinition, GraphSettings, Node
from chatflow.graph.router import next_node, outgoing_edges
from chatflow.graph.validator import GraphIssue, ensure_valid, validate_graph

__all__ = [
    "Edge",
    "GraphDefinition",
    "GraphIssue",
    "GraphLoader",
    "GraphSettings",
    "Node",
    "ensure_valid",
    "next_node",
    "outgoing_edges",
    "validate_graph",
]
