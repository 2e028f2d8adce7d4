"""Static validation of graph definitions.

Runs before a graph is published (CLI ``chatflow validate``) so authoring
mistakes surface to the author instead of at conversation time.

Validates:
- Unique node IDs
- Exactly one start node
- All edge sources and targets exist
- At most one edge per (source, handle) pair
- Menus have options, conditions parse, goto targets exist
- Split percentages add up to at most 100, A/B tests have variants
- All nodes are reachable from the start node
- Cycles contain at least one node that waits for input
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Literal

from pydantic import ValidationError as PydanticValidationError

from chatflow.core.constants import INPUT_NODE_TYPES, NodeType
from chatflow.core.errors import ExpressionError, InvalidGraphError
from chatflow.core.expression import parse_condition
from chatflow.graph.models import (
    AbTestData,
    ConditionData,
    GotoData,
    GraphDefinition,
    MenuData,
    QuestionData,
    SplitData,
)


Severity = Literal["error", "warning"]


@dataclass(frozen=True)
class GraphIssue:
    """A single finding about a graph."""

    severity: Severity
    code: str
    message: str
    node_id: str | None = None

    def __str__(self) -> str:
        location = f" [{self.node_id}]" if self.node_id else ""
        return f"{self.severity.upper()} {self.code}{location}: {self.message}"


def validate_graph(graph: GraphDefinition) -> list[GraphIssue]:
    """Collect every structural problem of a graph.

    Args:
        graph: Definition to check

    Returns:
        Issues ordered by discovery; empty when the graph is clean.
    """
    issues: list[GraphIssue] = []
    issues.extend(_check_nodes(graph))
    issues.extend(_check_edges(graph))
    issues.extend(_check_payloads(graph))
    issues.extend(_check_reachability(graph))
    issues.extend(_check_cycles(graph))
    return issues


def ensure_valid(graph: GraphDefinition) -> None:
    """Raise when a graph has error-level issues.

    Raises:
        InvalidGraphError: Listing the errors found
    """
    errors = [issue for issue in validate_graph(graph) if issue.severity == "error"]
    if errors:
        raise InvalidGraphError(
            f"Graph '{graph.id}' has {len(errors)} error(s): "
            + "; ".join(str(issue) for issue in errors),
            graph_id=graph.id,
            version=graph.version,
        )


def _check_nodes(graph: GraphDefinition) -> list[GraphIssue]:
    issues: list[GraphIssue] = []

    seen: set[str] = set()
    for node in graph.nodes:
        if node.id in seen:
            issues.append(
                GraphIssue("error", "duplicate_node", f"Duplicate node id '{node.id}'", node.id)
            )
        seen.add(node.id)
        if not node.is_known_type:
            issues.append(
                GraphIssue(
                    "warning",
                    "unknown_type",
                    f"Unknown node type '{node.type}' will be passed through",
                    node.id,
                )
            )

    starts = [node for node in graph.nodes if node.type == NodeType.START.value]
    if not starts:
        issues.append(GraphIssue("error", "missing_start", "Graph has no start node"))
    elif len(starts) > 1:
        issues.append(
            GraphIssue(
                "error",
                "multiple_starts",
                f"Graph has {len(starts)} start nodes: {[n.id for n in starts]}",
            )
        )
    return issues


def _check_edges(graph: GraphDefinition) -> list[GraphIssue]:
    issues: list[GraphIssue] = []
    node_ids = set(graph.node_index)
    pairs: set[tuple[str, str | None]] = set()

    for edge in graph.edges:
        for end, node_id in (("source", edge.source), ("target", edge.target)):
            if node_id not in node_ids:
                issues.append(
                    GraphIssue(
                        "error",
                        "dangling_edge",
                        f"Edge {edge.id or '?'} {end} '{node_id}' does not exist",
                        edge.source,
                    )
                )
        pair = (edge.source, edge.source_handle)
        if pair in pairs:
            handle = edge.source_handle or "default"
            issues.append(
                GraphIssue(
                    "warning",
                    "duplicate_edge",
                    f"More than one '{handle}' edge leaves '{edge.source}'; "
                    "only the first is used",
                    edge.source,
                )
            )
        pairs.add(pair)
    return issues


def _check_payloads(graph: GraphDefinition) -> list[GraphIssue]:
    issues: list[GraphIssue] = []

    for node in graph.nodes:
        try:
            if node.type == NodeType.MENU.value:
                menu = node.parse_data(MenuData)
                if not menu.options:
                    issues.append(
                        GraphIssue("error", "empty_menu", "Menu has no options", node.id)
                    )
            elif node.type == NodeType.CONDITION.value:
                condition = node.parse_data(ConditionData).condition
                try:
                    parse_condition(condition)
                except ExpressionError as e:
                    issues.append(
                        GraphIssue(
                            "error", "bad_condition", f"Condition does not parse: {e}", node.id
                        )
                    )
            elif node.type == NodeType.GOTO.value:
                target = node.parse_data(GotoData).target_node_id
                if not target or graph.get_node(target) is None:
                    issues.append(
                        GraphIssue(
                            "error", "bad_goto", f"Goto target '{target}' does not exist", node.id
                        )
                    )
            elif node.type == NodeType.QUESTION.value:
                if not node.parse_data(QuestionData).variable_name:
                    issues.append(
                        GraphIssue(
                            "warning",
                            "unnamed_answer",
                            "Question has no variableName; answer is stored as 'answer'",
                            node.id,
                        )
                    )
            elif node.type == NodeType.SPLIT.value:
                total = sum(path.percentage for path in node.parse_data(SplitData).paths)
                if total > 100:
                    issues.append(
                        GraphIssue(
                            "warning",
                            "split_over_100",
                            f"Split percentages add up to {total:g}; "
                            "paths past 100 are never taken",
                            node.id,
                        )
                    )
            elif node.type == NodeType.AB_TEST.value:
                if not node.parse_data(AbTestData).variants:
                    issues.append(
                        GraphIssue(
                            "warning",
                            "empty_ab_test",
                            "A/B test has no variants; contacts follow the default edge",
                            node.id,
                        )
                    )
        except PydanticValidationError as e:
            issues.append(
                GraphIssue(
                    "error",
                    "bad_payload",
                    f"Node data is malformed: {e.error_count()} error(s)",
                    node.id,
                )
            )
    return issues


def _successors(graph: GraphDefinition) -> dict[str, list[str]]:
    successors: dict[str, list[str]] = defaultdict(list)
    for edge in graph.edges:
        successors[edge.source].append(edge.target)
    for node in graph.nodes:
        if node.type == NodeType.GOTO.value:
            target = node.data.get("targetNodeId") or node.data.get("target_node_id")
            if target:
                successors[node.id].append(str(target))
    return successors


def _check_reachability(graph: GraphDefinition) -> list[GraphIssue]:
    start = graph.start_node()
    if start is None:
        return []

    successors = _successors(graph)
    reachable = {start.id}
    stack = [start.id]
    while stack:
        for target in successors.get(stack.pop(), []):
            if target not in reachable:
                reachable.add(target)
                stack.append(target)

    return [
        GraphIssue("warning", "unreachable", "Node is unreachable from start", node.id)
        for node in graph.nodes
        if node.id not in reachable
    ]


def _check_cycles(graph: GraphDefinition) -> list[GraphIssue]:
    """Warn about cycles that never stop for input (they hit the step limit)."""
    issues: list[GraphIssue] = []
    successors = _successors(graph)

    for component in _strongly_connected(list(graph.node_index), successors):
        node_id = component[0]
        is_cycle = len(component) > 1 or node_id in successors.get(node_id, [])
        if not is_cycle:
            continue
        waits = any(
            (node := graph.get_node(member)) is not None and node.type in INPUT_NODE_TYPES
            for member in component
        )
        if not waits:
            issues.append(
                GraphIssue(
                    "warning",
                    "busy_cycle",
                    f"Cycle {sorted(component)} has no node that waits for input",
                    node_id,
                )
            )
    return issues


def _strongly_connected(nodes: list[str], successors: dict[str, list[str]]) -> list[list[str]]:
    """Kosaraju's algorithm, iterative."""
    order: list[str] = []
    visited: set[str] = set()
    for root in nodes:
        if root in visited:
            continue
        visited.add(root)
        stack = [(root, iter(successors.get(root, [])))]
        while stack:
            current, children = stack[-1]
            for child in children:
                if child not in visited:
                    visited.add(child)
                    stack.append((child, iter(successors.get(child, []))))
                    break
            else:
                order.append(current)
                stack.pop()

    predecessors: dict[str, list[str]] = defaultdict(list)
    for source, targets in successors.items():
        for target in targets:
            predecessors[target].append(source)

    components: list[list[str]] = []
    assigned: set[str] = set()
    for root in reversed(order):
        if root in assigned:
            continue
        component = []
        stack = [root]
        assigned.add(root)
        while stack:
            current = stack.pop()
            component.append(current)
            for parent in predecessors.get(current, []):
                if parent not in assigned and parent in visited:
                    assigned.add(parent)
                    stack.append(parent)
        components.append(component)
    return components
