"""Edge routing between nodes."""

from collections.abc import Sequence

from chatflow.graph.models import Edge


def outgoing_edges(edges: Sequence[Edge], source_id: str) -> list[Edge]:
    """All edges leaving ``source_id``, in definition order."""
    return [edge for edge in edges if edge.source == source_id]


def next_node(edges: Sequence[Edge], source_id: str, branch: str | None = None) -> str | None:
    """Find the node to visit after ``source_id``.

    Resolution order:
        1. the edge whose ``source_handle`` equals ``branch`` (when given)
        2. the first edge without a ``source_handle`` (the default edge)
        3. ``None``: end of flow

    Examples:
        >>> edges = [Edge(source="m", target="a", source_handle="a"),
        ...          Edge(source="m", target="fallback")]
        >>> next_node(edges, "m", "a")
        'a'
        >>> next_node(edges, "m", "zzz")
        'fallback'
    """
    candidates = outgoing_edges(edges, source_id)

    if branch is not None:
        for edge in candidates:
            if edge.source_handle == branch:
                return edge.target

    for edge in candidates:
        if edge.source_handle is None:
            return edge.target

    return None
