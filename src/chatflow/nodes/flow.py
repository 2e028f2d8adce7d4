"""Structural nodes: start, end, goto and unknown types."""

import logging

from chatflow.graph.models import GotoData, Node
from chatflow.nodes.base import NodeContext, NodeResult, Outcome, advance, step

logger = logging.getLogger(__name__)


class StartProcessor:
    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        return advance(ctx, node, step(node))


class EndProcessor:
    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        return NodeResult(outcome=Outcome.COMPLETE, log=step(node, completed=True))


class GotoProcessor:
    """Jump to ``target_node_id`` regardless of edges."""

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        target = node.parse_data(GotoData).target_node_id
        if not target:
            return NodeResult(
                outcome=Outcome.CONTINUE,
                log=step(node, error="Goto node missing target_node_id"),
            )
        if ctx.graph.get_node(target) is None:
            return NodeResult(
                outcome=Outcome.CONTINUE,
                log=step(node, goto_target=target, error=f"Unknown goto target '{target}'"),
            )
        return NodeResult(
            outcome=Outcome.CONTINUE, log=step(node, goto_target=target), next_node_id=target
        )


class PassThroughProcessor:
    """Unknown node types: no side effect, follow the default edge."""

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        logger.warning(
            f"Unknown node type '{node.type}' at node {node.id}; passing through",
            extra={"execution_id": ctx.execution.id, "node_id": node.id},
        )
        return advance(ctx, node, step(node, skipped=True))
