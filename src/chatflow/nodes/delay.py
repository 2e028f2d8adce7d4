from chatflow.graph.models import DelayData, Node
from chatflow.nodes.base import NodeContext, NodeResult, advance, step


class DelayProcessor:
    """Pause for ``duration`` ms, bounded by the engine's ``max_delay_ms``."""

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        requested = node.parse_data(DelayData).duration
        delay = ctx.capped_delay(requested)
        await ctx.gateway.pause(delay)
        return advance(ctx, node, step(node, delay=delay, requested_delay=requested))
