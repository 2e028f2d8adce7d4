from chatflow.graph.models import MessageData, Node
from chatflow.nodes.base import NodeContext, NodeResult, advance, step


class MessageProcessor:
    """Send interpolated ``content`` and move on."""

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        content = ctx.render(node.parse_data(MessageData).content)
        if not content:
            return advance(ctx, node, step(node, content=""))

        delivered = await ctx.send(content)
        log = step(node, content=content, delivered=delivered)
        return advance(ctx, node, log, messages_sent=1)
