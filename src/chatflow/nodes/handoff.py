import logging

from chatflow.core.constants import DEFAULT_HANDOFF_MESSAGE, DEFAULT_HANDOFF_REASON
from chatflow.core.errors import GatewayError
from chatflow.graph.models import HandoffData, Node
from chatflow.nodes.base import NodeContext, NodeResult, Outcome, step

logger = logging.getLogger(__name__)


class HandoffProcessor:
    """Tell the contact a human takes over and flag the conversation.

    The execution ends in ``handoff`` even when flagging fails; the failure
    is kept in the log entry. The node's uninterpolated message, when set,
    is recorded as the handoff reason.
    """

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        data = node.parse_data(HandoffData)
        message = ctx.render(data.message or DEFAULT_HANDOFF_MESSAGE)
        delivered = await ctx.send(message)
        details = {"handoff_message": message, "delivered": delivered}

        try:
            await ctx.gateway.flag_needs_attention(ctx.execution.conversation_id)
        except GatewayError as e:
            logger.warning(f"Could not flag conversation for handoff: {e}")
            details["error"] = e.message

        return NodeResult(
            outcome=Outcome.HANDOFF,
            log=step(node, **details),
            messages_sent=1,
            handoff_reason=data.message or DEFAULT_HANDOFF_REASON,
        )
