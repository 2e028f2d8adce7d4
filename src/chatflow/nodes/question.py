"""Question nodes: prompt, then validate and store the answer."""

from chatflow.core.constants import DEFAULT_QUESTION_FALLBACK
from chatflow.graph.models import Node, QuestionData
from chatflow.nodes.base import NodeContext, NodeResult, advance, step, wait
from chatflow.validation import validate

DEFAULT_ANSWER_VARIABLE = "answer"


def check_answer(validation: str | None, raw_input: str) -> bool:
    """Whether ``raw_input`` satisfies the node's validation kind."""
    return validate(validation, raw_input)


class QuestionProcessor:
    """Two-phase question.

    Without input the interpolated question is sent and the execution waits
    on this node. With input the answer is validated; a rejected answer
    re-sends the fallback message and keeps waiting, an accepted one is
    stored verbatim under ``variable_name`` (default ``answer``).
    """

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        data = node.parse_data(QuestionData)

        if ctx.user_input is None:
            question = ctx.render(data.question)
            delivered = await ctx.send(question)
            return wait(node, step(node, question=question, delivered=delivered), messages_sent=1)

        answer = ctx.user_input
        if not check_answer(data.validation, answer):
            fallback = ctx.graph.settings.default_fallback_message or DEFAULT_QUESTION_FALLBACK
            delivered = await ctx.send(fallback)
            log = step(
                node,
                answer=answer,
                validation=data.validation,
                validation_failed=True,
                delivered=delivered,
            )
            return wait(node, log, messages_sent=1)

        variables = {**ctx.variables, data.variable_name or DEFAULT_ANSWER_VARIABLE: answer}
        return advance(ctx, node, step(node, answer=answer), variables=variables)
