"""Feedback nodes: rating scale and NPS survey.

Both are two-phase like questions: the prompt is sent and the execution
waits, then the reply is parsed as a score. Replies are read like the
contact typed them, so "4 estrelas" scores 4.
"""

import logging
import re

from chatflow.core.constants import DEFAULT_NPS_QUESTION, DEFAULT_RATING_QUESTION
from chatflow.core.errors import GatewayError
from chatflow.core.interpolation import interpolate
from chatflow.graph.models import Node, NpsData, RatingData
from chatflow.nodes.base import NodeContext, NodeResult, Outcome, advance, step, wait

logger = logging.getLogger(__name__)

DEFAULT_RATING_VARIABLE = "rating"
DEFAULT_NPS_VARIABLE = "nps_score"
NPS_CATEGORY_VARIABLE = "nps_category"

RATING_EMOJIS = ("😠", "😟", "😐", "🙂", "😊")
NPS_SCALE = "0️⃣ 1️⃣ 2️⃣ 3️⃣ 4️⃣ 5️⃣ 6️⃣ 7️⃣ 8️⃣ 9️⃣ 🔟"
HANDOFF_ACTION = "handoff"

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def leading_int(raw_input: str) -> int | None:
    """The integer the reply starts with, if any.

    Examples:
        >>> leading_int(" 4 estrelas")
        4
        >>> leading_int("nota 4") is None
        True
    """
    match = _LEADING_INT_RE.match(raw_input)
    return int(match.group(1)) if match else None


def render_rating_prompt(question: str, max_rating: int, rating_type: str) -> str:
    """Question, a blank line, then the scale in the node's style."""
    if rating_type == "numbers":
        scale = f"Digite um número de 1 a {max_rating}"
    elif rating_type == "emoji":
        scale = "\n".join(
            f"{index} - {emoji}"
            for index, emoji in enumerate(RATING_EMOJIS[:max_rating], start=1)
        )
    elif rating_type == "stars":
        scale = "\n".join(f"{index} - {'⭐' * index}" for index in range(1, max_rating + 1))
    else:
        return question
    return f"{question}\n\n{scale}"


def nps_category(score: int) -> str:
    """detractor (0-6), passive (7-8) or promoter (9-10)."""
    if score <= 6:
        return "detractor"
    if score <= 8:
        return "passive"
    return "promoter"


class RatingProcessor:
    """Rate from 1 to ``max_rating``.

    A valid score is stored under ``variable_name`` (default ``rating``) as
    an int and routed by ``"low"`` when at or under ``low_rating_threshold``,
    else by ``"high"``. A low score with ``low_rating_action: handoff`` hands
    the conversation to a human instead.
    """

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        data = node.parse_data(RatingData)

        if ctx.user_input is None:
            question = ctx.render(data.question or DEFAULT_RATING_QUESTION)
            prompt = render_rating_prompt(question, data.max_rating, data.rating_type)
            delivered = await ctx.send(prompt)
            return wait(node, step(node, question=question, delivered=delivered), messages_sent=1)

        rating = leading_int(ctx.user_input)
        if rating is None or not 1 <= rating <= data.max_rating:
            delivered = await ctx.send(f"Por favor, digite um número de 1 a {data.max_rating}")
            log = step(node, invalid_rating=ctx.user_input, delivered=delivered)
            return wait(node, log, messages_sent=1)

        variables = {**ctx.variables, data.variable_name or DEFAULT_RATING_VARIABLE: rating}
        low = data.low_rating_threshold is not None and rating <= data.low_rating_threshold

        if low and data.low_rating_action == HANDOFF_ACTION:
            details = {"rating": rating, "low": True}
            try:
                await ctx.gateway.flag_needs_attention(ctx.execution.conversation_id)
            except GatewayError as e:
                logger.warning(f"Could not flag conversation after low rating: {e}")
                details["error"] = e.message
            return NodeResult(
                outcome=Outcome.HANDOFF,
                log=step(node, **details),
                variables=variables,
                handoff_reason=f"Low rating: {rating}/{data.max_rating}",
            )

        log = step(node, rating=rating, low=low)
        return advance(ctx, node, log, branch="low" if low else "high", variables=variables)


class NpsProcessor:
    """Net Promoter Score from 0 to 10.

    Stores the score under ``variable_name`` (default ``nps_score``) and its
    category under ``nps_category``, sends the category's follow-up message
    when one is set, then routes by the category.
    """

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        data = node.parse_data(NpsData)

        if ctx.user_input is None:
            question = ctx.render(data.question or DEFAULT_NPS_QUESTION)
            delivered = await ctx.send(f"{question}\n\n{NPS_SCALE}")
            return wait(node, step(node, question=question, delivered=delivered), messages_sent=1)

        score = leading_int(ctx.user_input)
        if score is None or not 0 <= score <= 10:
            delivered = await ctx.send("Por favor, digite um número de 0 a 10")
            log = step(node, invalid_score=ctx.user_input, delivered=delivered)
            return wait(node, log, messages_sent=1)

        category = nps_category(score)
        variables = {
            **ctx.variables,
            data.variable_name or DEFAULT_NPS_VARIABLE: score,
            NPS_CATEGORY_VARIABLE: category,
        }
        follow_up = {
            "detractor": data.follow_up_detractor,
            "passive": data.follow_up_passive,
            "promoter": data.follow_up_promoter,
        }[category]

        sent = 0
        details = {"nps_score": score, "nps_category": category}
        if follow_up:
            # rendered after the score is stored so it may quote it
            text = interpolate(follow_up, variables, ctx.execution.contact)
            details["delivered"] = await ctx.send(text)
            sent = 1

        return advance(
            ctx, node, step(node, **details), branch=category, variables=variables,
            messages_sent=sent,
        )
