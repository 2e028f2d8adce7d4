"""Branching nodes: condition, switch, random, split and A/B test."""

import hashlib
from collections.abc import Mapping, Sequence
from typing import Any

from chatflow.core.expression import evaluate_condition
from chatflow.core.interpolation import to_text
from chatflow.graph.models import (
    AbTestData,
    AbTestVariant,
    ConditionData,
    Node,
    SplitData,
    SplitPath,
    SwitchCase,
    SwitchData,
)
from chatflow.graph.router import outgoing_edges
from chatflow.nodes.base import NodeContext, NodeResult, Outcome, advance, step

DEFAULT_CASE_HANDLE = "default"
PERCENTAGE_SPLIT = "percentage"
AB_TEST_VARIABLE_PREFIX = "ab_test_"


class ConditionProcessor:
    """Route by ``"true"``/``"false"``; unparseable conditions are false."""

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        condition = node.parse_data(ConditionData).condition
        result = evaluate_condition(condition, ctx.scope())
        branch = "true" if result else "false"
        return advance(ctx, node, step(node, condition=condition, result=result), branch=branch)


def select_case(
    cases: Sequence[SwitchCase], variables: Mapping[str, Any], variable: str | None
) -> SwitchCase | None:
    """The first case whose ``value`` equals the variable rendered as text."""
    if not variable:
        return None
    lookup = {str(key).lower(): value for key, value in variables.items()}
    if variable.lower() not in lookup:
        return None
    current = to_text(lookup[variable.lower()])
    for case in cases:
        if case.value == current:
            return case
    return None


class SwitchProcessor:
    """Route by the matching case id, else the ``default`` handle, else the default edge."""

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        data = node.parse_data(SwitchData)
        case = select_case(data.cases, ctx.scope(), data.variable)
        branch = case.id if case is not None else DEFAULT_CASE_HANDLE
        log = step(node, variable=data.variable, case=case.id if case is not None else None)
        return advance(ctx, node, log, branch=branch)


class RandomProcessor:
    """Pick one outgoing edge uniformly with the context's RNG."""

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        edges = outgoing_edges(ctx.graph.edges, node.id)
        if not edges:
            return NodeResult(outcome=Outcome.CONTINUE, log=step(node, random_choice=None))
        edge = ctx.rng.choice(edges)
        return NodeResult(
            outcome=Outcome.CONTINUE,
            log=step(node, random_choice=edge.source_handle or edge.target),
            next_node_id=edge.target,
        )


def choose_split_path(paths: Sequence[SplitPath], roll: float) -> SplitPath | None:
    """The path whose cumulative percentage band contains ``roll`` (0 <= roll < 100).

    Bands follow definition order; when the percentages add up to less than
    100 a roll past the last band selects nothing.

    Examples:
        >>> paths = [SplitPath(id="a", percentage=30), SplitPath(id="b", percentage=70)]
        >>> choose_split_path(paths, 29.9).id
        'a'
        >>> choose_split_path(paths, 30.0).id
        'b'
    """
    accumulated = 0.0
    for path in paths:
        accumulated += path.percentage
        if roll < accumulated:
            return path
    return None


class SplitProcessor:
    """Route a share of contacts down each path, else along the default edge."""

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        data = node.parse_data(SplitData)
        path = None
        if data.split_type == PERCENTAGE_SPLIT:
            path = choose_split_path(data.paths, ctx.rng.random() * 100)
        if path is None:
            return advance(ctx, node, step(node, split_path=None))
        log = step(node, split_path=path.id, split_percentage=path.percentage)
        return advance(ctx, node, log, branch=path.id)


def assign_variant(
    variants: Sequence[AbTestVariant], contact_id: str, test_name: str
) -> AbTestVariant | None:
    """Weighted variant for a contact, stable across executions.

    The contact and test name are hashed to a point in ``[0, total weight)``,
    so the same contact always lands in the same variant while the weights
    are unchanged.
    """
    if not variants:
        return None
    digest = hashlib.sha256(f"{test_name}:{contact_id}".encode()).digest()
    point = int.from_bytes(digest[:8], "big") / 2**64 * sum(v.weight for v in variants)
    accumulated = 0.0
    for variant in variants:
        accumulated += variant.weight
        if point < accumulated:
            return variant
    return variants[-1]


class AbTestProcessor:
    """Assign the contact to a weighted variant and route by its id.

    The assignment is stored as ``ab_test_<test name>``; a stored id naming
    one of the node's variants is reused as is.
    """

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        data = node.parse_data(AbTestData)
        test_name = data.test_name or node.id
        variable = f"{AB_TEST_VARIABLE_PREFIX}{test_name}"

        stored = ctx.variables.get(variable)
        variant = next((v for v in data.variants if v.id == to_text(stored)), None)
        sticky = variant is not None
        if variant is None:
            variant = assign_variant(data.variants, ctx.execution.contact.id, test_name)

        if variant is None:
            return advance(ctx, node, step(node, ab_test=test_name, variant=None))

        variables = {**ctx.variables, variable: variant.id}
        log = step(node, ab_test=test_name, variant=variant.id, sticky=sticky)
        return advance(ctx, node, log, branch=variant.id, variables=variables)
