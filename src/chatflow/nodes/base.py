"""Processor protocol, per-node context and results."""

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from chatflow.core.interpolation import build_scope, interpolate
from chatflow.core.state import Execution, StepRecord
from chatflow.gateway.gateway import SideEffectGateway
from chatflow.graph.models import GraphDefinition, Node
from chatflow.graph.router import next_node


class Outcome(str, Enum):
    """What the engine does after a node ran."""

    CONTINUE = "continue"
    WAIT = "wait"
    COMPLETE = "complete"
    HANDOFF = "handoff"


@dataclass
class NodeContext:
    """Everything a processor may read or call while handling one node.

    ``variables`` is the turn's working copy; processors never mutate it and
    return an updated copy in NodeResult instead. ``user_input`` is only set
    for the node allowed to consume the turn's inbound message.
    """

    graph: GraphDefinition
    execution: Execution
    variables: dict[str, Any]
    gateway: SideEffectGateway
    user_input: str | None = None
    max_delay_ms: int = 0
    rng: random.Random = field(default_factory=random.Random)

    def render(self, template: str | None) -> str:
        return interpolate(template, self.variables, self.execution.contact)

    def scope(self) -> dict[str, Any]:
        """Variables plus contact fields, as seen by conditions."""
        return build_scope(self.variables, self.execution.contact)

    def route(self, node_id: str, branch: str | None = None) -> str | None:
        return next_node(self.graph.edges, node_id, branch)

    def capped_delay(self, milliseconds: int) -> int:
        return max(0, min(milliseconds, self.max_delay_ms))

    async def send(self, text: str) -> bool:
        """Send to the contact after the graph's typing delay."""
        await self.gateway.pause(self.capped_delay(self.graph.settings.typing_delay_ms))
        return await self.gateway.send_message(self.execution.destination, text)


@dataclass(frozen=True)
class NodeResult:
    """Outcome of processing one node.

    ``variables`` is None when the node left them unchanged.
    """

    outcome: Outcome
    log: StepRecord
    next_node_id: str | None = None
    variables: dict[str, Any] | None = None
    messages_sent: int = 0
    handoff_reason: str | None = None

    @property
    def wait_for_input(self) -> bool:
        return self.outcome is Outcome.WAIT


class NodeProcessor(Protocol):
    """Protocol for node type handlers."""

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        ...


def step(node: Node, **details: Any) -> StepRecord:
    """Build the execution log entry for a visited node."""
    return StepRecord(node_id=node.id, node_type=node.type, **details)


def advance(
    ctx: NodeContext,
    node: Node,
    log: StepRecord,
    *,
    branch: str | None = None,
    variables: dict[str, Any] | None = None,
    messages_sent: int = 0,
) -> NodeResult:
    """Continue along the edge selected by ``branch`` (or the default edge)."""
    return NodeResult(
        outcome=Outcome.CONTINUE,
        log=log,
        next_node_id=ctx.route(node.id, branch),
        variables=variables,
        messages_sent=messages_sent,
    )


def wait(node: Node, log: StepRecord, messages_sent: int = 0) -> NodeResult:
    """Stay on ``node`` until the next inbound message."""
    return NodeResult(
        outcome=Outcome.WAIT, log=log, next_node_id=node.id, messages_sent=messages_sent
    )
