"""Execution state machine: one turn of a conversation.

A turn loads the execution and its pinned graph snapshot, walks nodes until
one waits for input, ends the flow, or the step bound is hit, and then
writes the new execution value in a single revision-checked save.
"""

import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from chatflow.core.constants import (
    INPUT_NODE_TYPES,
    MAX_STEPS,
    ExecutionStatus,
    FailureReason,
)
from chatflow.core.errors import (
    ExecutionNotActiveError,
    ExecutionNotFoundError,
    GraphNotFoundError,
    InvalidGraphError,
)
from chatflow.core.state import Execution, StepRecord, utcnow
from chatflow.gateway.gateway import SideEffectGateway
from chatflow.graph.models import GraphDefinition, Node
from chatflow.nodes.base import NodeContext, Outcome
from chatflow.nodes.registry import ProcessorRegistry
from chatflow.observability.logging import ContextLogger
from chatflow.persistence.interfaces import ExecutionStore, GraphDefinitionStore
from chatflow.runtime.locks import ExecutionLocks

_log = ContextLogger(__name__)

_OUTCOME_STATUS = {
    Outcome.WAIT: ExecutionStatus.WAITING_INPUT,
    Outcome.COMPLETE: ExecutionStatus.COMPLETED,
    Outcome.HANDOFF: ExecutionStatus.HANDOFF,
}


@dataclass(frozen=True)
class TurnResult:
    """Saved execution after a turn, plus how many nodes the turn visited."""

    execution: Execution
    steps: int

    @property
    def status(self) -> ExecutionStatus:
        return self.execution.status

    @property
    def current_node_id(self) -> str | None:
        return self.execution.current_node_id

    @property
    def messages_sent(self) -> int:
        return self.execution.messages_sent

    @property
    def messages_received(self) -> int:
        return self.execution.messages_received


class ExecutionEngine:
    """Runs turns against stored executions.

    Args:
        executions: Execution store (revision-checked saves)
        graphs: Graph definition snapshots
        gateway: Side effects available to node processors
        processors: Node type -> processor; defaults to the built-in set
        locks: Per-execution locks; share one instance per process
        max_steps: Nodes processed per turn before the execution fails
        max_delay_ms: Upper bound for delay nodes and typing delay
        rng: Random source for random nodes
        clock: Current-time provider
    """

    def __init__(
        self,
        executions: ExecutionStore,
        graphs: GraphDefinitionStore,
        gateway: SideEffectGateway,
        *,
        processors: ProcessorRegistry | None = None,
        locks: ExecutionLocks | None = None,
        max_steps: int = MAX_STEPS,
        max_delay_ms: int = 0,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.executions = executions
        self.graphs = graphs
        self.gateway = gateway
        self.processors = processors or ProcessorRegistry.get_default()
        self.locks = locks or ExecutionLocks()
        self.max_steps = max_steps
        self.max_delay_ms = max_delay_ms
        self.rng = rng or random.Random()
        self.clock = clock

    async def process_turn(
        self,
        execution_id: str,
        user_message: str | None = None,
        company_id: str | None = None,
    ) -> TurnResult:
        """Process one inbound trigger for an execution.

        Args:
            execution_id: Execution to advance
            user_message: Inbound text from the contact, if any; blank text
                counts as no message
            company_id: Tenant of the caller; a mismatch reads as not found

        Returns:
            TurnResult holding the saved execution

        Raises:
            ExecutionNotFoundError: Unknown id or other tenant
            ExecutionNotActiveError: Execution is in a terminal status
            GraphNotFoundError: Pinned graph snapshot is missing
            InvalidGraphError: Graph has no node to enter
            ExecutionConflictError: Another writer saved first
        """
        async with self.locks.hold(execution_id):
            execution = await self.load_active(execution_id, company_id)
            graph = await self.load_graph(execution)
            updated, steps = await self._run(execution, graph, user_message)
            saved = await self.executions.save(updated, expected_revision=execution.revision)

        _log.with_context(execution_id=execution_id).info(
            f"Turn finished: status={saved.status.value} node={saved.current_node_id} "
            f"steps={steps}"
        )
        return TurnResult(execution=saved, steps=steps)

    async def load_active(self, execution_id: str, company_id: str | None = None) -> Execution:
        execution = await self.executions.load(execution_id)
        if execution is None or (company_id is not None and execution.company_id != company_id):
            raise ExecutionNotFoundError("Execution not found", execution_id=execution_id)
        if not execution.is_active:
            raise ExecutionNotActiveError(
                "Execution is not active",
                execution_id=execution_id,
                status=execution.status.value,
            )
        return execution

    async def load_graph(self, execution: Execution) -> GraphDefinition:
        graph = await self.graphs.load(execution.graph_id, execution.graph_version)
        if graph is None:
            raise GraphNotFoundError(
                "Graph definition not found",
                graph_id=execution.graph_id,
                version=execution.graph_version,
            )
        return graph

    def _entry_node(self, execution: Execution, graph: GraphDefinition) -> Node:
        node = graph.get_node(execution.current_node_id) or graph.start_node()
        if node is None:
            raise InvalidGraphError(
                "Graph has no node to start from",
                graph_id=graph.id,
                version=graph.version,
            )
        return node

    async def _run(
        self,
        execution: Execution,
        graph: GraphDefinition,
        user_message: str | None,
    ) -> tuple[Execution, int]:
        log = _log.with_context(execution_id=execution.id)
        node = self._entry_node(execution, graph)
        now = self.clock()
        inbound = user_message if user_message and user_message.strip() else None

        # Only the node the execution is parked on may consume the inbound text
        pending_input = None
        if execution.status == ExecutionStatus.WAITING_INPUT and node.type in INPUT_NODE_TYPES:
            pending_input = inbound

        variables = dict(execution.session_variables)
        records: list[StepRecord] = []
        sent = 0
        updates: dict[str, Any] = {}

        for _ in range(self.max_steps):
            ctx = NodeContext(
                graph=graph,
                execution=execution,
                variables=variables,
                gateway=self.gateway,
                user_input=pending_input,
                max_delay_ms=self.max_delay_ms,
                rng=self.rng,
            )
            pending_input = None

            try:
                result = await self.processors.get(node.type).process(node, ctx)
            except Exception as e:
                log.exception(f"Node {node.id} ({node.type}) raised: {e}")
                records.append(
                    StepRecord(node_id=node.id, node_type=node.type, error=str(e))
                )
                updates = {
                    "status": ExecutionStatus.FAILED,
                    "failure_reason": FailureReason.NODE_ERROR.value,
                    "current_node_id": node.id,
                }
                break

            records.append(result.log)
            sent += result.messages_sent
            if result.variables is not None:
                variables = result.variables

            if result.outcome is not Outcome.CONTINUE:
                updates = {
                    "status": _OUTCOME_STATUS[result.outcome],
                    "current_node_id": result.next_node_id or node.id,
                }
                if result.outcome is Outcome.HANDOFF:
                    updates["handoff_at"] = now
                    updates["handoff_reason"] = result.handoff_reason
                break

            next_node = graph.get_node(result.next_node_id)
            if next_node is None:
                if result.next_node_id is not None:
                    log.warning(f"Node {node.id} routed to unknown node {result.next_node_id}")
                updates = {"status": ExecutionStatus.COMPLETED, "current_node_id": node.id}
                break
            node = next_node
        else:
            log.warning(f"Step limit of {self.max_steps} reached at node {node.id}")
            updates = {
                "status": ExecutionStatus.FAILED,
                "failure_reason": FailureReason.STEP_LIMIT_EXCEEDED.value,
                "current_node_id": node.id,
            }

        if updates["status"] == ExecutionStatus.COMPLETED:
            updates["completed_at"] = now

        updated = execution.model_copy(
            update={
                **updates,
                "session_variables": variables,
                "execution_log": execution.execution_log + tuple(records),
                "messages_sent": execution.messages_sent + sent,
                "messages_received": execution.messages_received
                + (1 if inbound is not None else 0),
                "last_interaction_at": now,
            }
        )
        return updated, len(records)
