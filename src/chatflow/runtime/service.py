"""Execution lifecycle entrypoints: starting executions and handling triggers."""

import logging
import uuid
from typing import Any

from chatflow.core.constants import ExecutionStatus
from chatflow.core.errors import (
    ChatflowError,
    ExecutionConflictError,
    ExecutionNotActiveError,
    ExecutionNotFoundError,
    GraphNotFoundError,
    InvalidGraphError,
    TriggerValidationError,
)
from chatflow.core.state import Contact, Execution
from chatflow.runtime.engine import ExecutionEngine, TurnResult

logger = logging.getLogger(__name__)

# Error category reported in the trigger envelope, by exception type
ERROR_CATEGORIES: dict[type[ChatflowError], str] = {
    ExecutionNotFoundError: "not_found",
    GraphNotFoundError: "not_found",
    ExecutionNotActiveError: "not_active",
    ExecutionConflictError: "conflict",
    InvalidGraphError: "invalid_graph",
    TriggerValidationError: "invalid_request",
}


def error_category(error: BaseException) -> str:
    for error_type, category in ERROR_CATEGORIES.items():
        if isinstance(error, error_type):
            return category
    return "internal"


def success_envelope(result: TurnResult) -> dict[str, Any]:
    return {
        "success": True,
        "execution_id": result.execution.id,
        "status": result.status.value,
        "current_node_id": result.current_node_id,
        "messages_sent": result.messages_sent,
        "messages_received": result.messages_received,
    }


class ExecutionService:
    """Creates executions pinned to a graph version and runs their turns."""

    def __init__(self, engine: ExecutionEngine) -> None:
        self.engine = engine

    async def start_execution(
        self,
        graph_id: str,
        company_id: str,
        conversation_id: str,
        contact: Contact,
        destination: str,
        version: int | None = None,
        execution_id: str | None = None,
    ) -> Execution:
        """Create a ``running`` execution for a conversation.

        The execution is pinned to ``version`` (default: latest published),
        and its session variables start from the graph's default variables.

        Raises:
            GraphNotFoundError: No such graph/version, or another company's graph
            ExecutionConflictError: ``execution_id`` is already taken
        """
        graphs = self.engine.graphs
        if version is None:
            version = await graphs.latest_version(graph_id)
        graph = await graphs.load(graph_id, version) if version is not None else None
        if graph is None or graph.company_id != company_id:
            raise GraphNotFoundError(
                "Graph definition not found", graph_id=graph_id, version=version
            )

        now = self.engine.clock()
        execution = Execution(
            id=execution_id or str(uuid.uuid4()),
            company_id=company_id,
            graph_id=graph.id,
            graph_version=graph.version,
            conversation_id=conversation_id,
            contact=contact,
            destination=destination,
            status=ExecutionStatus.RUNNING,
            session_variables=dict(graph.default_variables),
            started_at=now,
            last_interaction_at=now,
        )
        created = await self.engine.executions.create(execution)
        logger.info(
            f"Started execution {created.id} of graph {graph.id} v{graph.version}",
            extra={"execution_id": created.id, "conversation_id": conversation_id},
        )
        return created

    async def trigger(
        self,
        execution_id: str,
        company_id: str,
        user_message: str | None = None,
    ) -> dict[str, Any]:
        """Run a turn and report it as a response envelope.

        Returns ``{success: True, execution_id, status, current_node_id,
        messages_sent, messages_received}`` or ``{success: False, error,
        category}``. Unexpected errors propagate to the caller.
        """
        if not execution_id or not company_id:
            error = TriggerValidationError(
                "execution_id and company_id are required", execution_id=execution_id
            )
            return {"success": False, "error": str(error), "category": error_category(error)}

        try:
            result = await self.engine.process_turn(
                execution_id, user_message=user_message, company_id=company_id
            )
        except ChatflowError as e:
            logger.info(f"Trigger rejected: {e}")
            return {"success": False, "error": str(e), "category": error_category(e)}
        return success_envelope(result)
