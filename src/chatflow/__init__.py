"""chatflow - conversational flow execution engine.

Walks user-authored graphs of typed nodes (messages, questions, menus,
conditions, webhooks, handoff...) to drive automated conversations with
contacts, persisting and resuming state across inbound messages.

Quick start:
    from chatflow import EngineConfig, open_runtime

    async with open_runtime(EngineConfig(), graphs=store) as runtime:
        execution = await runtime.service.start_execution(
            "welcome", "acme", "conv-1", Contact(id="c1"), "+5511999999999"
        )
        await runtime.engine.process_turn(execution.id)
"""

__version__ = "1.0.0"

from chatflow.config import ConfigLoader, EngineConfig
from chatflow.core.errors import (
    ChatflowError,
    ExecutionConflictError,
    ExecutionNotActiveError,
    ExecutionNotFoundError,
    GraphNotFoundError,
    InvalidGraphError,
)
from chatflow.core.state import Contact, Execution
from chatflow.graph import GraphDefinition, GraphLoader, validate_graph
from chatflow.runtime import (
    ExecutionEngine,
    ExecutionService,
    SessionSweeper,
    TurnResult,
    open_runtime,
)

__all__ = [
    "__version__",
    "ChatflowError",
    "ConfigLoader",
    "Contact",
    "EngineConfig",
    "Execution",
    "ExecutionConflictError",
    "ExecutionEngine",
    "ExecutionNotActiveError",
    "ExecutionNotFoundError",
    "ExecutionService",
    "GraphDefinition",
    "GraphLoader",
    "GraphNotFoundError",
    "InvalidGraphError",
    "SessionSweeper",
    "TurnResult",
    "open_runtime",
    "validate_graph",
]
