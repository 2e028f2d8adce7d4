"""Store interfaces (Protocols) used by the engine."""

from typing import Protocol

from chatflow.core.state import Execution
from chatflow.graph.models import GraphDefinition


class ExecutionStore(Protocol):
    """Durable Execution records with optimistic concurrency."""

    async def load(self, execution_id: str) -> Execution | None:
        """Return the stored execution, or None when it does not exist."""
        ...

    async def create(self, execution: Execution) -> Execution:
        """Insert a new execution. Raises ExecutionConflictError if the id is taken."""
        ...

    async def save(self, execution: Execution, expected_revision: int) -> Execution:
        """Replace the record atomically.

        The write succeeds only if the stored revision still equals
        ``expected_revision``; the stored value gets ``expected_revision + 1``
        and is returned. Otherwise ExecutionConflictError is raised and
        nothing is written.
        """
        ...

    async def list_waiting(self) -> list[Execution]:
        """All executions currently in ``waiting_input``."""
        ...


class GraphDefinitionStore(Protocol):
    """Immutable (graph_id, version) snapshots."""

    async def load(self, graph_id: str, version: int) -> GraphDefinition | None:
        ...

    async def latest_version(self, graph_id: str) -> int | None:
        ...
