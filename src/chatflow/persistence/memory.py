"""In-memory stores for tests and single-process deployments."""

import asyncio

from chatflow.core.constants import ExecutionStatus
from chatflow.core.errors import ExecutionConflictError, ExecutionNotFoundError
from chatflow.core.state import Execution
from chatflow.graph.models import GraphDefinition


class InMemoryExecutionStore:
    """ExecutionStore backed by a dict.

    Values are deep-copied on the way in and out so callers never share
    the mutable containers inside a stored record.
    """

    def __init__(self) -> None:
        self._records: dict[str, Execution] = {}
        self._lock = asyncio.Lock()

    async def load(self, execution_id: str) -> Execution | None:
        record = self._records.get(execution_id)
        return record.model_copy(deep=True) if record is not None else None

    async def create(self, execution: Execution) -> Execution:
        async with self._lock:
            if execution.id in self._records:
                raise ExecutionConflictError(
                    "Execution already exists", execution_id=execution.id
                )
            self._records[execution.id] = execution.model_copy(deep=True)
        return execution

    async def save(self, execution: Execution, expected_revision: int) -> Execution:
        async with self._lock:
            current = self._records.get(execution.id)
            if current is None:
                raise ExecutionNotFoundError("Execution not found", execution_id=execution.id)
            if current.revision != expected_revision:
                raise ExecutionConflictError(
                    "Execution was modified concurrently",
                    execution_id=execution.id,
                    expected_revision=expected_revision,
                    actual_revision=current.revision,
                )
            saved = execution.model_copy(update={"revision": expected_revision + 1}, deep=True)
            self._records[execution.id] = saved
        return saved.model_copy(deep=True)

    async def list_waiting(self) -> list[Execution]:
        return [
            record.model_copy(deep=True)
            for record in self._records.values()
            if record.status == ExecutionStatus.WAITING_INPUT
        ]


class InMemoryGraphStore:
    """GraphDefinitionStore holding published snapshots in a dict."""

    def __init__(self, graphs: list[GraphDefinition] | None = None) -> None:
        self._graphs: dict[tuple[str, int], GraphDefinition] = {}
        for graph in graphs or []:
            self.publish(graph)

    def publish(self, graph: GraphDefinition) -> None:
        """Add a snapshot. Republishing an existing (id, version) replaces it."""
        self._graphs[(graph.id, graph.version)] = graph

    async def load(self, graph_id: str, version: int) -> GraphDefinition | None:
        return self._graphs.get((graph_id, version))

    async def latest_version(self, graph_id: str) -> int | None:
        versions = [version for gid, version in self._graphs if gid == graph_id]
        return max(versions) if versions else None
