"""Tests for SessionSweeper."""

from datetime import timedelta

import pytest

from chatflow.core.constants import ExecutionStatus
from chatflow.core.errors import ExecutionNotActiveError
from chatflow.persistence import InMemoryGraphStore
from chatflow.runtime import ExecutionEngine, SessionSweeper


@pytest.fixture
def waiting_graph(build_graph):
    def _graph(timeout_minutes: int = 30, graph_id: str = "flow"):
        return build_graph(
            [("start", "start"), ("ask", "question", {"variableName": "x"})],
            [("start", "ask")],
            graph_id=graph_id,
            settings={"sessionTimeoutMinutes": timeout_minutes},
        )

    return _graph


@pytest.fixture
def sweeper(engine) -> SessionSweeper:
    return SessionSweeper(engine)


async def park(engine, start, graph):
    """Start an execution and leave it waiting for input."""
    execution = await start(graph)
    result = await engine.process_turn(execution.id)
    assert result.status == ExecutionStatus.WAITING_INPUT
    return result.execution


class TestSessionSweeper:
    """Tests for SessionSweeper.sweep()."""

    @pytest.mark.asyncio
    async def test_expires_idle_waiting_execution(
        self, engine, start, sweeper, waiting_graph, executions
    ):
        execution = await park(engine, start, waiting_graph(30))
        now = execution.last_interaction_at + timedelta(minutes=31)

        expired = await sweeper.sweep(now)

        assert expired == [execution.id]
        stored = await executions.load(execution.id)
        assert stored.status == ExecutionStatus.EXPIRED
        assert stored.expired_at == now
        assert stored.revision == execution.revision + 1

    @pytest.mark.asyncio
    async def test_recent_execution_is_kept(
        self, engine, start, sweeper, waiting_graph, executions
    ):
        execution = await park(engine, start, waiting_graph(30))

        expired = await sweeper.sweep(execution.last_interaction_at + timedelta(minutes=29))

        assert expired == []
        assert (await executions.load(execution.id)).status == ExecutionStatus.WAITING_INPUT

    @pytest.mark.asyncio
    async def test_timeout_comes_from_each_graph(self, engine, start, sweeper, waiting_graph):
        short = await park(engine, start, waiting_graph(5, graph_id="short"))
        long = await park(engine, start, waiting_graph(60, graph_id="long"))
        now = max(short.last_interaction_at, long.last_interaction_at) + timedelta(minutes=10)

        expired = await sweeper.sweep(now)

        assert expired == [short.id]

    @pytest.mark.asyncio
    async def test_only_waiting_executions_expire(self, engine, start, sweeper, build_graph):
        graph = build_graph([("start", "start"), ("bye", "end")], [("start", "bye")])
        execution = await start(graph)
        completed = (await engine.process_turn(execution.id)).execution

        expired = await sweeper.sweep(completed.last_interaction_at + timedelta(days=2))

        assert expired == []

    @pytest.mark.asyncio
    async def test_expired_execution_rejects_turns(self, engine, start, sweeper, waiting_graph):
        execution = await park(engine, start, waiting_graph(1))
        await sweeper.sweep(execution.last_interaction_at + timedelta(minutes=2))

        with pytest.raises(ExecutionNotActiveError):
            await engine.process_turn(execution.id, "ainda aí?")

    @pytest.mark.asyncio
    async def test_missing_graph_is_skipped(
        self, engine, start, waiting_graph, executions, gateway
    ):
        execution = await park(engine, start, waiting_graph(1))
        without_graphs = ExecutionEngine(executions, InMemoryGraphStore(), gateway)

        now = execution.last_interaction_at + timedelta(hours=1)

        expired = await SessionSweeper(without_graphs).sweep(now)

        assert expired == []
        assert (await executions.load(execution.id)).status == ExecutionStatus.WAITING_INPUT
