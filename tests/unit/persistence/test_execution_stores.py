"""Tests for the in-memory and SQLite execution stores.

Both stores are run through the same contract tests.
"""

import pytest
import pytest_asyncio

from chatflow.core.constants import ExecutionStatus
from chatflow.core.errors import ExecutionConflictError, ExecutionNotFoundError
from chatflow.core.state import Contact, Execution, StepRecord
from chatflow.persistence import InMemoryExecutionStore, SqliteExecutionStore


def make_execution(execution_id: str = "e1", **overrides) -> Execution:
    fields = {
        "id": execution_id,
        "company_id": "acme",
        "graph_id": "flow",
        "graph_version": 1,
        "conversation_id": "conv",
        "contact": Contact(id="c1", name="Ana", custom_fields={"plano": "pro"}),
        "destination": "+55",
        "session_variables": {"origem": "site"},
    }
    fields.update(overrides)
    return Execution(**fields)


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def store(request, tmp_path):
    if request.param == "memory":
        yield InMemoryExecutionStore()
        return
    async with SqliteExecutionStore(tmp_path / "executions.db") as sqlite_store:
        yield sqlite_store


class TestExecutionStoreContract:
    @pytest.mark.asyncio
    async def test_create_then_load(self, store):
        execution = make_execution()

        await store.create(execution)

        assert await store.load("e1") == execution

    @pytest.mark.asyncio
    async def test_load_unknown(self, store):
        assert await store.load("missing") is None

    @pytest.mark.asyncio
    async def test_create_duplicate_conflicts(self, store):
        await store.create(make_execution())

        with pytest.raises(ExecutionConflictError):
            await store.create(make_execution())

    @pytest.mark.asyncio
    async def test_save_bumps_revision(self, store):
        execution = await store.create(make_execution())
        updated = execution.model_copy(
            update={
                "status": ExecutionStatus.WAITING_INPUT,
                "current_node_id": "ask",
                "execution_log": (StepRecord(node_id="ask", node_type="question", question="?"),),
            }
        )

        saved = await store.save(updated, expected_revision=0)

        assert saved.revision == 1
        loaded = await store.load("e1")
        assert loaded == saved
        assert loaded.execution_log[0].details == {"question": "?"}

    @pytest.mark.asyncio
    async def test_stale_save_conflicts(self, store):
        """
        GIVEN two writers that loaded the same revision
        WHEN both save
        THEN the second save fails and the first one's value is kept
        """
        execution = await store.create(make_execution())
        first = execution.model_copy(update={"current_node_id": "a"})
        second = execution.model_copy(update={"current_node_id": "b"})

        await store.save(first, expected_revision=0)
        with pytest.raises(ExecutionConflictError):
            await store.save(second, expected_revision=0)

        assert (await store.load("e1")).current_node_id == "a"

    @pytest.mark.asyncio
    async def test_save_unknown(self, store):
        with pytest.raises(ExecutionNotFoundError):
            await store.save(make_execution("ghost"), expected_revision=0)

    @pytest.mark.asyncio
    async def test_list_waiting(self, store):
        await store.create(make_execution("running"))
        await store.create(make_execution("waiting", status=ExecutionStatus.WAITING_INPUT))
        await store.create(make_execution("done", status=ExecutionStatus.COMPLETED))

        waiting = await store.list_waiting()

        assert [execution.id for execution in waiting] == ["waiting"]


class TestInMemoryExecutionStore:
    @pytest.mark.asyncio
    async def test_loaded_values_are_copies(self):
        store = InMemoryExecutionStore()
        await store.create(make_execution())

        loaded = await store.load("e1")
        loaded.session_variables["hacked"] = True

        assert "hacked" not in (await store.load("e1")).session_variables


class TestSqliteExecutionStore:
    @pytest.mark.asyncio
    async def test_survives_reopen(self, tmp_path):
        path = tmp_path / "chatflow.db"
        async with SqliteExecutionStore(path) as store:
            execution = await store.create(make_execution())
            await store.save(
                execution.model_copy(update={"status": ExecutionStatus.HANDOFF}),
                expected_revision=0,
            )

        async with SqliteExecutionStore(path) as store:
            loaded = await store.load("e1")

        assert loaded.status == ExecutionStatus.HANDOFF
        assert loaded.revision == 1
        assert loaded.contact.custom_fields == {"plano": "pro"}

    @pytest.mark.asyncio
    async def test_revision_check_across_connections(self, tmp_path):
        """Two processes sharing one database file cannot overwrite each other."""
        path = tmp_path / "shared.db"
        async with SqliteExecutionStore(path) as one, SqliteExecutionStore(path) as two:
            execution = await one.create(make_execution())

            await one.save(execution.model_copy(update={"current_node_id": "a"}), 0)
            with pytest.raises(ExecutionConflictError):
                await two.save(execution.model_copy(update={"current_node_id": "b"}), 0)

    def test_requires_open(self, tmp_path):
        store = SqliteExecutionStore(tmp_path / "closed.db")

        with pytest.raises(RuntimeError, match="not open"):
            _ = store.db
