"""SQLite execution store (aiosqlite).

Each execution is one row: the full record as JSON plus the columns the
store filters on. The optimistic check is a single conditional UPDATE, so
concurrent writers from several processes cannot overwrite each other.
"""

import logging
from pathlib import Path
from types import TracebackType

import aiosqlite

from chatflow.core.constants import ExecutionStatus
from chatflow.core.errors import ExecutionConflictError, ExecutionNotFoundError
from chatflow.core.state import Execution

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS executions (
    id TEXT PRIMARY KEY,
    company_id TEXT NOT NULL,
    status TEXT NOT NULL,
    revision INTEGER NOT NULL,
    data TEXT NOT NULL
)
"""
_STATUS_INDEX = "CREATE INDEX IF NOT EXISTS ix_executions_status ON executions (status)"


class SqliteExecutionStore:
    """ExecutionStore persisted in a SQLite file.

    Use as an async context manager, or call ``open()``/``close()``::

        async with SqliteExecutionStore("chatflow.db") as store:
            await store.load("exec-1")
    """

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        self._db: aiosqlite.Connection | None = None

    async def open(self) -> "SqliteExecutionStore":
        if self._db is None:
            self._db = await aiosqlite.connect(self.path)
            await self._db.execute(_SCHEMA)
            await self._db.execute(_STATUS_INDEX)
            await self._db.commit()
            logger.info(f"Execution store opened at {self.path}")
        return self

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> "SqliteExecutionStore":
        return await self.open()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("SqliteExecutionStore is not open")
        return self._db

    async def load(self, execution_id: str) -> Execution | None:
        async with self.db.execute(
            "SELECT data FROM executions WHERE id = ?", (execution_id,)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return Execution.model_validate_json(row[0])

    async def create(self, execution: Execution) -> Execution:
        try:
            await self.db.execute(
                "INSERT INTO executions (id, company_id, status, revision, data) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    execution.id,
                    execution.company_id,
                    execution.status.value,
                    execution.revision,
                    execution.model_dump_json(),
                ),
            )
            await self.db.commit()
        except aiosqlite.IntegrityError as e:
            raise ExecutionConflictError(
                "Execution already exists", execution_id=execution.id
            ) from e
        return execution

    async def save(self, execution: Execution, expected_revision: int) -> Execution:
        saved = execution.model_copy(update={"revision": expected_revision + 1})
        cursor = await self.db.execute(
            "UPDATE executions SET status = ?, revision = ?, data = ? "
            "WHERE id = ? AND revision = ?",
            (
                saved.status.value,
                saved.revision,
                saved.model_dump_json(),
                saved.id,
                expected_revision,
            ),
        )
        updated = cursor.rowcount
        await cursor.close()
        await self.db.commit()

        if updated == 0:
            current = await self.load(execution.id)
            if current is None:
                raise ExecutionNotFoundError("Execution not found", execution_id=execution.id)
            raise ExecutionConflictError(
                "Execution was modified concurrently",
                execution_id=execution.id,
                expected_revision=expected_revision,
                actual_revision=current.revision,
            )
        return saved

    async def list_waiting(self) -> list[Execution]:
        async with self.db.execute(
            "SELECT data FROM executions WHERE status = ?",
            (ExecutionStatus.WAITING_INPUT.value,),
        ) as cursor:
            rows = await cursor.fetchall()
        return [Execution.model_validate_json(row[0]) for row in rows]
