"""Expiry of idle sessions.

Nothing inside the engine polls; an external scheduler (cron, the
``chatflow sweep`` command) calls ``SessionSweeper.sweep`` periodically.
"""

import logging
from datetime import datetime, timedelta

from chatflow.core.constants import ExecutionStatus
from chatflow.core.errors import ExecutionConflictError
from chatflow.core.state import Execution
from chatflow.runtime.engine import ExecutionEngine

logger = logging.getLogger(__name__)


class SessionSweeper:
    """Moves idle ``waiting_input`` executions to ``expired``.

    The timeout of each execution comes from its pinned graph snapshot
    (``settings.session_timeout_minutes``).
    """

    def __init__(self, engine: ExecutionEngine) -> None:
        self.engine = engine

    async def sweep(self, now: datetime | None = None) -> list[str]:
        """Expire every waiting execution idle for longer than its timeout.

        Returns:
            Ids of the executions that were expired
        """
        now = now or self.engine.clock()
        expired: list[str] = []

        for candidate in await self.engine.executions.list_waiting():
            if not await self._is_idle(candidate, now):
                continue
            async with self.engine.locks.hold(candidate.id):
                current = await self.engine.executions.load(candidate.id)
                if current is None or current.status != ExecutionStatus.WAITING_INPUT:
                    continue
                if not await self._is_idle(current, now):
                    continue
                try:
                    await self.engine.executions.save(
                        current.model_copy(
                            update={"status": ExecutionStatus.EXPIRED, "expired_at": now}
                        ),
                        expected_revision=current.revision,
                    )
                except ExecutionConflictError as e:
                    logger.info(f"Skipping expiry of {current.id}: {e}")
                    continue
            expired.append(candidate.id)

        if expired:
            logger.info(f"Expired {len(expired)} idle execution(s)")
        return expired

    async def _is_idle(self, execution: Execution, now: datetime) -> bool:
        graph = await self.engine.graphs.load(execution.graph_id, execution.graph_version)
        minutes = graph.settings.session_timeout_minutes if graph is not None else None
        if minutes is None:
            logger.warning(
                f"Graph {execution.graph_id} v{execution.graph_version} missing; "
                f"cannot expire {execution.id}"
            )
            return False
        return execution.last_interaction_at + timedelta(minutes=minutes) < now
