"""Runtime: turn execution, lifecycle service, sweeper and wiring."""

from chatflow.runtime.bootstrap import ChatflowRuntime, open_runtime
from chatflow.runtime.engine import ExecutionEngine, TurnResult
from chatflow.runtime.locks import ExecutionLocks
from chatflow.runtime.service import ExecutionService
from chatflow.runtime.sweeper import SessionSweeper

__all__ = [
    "ChatflowRuntime",
    "ExecutionEngine",
    "ExecutionLocks",
    "ExecutionService",
    "SessionSweeper",
    "TurnResult",
    "open_runtime",
]
