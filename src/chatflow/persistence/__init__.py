"""Execution and graph definition stores."""

from chatflow.persistence.graphs import CachedGraphStore, FileGraphStore
from chatflow.persistence.interfaces import ExecutionStore, GraphDefinitionStore
from chatflow.persistence.memory import InMemoryExecutionStore, InMemoryGraphStore
from chatflow.persistence.sqlite import SqliteExecutionStore

__all__ = [
    "CachedGraphStore",
    "ExecutionStore",
    "FileGraphStore",
    "GraphDefinitionStore",
    "InMemoryExecutionStore",
    "InMemoryGraphStore",
    "SqliteExecutionStore",
]
