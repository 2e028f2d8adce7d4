"""Per-execution serialization within one process."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class ExecutionLocks:
    """Keyed asyncio locks, created on demand and dropped when unused.

    Turns for the same execution id queue behind each other; turns for
    different ids never contend. Cross-process safety comes from the
    store's revision check.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
