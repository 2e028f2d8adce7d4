"""Graph definition stores backed by files, plus a snapshot cache."""

import asyncio
import logging
from pathlib import Path

from cachetools import LRUCache

from chatflow.core.errors import ConfigError
from chatflow.graph.loader import GRAPH_SUFFIXES, GraphLoader
from chatflow.graph.models import GraphDefinition
from chatflow.persistence.interfaces import GraphDefinitionStore

logger = logging.getLogger(__name__)


class FileGraphStore:
    """Snapshots read from a directory, one file per (graph id, version).

    The directory is indexed lazily and re-indexed whenever a lookup misses,
    so newly published files are picked up without a restart. Parsed
    snapshots are kept with the index; a published snapshot is immutable.
    Files that fail to parse are skipped with a warning.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self._index: dict[tuple[str, int], GraphDefinition] = {}

    def refresh(self) -> None:
        """Rebuild the (graph_id, version) -> snapshot index."""
        index: dict[tuple[str, int], GraphDefinition] = {}
        sources: dict[tuple[str, int], Path] = {}
        if self.directory.is_dir():
            for path in sorted(self.directory.iterdir()):
                if path.suffix not in GRAPH_SUFFIXES:
                    continue
                try:
                    graph = GraphLoader.load(path)
                except ConfigError as e:
                    logger.warning(f"Skipping unreadable graph file {path}: {e}")
                    continue
                key = (graph.id, graph.version)
                if key in index:
                    logger.warning(
                        f"Graph {graph.id} v{graph.version} defined twice; using {sources[key]}"
                    )
                    continue
                # a snapshot already served keeps its identity
                index[key] = self._index.get(key, graph)
                sources[key] = path
        self._index = index
        logger.debug(f"Indexed {len(index)} graph snapshots in {self.directory}")

    async def load(self, graph_id: str, version: int) -> GraphDefinition | None:
        key = (graph_id, version)
        if key not in self._index:
            await asyncio.to_thread(self.refresh)
        return self._index.get(key)

    async def latest_version(self, graph_id: str) -> int | None:
        await asyncio.to_thread(self.refresh)
        versions = [version for gid, version in self._index if gid == graph_id]
        return max(versions) if versions else None


class CachedGraphStore:
    """LRU cache of frozen snapshots in front of another GraphDefinitionStore.

    Snapshots are immutable, so entries never need invalidation; only
    ``latest_version`` is always delegated.
    """

    def __init__(self, store: GraphDefinitionStore, maxsize: int = 256) -> None:
        self._store = store
        self.cache: LRUCache[tuple[str, int], GraphDefinition] = LRUCache(maxsize=maxsize)

    async def load(self, graph_id: str, version: int) -> GraphDefinition | None:
        key = (graph_id, version)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        graph = await self._store.load(graph_id, version)
        if graph is not None:
            self.cache[key] = graph
        return graph

    async def latest_version(self, graph_id: str) -> int | None:
        return await self._store.latest_version(graph_id)
