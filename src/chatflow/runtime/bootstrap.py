"""Runtime wiring - component creation from EngineConfig.

Used by the HTTP server lifespan and the CLI commands. Collaborators owned
by the embedding product (channel, tag store, conversation store) can be
injected; otherwise the configured or in-memory ones are used.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass

from chatflow.config.models import ChannelConfig, EngineConfig
from chatflow.core.errors import ConfigError
from chatflow.gateway.channels import HttpMessagingChannel, LoggingChannel
from chatflow.gateway.gateway import SideEffectGateway
from chatflow.gateway.http import HttpxClient
from chatflow.gateway.interfaces import (
    ConversationStore,
    HttpClient,
    MessagingChannel,
    TagStore,
)
from chatflow.gateway.memory import InMemoryConversationStore, InMemoryTagStore
from chatflow.persistence.graphs import CachedGraphStore, FileGraphStore
from chatflow.persistence.interfaces import ExecutionStore, GraphDefinitionStore
from chatflow.persistence.memory import InMemoryExecutionStore, InMemoryGraphStore
from chatflow.persistence.sqlite import SqliteExecutionStore
from chatflow.runtime.engine import ExecutionEngine
from chatflow.runtime.service import ExecutionService
from chatflow.runtime.sweeper import SessionSweeper

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatflowRuntime:
    """Container for initialized runtime components."""

    config: EngineConfig
    engine: ExecutionEngine
    service: ExecutionService
    sweeper: SessionSweeper
    gateway: SideEffectGateway


def build_channel(config: ChannelConfig, http: HttpClient) -> MessagingChannel:
    if config.backend == "http":
        if not config.url:
            raise ConfigError("channel.url is required for the http channel backend")
        return HttpMessagingChannel(http, config.url, api_key=config.api_key)
    return LoggingChannel()


def build_graph_store(config: EngineConfig) -> GraphDefinitionStore:
    if config.graphs.directory:
        return FileGraphStore(config.graphs.directory)
    logger.warning("No graphs.directory configured; graph store starts empty")
    return InMemoryGraphStore()


async def build_execution_store(config: EngineConfig, stack: AsyncExitStack) -> ExecutionStore:
    if config.persistence.backend == "sqlite":
        return await stack.enter_async_context(SqliteExecutionStore(config.persistence.path))
    return InMemoryExecutionStore()


@asynccontextmanager
async def open_runtime(
    config: EngineConfig,
    *,
    channel: MessagingChannel | None = None,
    graphs: GraphDefinitionStore | None = None,
    executions: ExecutionStore | None = None,
    tags: TagStore | None = None,
    conversations: ConversationStore | None = None,
) -> AsyncIterator[ChatflowRuntime]:
    """Create and wire all runtime components; close them on exit."""
    async with AsyncExitStack() as stack:
        http = HttpxClient(timeout=config.external_call_timeout_seconds)
        stack.push_async_callback(http.aclose)

        gateway = SideEffectGateway(
            channel=channel or build_channel(config.channel, http),
            http=http,
            tags=tags or InMemoryTagStore(),
            conversations=conversations or InMemoryConversationStore(),
            timeout_seconds=config.external_call_timeout_seconds,
        )
        engine = ExecutionEngine(
            executions=executions or await build_execution_store(config, stack),
            graphs=CachedGraphStore(
                graphs or build_graph_store(config), maxsize=config.graph_cache_size
            ),
            gateway=gateway,
            max_steps=config.max_steps,
            max_delay_ms=config.max_delay_ms,
        )
        logger.info(
            f"Runtime ready (persistence={config.persistence.backend}, "
            f"channel={config.channel.backend})"
        )
        yield ChatflowRuntime(
            config=config,
            engine=engine,
            service=ExecutionService(engine),
            sweeper=SessionSweeper(engine),
            gateway=gateway,
        )
