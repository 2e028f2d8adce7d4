"""Shared fixtures for chatflow tests.

Graphs are built in code through ``build_graph``; every side effect goes to
in-memory collaborators so tests are deterministic and never touch the
network.
"""

import random
from typing import Any

import pytest

from chatflow.core.state import Contact, Execution
from chatflow.gateway import (
    BufferedChannel,
    HttpResponse,
    InMemoryConversationStore,
    InMemoryTagStore,
    SideEffectGateway,
)
from chatflow.graph.models import GraphDefinition
from chatflow.nodes.base import NodeContext
from chatflow.persistence import InMemoryExecutionStore, InMemoryGraphStore
from chatflow.runtime import ExecutionEngine, ExecutionService

COMPANY_ID = "acme"
DESTINATION = "+5511999990000"


def make_graph(
    nodes: list[tuple],
    edges: list[tuple] | tuple = (),
    *,
    graph_id: str = "flow",
    company_id: str = COMPANY_ID,
    version: int = 1,
    **extra: Any,
) -> GraphDefinition:
    """Build a graph from compact tuples.

    nodes: ``(id, type)`` or ``(id, type, data)``
    edges: ``(source, target)`` or ``(source, target, handle)``
    """
    return GraphDefinition.model_validate(
        {
            "id": graph_id,
            "companyId": company_id,
            "version": version,
            "nodes": [
                {"id": node[0], "type": node[1], "data": node[2] if len(node) > 2 else {}}
                for node in nodes
            ],
            "edges": [
                {
                    "source": edge[0],
                    "target": edge[1],
                    "sourceHandle": edge[2] if len(edge) > 2 else None,
                }
                for edge in edges
            ],
            **extra,
        }
    )


class FakeHttpClient:
    """HttpClient that records requests and replays queued responses."""

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.responses: list[HttpResponse] = []
        self.error: Exception | None = None

    def reply(self, status_code: int = 200, text: str = "{}") -> None:
        self.responses.append(HttpResponse(status_code=status_code, text=text))

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        content: str | None = None,
        json: Any = None,
    ) -> HttpResponse:
        self.requests.append(
            {"method": method, "url": url, "headers": headers, "content": content, "json": json}
        )
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        return HttpResponse(status_code=200, text="{}")


class RecordingSleep:
    """Stands in for asyncio.sleep; remembers the requested seconds."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def build_graph():
    """Factory for GraphDefinition objects (see ``make_graph``)."""
    return make_graph


@pytest.fixture
def contact() -> Contact:
    return Contact(
        id="contact-1",
        name="Ana Lima",
        email="ana@example.com",
        phone=DESTINATION,
        custom_fields={"plano": "pro"},
    )


@pytest.fixture
def channel() -> BufferedChannel:
    return BufferedChannel()


@pytest.fixture
def http() -> FakeHttpClient:
    return FakeHttpClient()


@pytest.fixture
def tags() -> InMemoryTagStore:
    return InMemoryTagStore()


@pytest.fixture
def conversations() -> InMemoryConversationStore:
    return InMemoryConversationStore()


@pytest.fixture
def sleeps() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def gateway(channel, http, tags, conversations, sleeps) -> SideEffectGateway:
    return SideEffectGateway(
        channel=channel,
        http=http,
        tags=tags,
        conversations=conversations,
        timeout_seconds=1.0,
        sleep=sleeps,
    )


@pytest.fixture
def graphs() -> InMemoryGraphStore:
    return InMemoryGraphStore()


@pytest.fixture
def executions() -> InMemoryExecutionStore:
    return InMemoryExecutionStore()


@pytest.fixture
def engine(executions, graphs, gateway) -> ExecutionEngine:
    return ExecutionEngine(
        executions, graphs, gateway, max_delay_ms=5000, rng=random.Random(7)
    )


@pytest.fixture
def service(engine) -> ExecutionService:
    return ExecutionService(engine)


@pytest.fixture
def start(graphs, service, contact):
    """Publish a graph and create a ``running`` execution for it."""

    async def _start(graph: GraphDefinition, **kwargs: Any) -> Execution:
        graphs.publish(graph)
        return await service.start_execution(
            graph_id=graph.id,
            company_id=graph.company_id,
            conversation_id=kwargs.pop("conversation_id", "conv-1"),
            contact=kwargs.pop("contact", contact),
            destination=kwargs.pop("destination", DESTINATION),
            **kwargs,
        )

    return _start


@pytest.fixture
def node_context(gateway, contact):
    """Factory for NodeContext objects bound to the test gateway."""

    def _context(
        graph: GraphDefinition,
        *,
        user_input: str | None = None,
        variables: dict[str, Any] | None = None,
        max_delay_ms: int = 5000,
        rng: random.Random | None = None,
    ) -> NodeContext:
        execution = Execution(
            id="exec-1",
            company_id=graph.company_id,
            graph_id=graph.id,
            graph_version=graph.version,
            conversation_id="conv-1",
            contact=contact,
            destination=DESTINATION,
            session_variables=dict(variables or {}),
        )
        return NodeContext(
            graph=graph,
            execution=execution,
            variables=dict(variables or {}),
            gateway=gateway,
            user_input=user_input,
            max_delay_ms=max_delay_ms,
            rng=rng or random.Random(1),
        )

    return _context
