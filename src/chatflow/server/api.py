"""chatflow FastAPI Application.

Provides the trigger entrypoint of the engine: inbound messages from the
messaging channel become turns of the matching execution.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from chatflow import __version__
from chatflow.config.loader import ConfigLoader
from chatflow.config.models import EngineConfig
from chatflow.core.errors import ChatflowError, ExecutionNotFoundError
from chatflow.runtime.bootstrap import open_runtime
from chatflow.runtime.service import success_envelope
from chatflow.server.dependencies import RuntimeDep
from chatflow.server.errors import (
    chatflow_exception_handler,
    global_exception_handler,
    status_for_category,
    validation_exception_handler,
)
from chatflow.server.models import (
    ErrorResponse,
    ExecutionStateResponse,
    HealthResponse,
    ReadinessResponse,
    StartExecutionRequest,
    TurnRequest,
    TurnResponse,
    VersionResponse,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - initialize on startup, cleanup on shutdown."""
    from dotenv import load_dotenv

    load_dotenv()

    config: EngineConfig | None = getattr(app.state, "config", None)
    if config is None:
        config = ConfigLoader.from_env()
        app.state.config = config

    collaborators: dict[str, Any] = getattr(app.state, "collaborators", {})
    async with open_runtime(config, **collaborators) as runtime:
        app.state.runtime = runtime
        logger.info("Runtime initialized and ready.")
        yield
        logger.info("Runtime cleanup...")
        app.state.runtime = None


def create_app(config: EngineConfig | None = None, **collaborators: Any) -> FastAPI:
    """Build the application.

    Args:
        config: Engine configuration; loaded from CHATFLOW_CONFIG_PATH when omitted
        **collaborators: Overrides passed to ``open_runtime`` (channel, graphs,
            executions, tags, conversations)
    """
    app = FastAPI(
        title="chatflow",
        description="Conversational flow execution engine",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.collaborators = collaborators
    app.state.runtime = None

    app.add_exception_handler(ChatflowError, chatflow_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    register_routes(app)
    return app


def register_routes(app: FastAPI) -> None:
    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request) -> HealthResponse:
        """Liveness check."""
        runtime = getattr(request.app.state, "runtime", None)
        return HealthResponse(
            status="healthy" if runtime else "starting",
            version=__version__,
            timestamp=datetime.now().isoformat(),
        )

    @app.get("/ready", response_model=ReadinessResponse)
    async def readiness_check(request: Request) -> ReadinessResponse:
        """Readiness check."""
        runtime = getattr(request.app.state, "runtime", None)
        if not runtime:
            return ReadinessResponse(
                ready=False, message="Runtime not initialized", checks={"runtime": False}
            )
        return ReadinessResponse(
            ready=True, message="Service is ready", checks={"runtime": True}
        )

    @app.get("/version", response_model=VersionResponse)
    def get_version() -> VersionResponse:
        """Get detailed version information."""
        parts = __version__.split(".")
        major = int(parts[0]) if len(parts) > 0 and parts[0].isdigit() else 0
        minor = int(parts[1]) if len(parts) > 1 and parts[1].isdigit() else 0
        patch = parts[2] if len(parts) > 2 else "0"

        return VersionResponse(version=__version__, major=major, minor=minor, patch=patch)

    @app.post(
        "/executions",
        status_code=201,
        response_model=TurnResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    )
    async def start_execution(
        request: StartExecutionRequest, runtime: RuntimeDep
    ) -> TurnResponse:
        """Start a graph for a conversation and run its first turn."""
        execution = await runtime.service.start_execution(
            graph_id=request.graph_id,
            company_id=request.company_id,
            conversation_id=request.conversation_id,
            contact=request.contact.to_contact(),
            destination=request.destination,
            version=request.version,
        )
        result = await runtime.engine.process_turn(
            execution.id, user_message=request.user_message, company_id=request.company_id
        )
        return TurnResponse(**success_envelope(result))

    @app.post(
        "/executions/{execution_id}/turns",
        response_model=TurnResponse,
        responses={
            400: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
            422: {"model": ErrorResponse},
        },
    )
    async def process_turn(
        execution_id: str, request: TurnRequest, runtime: RuntimeDep
    ) -> TurnResponse | JSONResponse:
        """Process an inbound trigger for an execution."""
        envelope = await runtime.service.trigger(
            execution_id, company_id=request.company_id, user_message=request.user_message
        )
        if not envelope["success"]:
            return JSONResponse(
                status_code=status_for_category(envelope["category"]), content=envelope
            )
        return TurnResponse(**envelope)

    @app.get("/executions/{execution_id}", response_model=ExecutionStateResponse)
    async def get_execution(
        execution_id: str, company_id: str, runtime: RuntimeDep
    ) -> ExecutionStateResponse:
        """Current state of an execution (any status)."""
        execution = await runtime.engine.executions.load(execution_id)
        if execution is None or execution.company_id != company_id:
            raise ExecutionNotFoundError("Execution not found", execution_id=execution_id)
        return ExecutionStateResponse.from_execution(execution)


# Application served by `chatflow server` / uvicorn
app = create_app()
