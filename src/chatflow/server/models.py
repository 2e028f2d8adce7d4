"""API Models - Pydantic models for FastAPI endpoints.

Defines request and response schemas for the chatflow REST API.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from chatflow.core.state import Contact, Execution


class TurnRequest(BaseModel):
    """Inbound trigger for an existing execution."""

    company_id: str = Field(min_length=1, description="Tenant the caller acts for")
    user_message: str | None = Field(
        default=None, description="Text received from the contact, if any"
    )


class ContactModel(BaseModel):
    """Contact snapshot supplied when an execution starts."""

    id: str = Field(min_length=1)
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)

    def to_contact(self) -> Contact:
        return Contact(**self.model_dump())


class StartExecutionRequest(BaseModel):
    """Start a graph for a conversation and run its first turn."""

    graph_id: str = Field(min_length=1)
    company_id: str = Field(min_length=1)
    conversation_id: str = Field(min_length=1)
    contact: ContactModel
    destination: str = Field(min_length=1, description="Address the channel delivers to")
    version: int | None = Field(default=None, description="Pinned version (default: latest)")
    user_message: str | None = Field(
        default=None, description="Message that triggered the graph, if any"
    )


class TurnResponse(BaseModel):
    """Successful turn envelope."""

    success: Literal[True] = True
    execution_id: str
    status: str
    current_node_id: str | None
    messages_sent: int
    messages_received: int


class ErrorResponse(BaseModel):
    """Rejected request envelope."""

    success: Literal[False] = False
    error: str
    category: str
    reference: str | None = None


class ExecutionStateResponse(BaseModel):
    """Read-only view of an execution."""

    execution_id: str
    graph_id: str
    graph_version: int
    conversation_id: str
    status: str
    current_node_id: str | None
    session_variables: dict[str, Any]
    messages_sent: int
    messages_received: int
    steps_logged: int
    started_at: datetime
    last_interaction_at: datetime
    completed_at: datetime | None = None
    handoff_at: datetime | None = None
    handoff_reason: str | None = None
    expired_at: datetime | None = None
    failure_reason: str | None = None

    @classmethod
    def from_execution(cls, execution: Execution) -> "ExecutionStateResponse":
        return cls(
            execution_id=execution.id,
            graph_id=execution.graph_id,
            graph_version=execution.graph_version,
            conversation_id=execution.conversation_id,
            status=execution.status.value,
            current_node_id=execution.current_node_id,
            session_variables=execution.session_variables,
            messages_sent=execution.messages_sent,
            messages_received=execution.messages_received,
            steps_logged=len(execution.execution_log),
            started_at=execution.started_at,
            last_interaction_at=execution.last_interaction_at,
            completed_at=execution.completed_at,
            handoff_at=execution.handoff_at,
            handoff_reason=execution.handoff_reason,
            expired_at=execution.expired_at,
            failure_reason=execution.failure_reason,
        )


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "starting"]
    version: str
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    message: str
    checks: dict[str, bool] | None = None


class VersionResponse(BaseModel):
    """Response model for version endpoint."""

    version: str = Field(description="Full version string")
    major: int = Field(description="Major version number")
    minor: int = Field(description="Minor version number")
    patch: str = Field(description="Patch version (may include suffix)")
