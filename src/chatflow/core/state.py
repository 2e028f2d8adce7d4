"""Execution state models.

An ``Execution`` is immutable by replacement: every turn builds a new value
with ``model_copy(update=...)`` and hands it to the store together with the
revision it was loaded at.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chatflow.core.constants import ExecutionStatus


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(UTC)


class Contact(BaseModel):
    """Snapshot of the contact a conversation is held with."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)


class StepRecord(BaseModel):
    """One visited node in the execution log.

    Type-specific fields (``content``, ``condition``, ``result``, ``error``...)
    are stored as extra attributes.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    node_id: str
    node_type: str
    timestamp: datetime = Field(default_factory=utcnow)

    @property
    def details(self) -> dict[str, Any]:
        """Type-specific fields of the record."""
        return dict(self.model_extra or {})


class Execution(BaseModel):
    """One run of a graph against one conversation."""

    model_config = ConfigDict(frozen=True)

    id: str
    company_id: str
    graph_id: str
    graph_version: int
    conversation_id: str
    contact: Contact
    destination: str = Field(description="Address the messaging channel delivers to")
    current_node_id: str | None = None
    status: ExecutionStatus = ExecutionStatus.RUNNING
    session_variables: dict[str, Any] = Field(default_factory=dict)
    execution_log: tuple[StepRecord, ...] = ()
    messages_sent: int = 0
    messages_received: int = 0
    started_at: datetime = Field(default_factory=utcnow)
    last_interaction_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None
    handoff_at: datetime | None = None
    handoff_reason: str | None = None
    expired_at: datetime | None = None
    failure_reason: str | None = None
    revision: int = 0

    @property
    def is_active(self) -> bool:
        return self.status.is_active
