"""Collaborator interfaces (Protocols) for the side effects of a turn."""

import json
from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class HttpResponse:
    """Transport-independent HTTP response."""

    status_code: int
    text: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Parse the body as JSON (raises ValueError on malformed bodies)."""
        return json.loads(self.text)


class MessagingChannel(Protocol):
    """Delivers text to a contact address."""

    async def send(self, destination: str, text: str) -> bool:
        """Send a message. Returns False when delivery failed."""
        ...


class TagStore(Protocol):
    """Company-scoped contact tags."""

    async def ensure_tag(self, company_id: str, name: str) -> str:
        """Return the id of the named tag, creating it when missing."""
        ...

    async def associate(self, contact_id: str, tag_id: str) -> None:
        """Attach a tag to a contact. Associating twice is a no-op."""
        ...


class ConversationStore(Protocol):
    """Conversation metadata owned by the CRM."""

    async def flag_needs_attention(self, conversation_id: str) -> None:
        """Mark the conversation for a human agent."""
        ...


class HttpClient(Protocol):
    """Outbound HTTP used by api_call and webhook nodes."""

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        content: str | None = None,
        json: Any = None,
    ) -> HttpResponse:
        """Perform a request. Non-2xx responses are returned, not raised."""
        ...
