"""Side-effect gateway.

Every effect a node can have on the outside world goes through this class,
and every call is bounded by the configured timeout. Message sends never
raise: a failed or timed-out send is reported as ``False`` so the turn can
record it and move on. Other calls raise GatewayError, which node processors
capture into variables or the execution log.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from chatflow.core.constants import DEFAULT_EXTERNAL_TIMEOUT_SECONDS
from chatflow.core.errors import GatewayError
from chatflow.gateway.interfaces import (
    ConversationStore,
    HttpClient,
    HttpResponse,
    MessagingChannel,
    TagStore,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]


class SideEffectGateway:
    """Narrow, timeout-bounded access to the turn's collaborators."""

    def __init__(
        self,
        channel: MessagingChannel,
        http: HttpClient,
        tags: TagStore,
        conversations: ConversationStore,
        timeout_seconds: float = DEFAULT_EXTERNAL_TIMEOUT_SECONDS,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.channel = channel
        self.http = http
        self.tags = tags
        self.conversations = conversations
        self.timeout_seconds = timeout_seconds
        self._sleep = sleep

    async def _bounded(self, operation: str, call: Awaitable[T], **context: Any) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except TimeoutError as e:
            raise GatewayError(
                f"{operation} timed out after {self.timeout_seconds}s", **context
            ) from e
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"{operation} failed: {e}", **context) from e

    async def send_message(self, destination: str, text: str) -> bool:
        """Send text to the contact. Returns whether the channel accepted it."""
        try:
            delivered = await self._bounded(
                "send", self.channel.send(destination, text), destination=destination
            )
        except GatewayError as e:
            logger.warning(f"Message not delivered: {e}")
            return False
        return bool(delivered)

    async def http_request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        content: str | None = None,
        json: Any = None,
    ) -> HttpResponse:
        return await self._bounded(
            "HTTP request",
            self.http.request(method, url, headers=headers, content=content, json=json),
            method=method,
            url=url,
        )

    async def tag_contact(self, company_id: str, contact_id: str, tag_name: str) -> str:
        """Ensure the tag exists for the company and attach it to the contact."""
        tag_id = await self._bounded(
            "ensure_tag", self.tags.ensure_tag(company_id, tag_name), tag=tag_name
        )
        await self._bounded(
            "associate", self.tags.associate(contact_id, tag_id), tag=tag_name
        )
        return tag_id

    async def flag_needs_attention(self, conversation_id: str) -> None:
        await self._bounded(
            "flag_needs_attention",
            self.conversations.flag_needs_attention(conversation_id),
            conversation_id=conversation_id,
        )

    async def pause(self, milliseconds: int) -> None:
        """Sleep for delay nodes and typing simulation."""
        if milliseconds > 0:
            await self._sleep(milliseconds / 1000)
