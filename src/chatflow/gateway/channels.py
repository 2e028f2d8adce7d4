"""Messaging channel implementations.

The concrete outbound transport belongs to the embedding product; these
cover tests, local chat sessions and a plain HTTP send endpoint.
"""

import logging
from dataclasses import dataclass

from chatflow.core.errors import GatewayError
from chatflow.gateway.interfaces import HttpClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SentMessage:
    destination: str
    text: str


class BufferedChannel:
    """Buffers messages for testing or batch delivery."""

    def __init__(self, deliver: bool = True) -> None:
        self.messages: list[SentMessage] = []
        self.deliver = deliver

    async def send(self, destination: str, text: str) -> bool:
        """Append message to buffer."""
        self.messages.append(SentMessage(destination, text))
        return self.deliver

    def texts(self) -> list[str]:
        return [message.text for message in self.messages]

    def clear(self) -> None:
        """Clear the message buffer."""
        self.messages.clear()


class LoggingChannel:
    """Records outbound messages in the log only."""

    async def send(self, destination: str, text: str) -> bool:
        logger.info(f"Message to {destination}: {text}")
        return True


class HttpMessagingChannel:
    """Posts ``{"number", "text"}`` to a send endpoint with an ``apikey`` header."""

    def __init__(self, http: HttpClient, url: str, api_key: str | None = None) -> None:
        self._http = http
        self._url = url
        self._api_key = api_key

    async def send(self, destination: str, text: str) -> bool:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key

        try:
            response = await self._http.request(
                "POST",
                self._url,
                headers=headers,
                json={"number": destination, "text": text},
            )
        except GatewayError as e:
            logger.warning(f"Send to {destination} failed: {e}")
            return False

        if not response.ok:
            logger.warning(
                f"Send to {destination} rejected with HTTP {response.status_code}",
                extra={"status_code": response.status_code},
            )
        return response.ok
