"""httpx-backed HTTP client."""

import logging
from typing import Any

import httpx

from chatflow.core.constants import DEFAULT_EXTERNAL_TIMEOUT_SECONDS
from chatflow.core.errors import GatewayError
from chatflow.gateway.interfaces import HttpResponse

logger = logging.getLogger(__name__)


class HttpxClient:
    """HttpClient over a shared httpx.AsyncClient.

    Args:
        timeout: Per-request timeout in seconds
        transport: Optional transport (httpx.MockTransport in tests)
    """

    def __init__(
        self,
        timeout: float = DEFAULT_EXTERNAL_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        content: str | None = None,
        json: Any = None,
    ) -> HttpResponse:
        try:
            response = await self._client.request(
                method.upper(), url, headers=headers, content=content, json=json
            )
        except httpx.TimeoutException as e:
            raise GatewayError("HTTP request timed out", method=method, url=url) from e
        except httpx.HTTPError as e:
            raise GatewayError(f"HTTP request failed: {e}", method=method, url=url) from e

        logger.debug(f"{method.upper()} {url} - Status: {response.status_code}")
        return HttpResponse(
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
        )

    async def aclose(self) -> None:
        await self._client.aclose()
