"""
HTTP transport shared by both calendar providers.

Wraps httpx.AsyncClient behind a single `request()` call that returns the
status and decoded body. HTTP error statuses are returned, not raised, so
each provider can classify them against its own error schema. Network
failures are classified here since they look the same for every provider.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from calsync.integrations.exceptions import ConnectivityError

logger = logging.getLogger(__name__)


@dataclass
class TransportResponse:
    """Status code and decoded body of a provider response."""

    status: int
    data: Any = None
    headers: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class TransportClient:
    """
    Async HTTP client used for all outbound provider calls.

    Pass an existing httpx.AsyncClient to share a connection pool (or to
    inject an httpx.MockTransport in tests); otherwise one client is
    created lazily and closed by `aclose()`.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self._client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[dict] = None,
        body: Any = None,
        params: Optional[dict] = None,
    ) -> TransportResponse:
        """
        Send a request and decode the response.

        Args:
            method: HTTP method
            url: Absolute URL
            headers: Request headers
            body: JSON-serializable request body
            params: Query string parameters

        Returns:
            TransportResponse with status and JSON (or text) body

        Raises:
            ConnectivityError: On timeout, refused connection or other network failure
        """
        client = self._get_client()
        try:
            response = await client.request(
                method,
                url,
                headers=headers,
                json=body,
                params=params,
            )
        except httpx.TimeoutException as e:
            logger.error(f"{method} {url} timed out: {e}")
            raise ConnectivityError(
                "Could not connect to calendar provider: request timed out",
                original_error=e,
            )
        except httpx.TransportError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise ConnectivityError(
                "Could not connect to calendar provider",
                original_error=e,
            )

        return TransportResponse(
            status=response.status_code,
            data=_decode_body(response),
            headers=dict(response.headers),
        )

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def _decode_body(response: httpx.Response) -> Any:
    """Decode a JSON body, falling back to text for non-JSON responses."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
