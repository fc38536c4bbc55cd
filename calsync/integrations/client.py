"""
Base API client for calendar providers.

Sends bearer-authenticated JSON requests through the shared transport and
turns error statuses into the error taxonomy via each provider's
`_handle_http_error`.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from calsync.integrations.exceptions import CalendarSyncError
from calsync.integrations.transport import TransportClient, TransportResponse

logger = logging.getLogger(__name__)


class ProviderApiClient(ABC):
    """
    Thin wrapper over TransportClient for one provider API.

    Subclasses expose one method per provider endpoint and classify
    provider error bodies. Nothing here retries.
    """

    provider_name = "Calendar provider"

    def __init__(self, transport: TransportClient):
        self._transport = transport

    async def _request(
        self,
        method: str,
        url: str,
        token: str,
        body: Any = None,
        params: Optional[dict] = None,
        extra_headers: Optional[dict] = None,
    ) -> Any:
        """
        Send an authenticated request.

        Args:
            method: HTTP method
            url: Absolute endpoint URL
            token: Bearer token
            body: JSON body
            params: Query string parameters
            extra_headers: Provider-specific headers

        Returns:
            Decoded response body (None for empty responses)

        Raises:
            CalendarSyncError: Classified provider or connectivity failure
        """
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            **(extra_headers or {}),
        }
        response = await self._transport.request(
            method, url, headers=headers, body=body, params=params
        )
        if not response.ok:
            error = self._handle_http_error(response)
            logger.error(
                f"{self.provider_name} {method} {url} failed ({response.status}): {error.message}"
            )
            raise error
        return response.data

    @abstractmethod
    def _handle_http_error(self, response: TransportResponse) -> CalendarSyncError:
        """Classify an error response."""
        ...
