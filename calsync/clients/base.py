"""
Base HTTP client for downstream services (activity, task, object storage).

All downstream services share one authentication scheme: an `x-api-key`
header with a service key from settings.
"""

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class ServiceClientError(Exception):
    """Downstream service call failed."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ServiceClient:
    """
    JSON-over-HTTP client for one downstream service.

    Args:
        base_url: Service base URL
        api_key: Key sent in the x-api-key header
        http_client: Optional shared httpx.AsyncClient
        timeout: Request timeout in seconds
    """

    service_name = "service"

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._http_client = http_client
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    async def _send(self, method: str, path: str, body: Optional[dict] = None) -> Any:
        """
        Send a JSON request and return the decoded response body.

        Raises:
            ServiceClientError: If the service is not configured, unreachable,
                or returns an error status
        """
        if not self.is_configured:
            raise ServiceClientError(f"{self.service_name} URL is not configured")

        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json", "x-api-key": self.api_key}

        try:
            if self._http_client is not None:
                response = await self._http_client.request(method, url, json=body, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.request(method, url, json=body, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ServiceClientError(
                f"{self.service_name} returned {e.response.status_code}",
                original_error=e,
            )
        except httpx.HTTPError as e:
            raise ServiceClientError(
                f"{self.service_name} request failed: {e}",
                original_error=e,
            )

        if not response.content:
            return {}
        return response.json()
