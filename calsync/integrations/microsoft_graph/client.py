"""
Microsoft Graph API client for calendar, contacts and profile endpoints.

Graph errors carry a string `code`; known codes are classified first and
the HTTP status decides the rest.
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

from calsync.config import Settings, get_settings
from calsync.integrations.client import ProviderApiClient
from calsync.integrations.exceptions import (
    CalendarSyncError,
    InvalidRequestError,
    ProviderError,
    ProviderNotFoundError,
    RateLimitError,
    UnauthorizedError,
)
from calsync.integrations.transport import TransportClient, TransportResponse

logger = logging.getLogger(__name__)

EVENT_FIELDS = ",".join([
    "id",
    "subject",
    "body",
    "start",
    "end",
    "location",
    "attendees",
    "organizer",
    "isAllDay",
    "isOnlineMeeting",
    "onlineMeetingProvider",
    "onlineMeeting",
    "originalStartTimeZone",
])

# Responses report dateTime values in UTC
PREFER_UTC = {"Prefer": 'outlook.timezone="UTC"'}

AUTH_CODES = {"InvalidAuthenticationToken", "AuthenticationFailed"}
ACCESS_DENIED_CODES = {"ErrorAccessDenied", "AccessDenied", "Authorization_RequestDenied"}
NOT_FOUND_CODES = {"ResourceNotFound", "ErrorItemNotFound", "ItemNotFound"}
INVALID_REQUEST_CODES = {"InvalidRequest", "ErrorInvalidRequest", "BadRequest"}
THROTTLE_CODES = {"TooManyRequests", "ApplicationThrottled", "ErrorTooManyRequests"}


def _graph_error(response: TransportResponse) -> tuple[Optional[str], Optional[str]]:
    data = response.data
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return data["error"].get("code"), data["error"].get("message")
    return None, None


def _event_path(event_id: str) -> str:
    """Event ids may contain path characters such as '/'."""
    return f"me/events/{quote(event_id, safe='')}"


def _handle_http_error(response: TransportResponse) -> CalendarSyncError:
    """Convert a Graph error response to the matching CalendarSyncError."""
    status = response.status
    code, message = _graph_error(response)
    message = message or f"HTTP error {status}"

    if code in AUTH_CODES:
        return UnauthorizedError(f"Microsoft Graph authentication failed: {message}")
    if code in ACCESS_DENIED_CODES:
        return UnauthorizedError("Access denied to calendar")
    if code in NOT_FOUND_CODES:
        return ProviderNotFoundError("Calendar or event not found")
    if code in THROTTLE_CODES or status == 429:
        return RateLimitError(f"Microsoft Graph rate limit exceeded, retry later: {message}")
    if code in INVALID_REQUEST_CODES:
        return InvalidRequestError(message)

    if status == 401:
        return UnauthorizedError("Microsoft Graph access not authorized or token expired")
    if status == 403:
        return UnauthorizedError("Insufficient permissions to access calendar")
    if status == 404:
        return ProviderNotFoundError("Calendar or event not found")
    if status == 400:
        return InvalidRequestError(message)
    return ProviderError(f"Microsoft Graph API error ({status}): {message}")


class MicrosoftGraphClient(ProviderApiClient):
    """
    Wrapper around Microsoft Graph v1.0.

    Provides:
    - Consistent error classification
    - @odata.nextLink pagination for list operations
    """

    provider_name = "Microsoft Graph"

    def __init__(self, transport: TransportClient, settings: Optional[Settings] = None):
        super().__init__(transport)
        settings = settings or get_settings()
        self._base_url = settings.microsoft_graph_url.rstrip("/")

    def _handle_http_error(self, response: TransportResponse) -> CalendarSyncError:
        return _handle_http_error(response)

    async def _graph(
        self,
        method: str,
        path: str,
        token: str,
        body: Any = None,
        params: Optional[dict] = None,
    ) -> Any:
        url = path if path.startswith("http") else f"{self._base_url}/{path}"
        return await self._request(method, url, token, body=body, params=params, extra_headers=PREFER_UTC)

    async def _collect(self, path: str, token: str, params: Optional[dict] = None) -> list[dict]:
        """Follow @odata.nextLink until all pages are read."""
        items: list[dict] = []
        data = await self._graph("GET", path, token, params=params) or {}
        items.extend(data.get("value", []))

        while data.get("@odata.nextLink"):
            data = await self._graph("GET", data["@odata.nextLink"], token) or {}
            items.extend(data.get("value", []))

        return items

    async def list_calendar_view(self, token: str, start: str, end: str) -> list[dict]:
        """
        List event occurrences between two instants.

        Args:
            token: Access token
            start: Range start (ISO-8601)
            end: Range end (ISO-8601)
        """
        return await self._collect(
            "me/calendarView",
            token,
            params={"startDateTime": start, "endDateTime": end, "$select": EVENT_FIELDS},
        )

    async def get_event(self, token: str, event_id: str) -> dict:
        return await self._graph("GET", _event_path(event_id), token)

    async def create_event(self, token: str, body: dict) -> dict:
        return await self._graph("POST", "me/events", token, body=body)

    async def update_event(self, token: str, event_id: str, body: dict) -> dict:
        return await self._graph("PATCH", _event_path(event_id), token, body=body)

    async def delete_event(self, token: str, event_id: str) -> None:
        await self._graph("DELETE", _event_path(event_id), token)

    async def list_contacts(self, token: str) -> list[dict]:
        return await self._collect("me/contacts", token)

    async def list_people(self, token: str) -> list[dict]:
        data = await self._graph("GET", "me/people", token) or {}
        return data.get("value", [])

    async def get_me(self, token: str) -> dict:
        return await self._graph(
            "GET", "me", token, params={"$select": "displayName,mail,userPrincipalName"}
        ) or {}
