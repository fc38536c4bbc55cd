"""
Google Calendar, People and OAuth userinfo API client.

Provides one method per endpoint over the shared transport, with Google
error bodies classified into the error taxonomy.
"""

import logging
from typing import Optional
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

PERSON_FIELDS = "emailAddresses,names,phoneNumbers,organizations"
DIRECTORY_SOURCES = "DIRECTORY_SOURCE_TYPE_DOMAIN_PROFILE,DIRECTORY_SOURCE_TYPE_DOMAIN_CONTACT"
RATE_LIMIT_REASONS = {"rateLimitExceeded", "userRateLimitExceeded", "quotaExceeded"}


def _error_message(response: TransportResponse) -> str:
    data = response.data
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return data["error"].get("message") or f"HTTP error {response.status}"
    return f"HTTP error {response.status}"


def _error_reasons(response: TransportResponse) -> set[str]:
    data = response.data
    if not isinstance(data, dict) or not isinstance(data.get("error"), dict):
        return set()
    return {
        item.get("reason", "")
        for item in data["error"].get("errors", [])
        if isinstance(item, dict)
    }


def _handle_http_error(response: TransportResponse) -> CalendarSyncError:
    """Convert a Google error response to the matching CalendarSyncError."""
    status = response.status
    message = _error_message(response)

    if status == 401:
        return UnauthorizedError(f"Google Calendar authentication failed: {message}")
    elif status == 403:
        if _error_reasons(response) & RATE_LIMIT_REASONS:
            return RateLimitError(f"Google Calendar rate limit exceeded, retry later: {message}")
        return UnauthorizedError(f"Google Calendar permission denied: {message}")
    elif status == 404:
        return ProviderNotFoundError(f"Google Calendar resource not found: {message}")
    elif status == 429:
        return RateLimitError(f"Google Calendar rate limit exceeded, retry later: {message}")
    elif status == 400:
        return InvalidRequestError(f"Google Calendar rejected the request: {message}")
    else:
        return ProviderError(f"Google Calendar API error ({status}): {message}")


class GoogleCalendarClient(ProviderApiClient):
    """
    Wrapper around Google Calendar API v3, People API v1 and OAuth userinfo.

    Provides:
    - Consistent error classification
    - Pagination handling for list operations
    """

    provider_name = "Google Calendar"

    def __init__(self, transport: TransportClient, settings: Optional[Settings] = None):
        super().__init__(transport)
        settings = settings or get_settings()
        self._calendar_url = settings.google_api_url.rstrip("/")
        self._people_url = settings.google_people_api_url.rstrip("/")
        self._userinfo_url = settings.google_userinfo_url

    def _handle_http_error(self, response: TransportResponse) -> CalendarSyncError:
        return _handle_http_error(response)

    def _event_url(self, event_id: str) -> str:
        return f"{self._calendar_url}/calendars/primary/events/{quote(event_id, safe='')}"

    # -------------------------------------------------------------------------
    # Calendar events
    # -------------------------------------------------------------------------

    async def list_events(
        self,
        token: str,
        time_min: str,
        time_max: str,
        page_token: Optional[str] = None,
        max_results: int = 250,
    ) -> dict:
        """
        List one page of primary calendar events.

        Args:
            token: Access token
            time_min: Lower bound (RFC 3339)
            time_max: Upper bound (RFC 3339)
            page_token: Token for pagination
            max_results: Maximum events per page

        Returns:
            API response with items and nextPageToken
        """
        params = {
            "timeMin": time_min,
            "timeMax": time_max,
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": str(max_results),
        }
        if page_token:
            params["pageToken"] = page_token

        return await self._request(
            "GET", f"{self._calendar_url}/calendars/primary/events", token, params=params
        ) or {}

    async def list_all_events(self, token: str, time_min: str, time_max: str) -> list[dict]:
        """List all events in a range, following nextPageToken."""
        all_events: list[dict] = []
        page_token = None

        while True:
            response = await self.list_events(token, time_min, time_max, page_token=page_token)
            all_events.extend(response.get("items", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                break

        logger.debug(f"Listed {len(all_events)} Google events")
        return all_events

    async def get_event(self, token: str, event_id: str) -> dict:
        return await self._request(
            "GET", self._event_url(event_id), token
        )

    async def insert_event(self, token: str, body: dict) -> dict:
        """Insert an event, allowing Meet conference creation."""
        return await self._request(
            "POST",
            f"{self._calendar_url}/calendars/primary/events",
            token,
            body=body,
            params={"conferenceDataVersion": "1"},
        )

    async def patch_event(self, token: str, event_id: str, body: dict) -> dict:
        return await self._request(
            "PATCH",
            self._event_url(event_id),
            token,
            body=body,
            params={"conferenceDataVersion": "1"},
        )

    async def delete_event(self, token: str, event_id: str) -> None:
        await self._request(
            "DELETE", self._event_url(event_id), token
        )

    # -------------------------------------------------------------------------
    # People / profile
    # -------------------------------------------------------------------------

    async def list_connections(self, token: str) -> list[dict]:
        data = await self._request(
            "GET",
            f"{self._people_url}/people/me/connections",
            token,
            params={"pageSize": "1000", "personFields": PERSON_FIELDS},
        )
        return (data or {}).get("connections") or (data or {}).get("people") or []

    async def list_other_contacts(self, token: str) -> list[dict]:
        data = await self._request(
            "GET",
            f"{self._people_url}/people/me/otherContacts",
            token,
            params={"pageSize": "1000", "readMask": PERSON_FIELDS},
        )
        return (data or {}).get("otherContacts") or (data or {}).get("people") or []

    async def list_contact_groups(self, token: str) -> list[dict]:
        data = await self._request("GET", f"{self._people_url}/contactGroups", token)
        return (data or {}).get("contactGroups", [])

    async def search_directory_people(self, token: str) -> list[dict]:
        data = await self._request(
            "GET",
            f"{self._people_url}/people:searchDirectoryPeople",
            token,
            params={
                "query": "",
                "readMask": PERSON_FIELDS,
                "sources": DIRECTORY_SOURCES,
            },
        )
        return (data or {}).get("people", [])

    async def get_userinfo(self, token: str) -> dict:
        return await self._request("GET", self._userinfo_url, token) or {}
