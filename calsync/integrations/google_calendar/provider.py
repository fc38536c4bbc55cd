"""
Google Calendar provider.

Implements the CalendarProvider contract on top of GoogleCalendarClient and
GoogleCalendarAdapter.
"""

import logging
from datetime import datetime
from typing import Optional

from calsync.clients.activity import ActivityClient
from calsync.config import Settings
from calsync.integrations.base import (
    CanonicalEvent,
    Contact,
    CreateEventRequest,
    EventPatch,
    ProviderTag,
    UserProfile,
)
from calsync.integrations.google_calendar.adapter import GoogleCalendarAdapter
from calsync.integrations.google_calendar.client import GoogleCalendarClient
from calsync.integrations.mapping import format_datetime
from calsync.integrations.provider import BaseCalendarProvider
from calsync.services.best_effort import attempt
from calsync.services.event_store import EventStore

logger = logging.getLogger(__name__)


class GoogleCalendarProvider(BaseCalendarProvider):
    """
    Google Calendar variant of the calendar provider.

    Contacts come from the People API, trying primary connections, then
    "other contacts", then directory members of non-empty contact groups,
    and stopping at the first strategy that returns anyone.
    """

    tag = ProviderTag.GOOGLE

    def __init__(
        self,
        client: GoogleCalendarClient,
        store: EventStore,
        activity_client: Optional[ActivityClient] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(store, activity_client, settings)
        self._client = client

    async def _fetch_events(self, token: str, start: datetime, end: datetime) -> list[dict]:
        return await self._client.list_all_events(
            token, format_datetime(start), format_datetime(end)
        )

    def _to_canonical(self, raw: dict) -> CanonicalEvent:
        return GoogleCalendarAdapter.from_google_event(raw)

    def _build_create_body(self, request: CreateEventRequest, organizer_name: Optional[str]) -> dict:
        return GoogleCalendarAdapter.to_google_event(request, organizer_name)

    async def _insert_event(self, token: str, body: dict) -> dict:
        return await self._client.insert_event(token, body)

    async def _get_event(self, token: str, event_id: str) -> dict:
        return await self._client.get_event(token, event_id)

    def _build_update_body(self, patch: EventPatch, existing: CanonicalEvent) -> dict:
        return GoogleCalendarAdapter.to_update_body(patch, existing)

    async def _patch_event(self, token: str, event_id: str, body: dict) -> dict:
        return await self._client.patch_event(token, event_id, body)

    async def _remove_event(self, token: str, event_id: str) -> None:
        await self._client.delete_event(token, event_id)

    async def get_user_profile(self, token: str) -> UserProfile:
        return GoogleCalendarAdapter.from_userinfo(await self._client.get_userinfo(token))

    async def _fetch_contacts(self, token: str) -> list[Contact]:
        people = await self._client.list_connections(token)
        if people:
            return _to_contacts(people, "connections")

        logger.info("No Google connections found, trying other contacts")
        outcome = await attempt(self._client.list_other_contacts(token), "Google other contacts lookup")
        if outcome.value:
            return _to_contacts(outcome.value, "otherContacts")

        groups = await attempt(self._client.list_contact_groups(token), "Google contact groups lookup")
        group_people: list[dict] = []
        for group in groups.value or []:
            if not group.get("memberResourceNames"):
                continue
            members = await attempt(
                self._client.search_directory_people(token),
                f"Google directory lookup for group {group.get('resourceName')}",
            )
            group_people.extend(members.value or [])

        if group_people:
            return _to_contacts(group_people, "contactGroups")

        logger.info("No Google contacts found")
        return []


def _to_contacts(people: list[dict], source: str) -> list[Contact]:
    return [GoogleCalendarAdapter.from_person(person, source) for person in people]
