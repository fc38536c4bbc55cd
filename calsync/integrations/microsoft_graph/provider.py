"""
Microsoft Graph calendar provider.

Implements the CalendarProvider contract on top of MicrosoftGraphClient and
MicrosoftGraphAdapter.
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
from calsync.integrations.mapping import format_datetime
from calsync.integrations.microsoft_graph.adapter import MicrosoftGraphAdapter
from calsync.integrations.microsoft_graph.client import MicrosoftGraphClient
from calsync.integrations.provider import BaseCalendarProvider
from calsync.services.event_store import EventStore

logger = logging.getLogger(__name__)


class MicrosoftGraphProvider(BaseCalendarProvider):
    """
    Microsoft Graph variant of the calendar provider.

    Contacts merge `me/contacts` followed by `me/people`; duplicates across
    the two are removed by the shared de-duplication.
    """

    tag = ProviderTag.MICROSOFT

    def __init__(
        self,
        client: MicrosoftGraphClient,
        store: EventStore,
        activity_client: Optional[ActivityClient] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(store, activity_client, settings)
        self._client = client

    async def _fetch_events(self, token: str, start: datetime, end: datetime) -> list[dict]:
        return await self._client.list_calendar_view(
            token, format_datetime(start), format_datetime(end)
        )

    def _to_canonical(self, raw: dict) -> CanonicalEvent:
        return MicrosoftGraphAdapter.from_graph_event(raw)

    def _build_create_body(self, request: CreateEventRequest, organizer_name: Optional[str]) -> dict:
        return MicrosoftGraphAdapter.to_graph_event(request, organizer_name)

    async def _insert_event(self, token: str, body: dict) -> dict:
        return await self._client.create_event(token, body)

    async def _get_event(self, token: str, event_id: str) -> dict:
        return await self._client.get_event(token, event_id)

    def _build_update_body(self, patch: EventPatch, existing: CanonicalEvent) -> dict:
        return MicrosoftGraphAdapter.to_update_body(patch, existing)

    async def _patch_event(self, token: str, event_id: str, body: dict) -> dict:
        return await self._client.update_event(token, event_id, body)

    async def _remove_event(self, token: str, event_id: str) -> None:
        await self._client.delete_event(token, event_id)

    async def get_user_profile(self, token: str) -> UserProfile:
        return MicrosoftGraphAdapter.from_me(await self._client.get_me(token))

    async def _fetch_contacts(self, token: str) -> list[Contact]:
        contacts = await self._client.list_contacts(token)
        people = await self._client.list_people(token)
        return [
            MicrosoftGraphAdapter.from_graph_contact(entry, "contacts") for entry in contacts
        ] + [
            MicrosoftGraphAdapter.from_graph_contact(entry, "people") for entry in people
        ]
