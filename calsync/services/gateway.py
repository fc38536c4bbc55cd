"""
Sync Gateway - routes requests to a calendar provider or the local mirror.

Provider operations need both an `Authorization: Bearer <token>` header and
an `X-Calendar-Provider` header. Update and delete of a single event with
neither header operate on the local mirror only.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from calsync.clients.activity import ActivityClient
from calsync.config import Settings, get_settings
from calsync.integrations.base import (
    CanonicalEvent,
    Contact,
    CreateEventRequest,
    DeleteResult,
    EventPatch,
    ProviderTag,
)
from calsync.integrations.exceptions import (
    CalendarSyncError,
    InvalidRequestError,
    NotFoundError,
    UnauthorizedError,
)
from calsync.integrations.google_calendar import GoogleCalendarClient, GoogleCalendarProvider
from calsync.integrations.mapping import coerce_timestamp, validate_time_range
from calsync.integrations.microsoft_graph import MicrosoftGraphClient, MicrosoftGraphProvider
from calsync.integrations.provider import BaseCalendarProvider
from calsync.integrations.transport import TransportClient
from calsync.services.event_store import EventStore, record_to_event
from calsync.services.feed import FeedBuilder, FeedFilters, FeedItem

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def validate_headers(
    authorization: Optional[str],
    provider: Optional[str],
) -> tuple[str, ProviderTag]:
    """
    Validate the provider header pair.

    Args:
        authorization: Authorization header value
        provider: X-Calendar-Provider header value

    Returns:
        (token, provider tag)

    Raises:
        UnauthorizedError: Missing, non-Bearer or empty authorization
        InvalidRequestError: Missing or unknown provider
    """
    if not authorization:
        raise UnauthorizedError("Authorization header is required")

    if not provider:
        raise InvalidRequestError("X-Calendar-Provider header is required")

    tag = ProviderTag.parse(provider)
    if tag is None:
        valid = ", ".join(t.value for t in ProviderTag)
        raise InvalidRequestError(f"Invalid calendar provider. Must be one of: {valid}")

    if not authorization.startswith(BEARER_PREFIX):
        raise UnauthorizedError("Authorization header must use the Bearer scheme")

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise UnauthorizedError("Bearer token is empty")

    return token, tag


def is_local_request(authorization: Optional[str], provider: Optional[str]) -> bool:
    """True when neither provider header was sent."""
    return not authorization and not provider


class SyncGateway:
    """
    Dispatches calendar operations to the matching provider.

    Args:
        store: Event Store bound to the current session
        transport: Transport shared by provider clients
        activity_client: Activity collaborator passed to providers
        settings: Application settings
    """

    def __init__(
        self,
        store: EventStore,
        transport: TransportClient,
        activity_client: Optional[ActivityClient] = None,
        settings: Optional[Settings] = None,
    ):
        self._store = store
        self._transport = transport
        self._activity = activity_client
        self._settings = settings or get_settings()

    def provider_for(self, tag: ProviderTag) -> BaseCalendarProvider:
        """Build the provider variant for a tag."""
        if tag == ProviderTag.GOOGLE:
            return GoogleCalendarProvider(
                GoogleCalendarClient(self._transport, self._settings),
                self._store,
                self._activity,
                self._settings,
            )
        return MicrosoftGraphProvider(
            MicrosoftGraphClient(self._transport, self._settings),
            self._store,
            self._activity,
            self._settings,
        )

    def _resolve(self, authorization: Optional[str], provider: Optional[str]) -> tuple[str, BaseCalendarProvider]:
        token, tag = validate_headers(authorization, provider)
        return token, self.provider_for(tag)

    async def list_events(
        self,
        authorization: Optional[str],
        provider: Optional[str],
        range_start: Optional[datetime] = None,
        range_end: Optional[datetime] = None,
    ) -> Sequence[CanonicalEvent]:
        token, calendar = self._resolve(authorization, provider)
        return await calendar.list_events(token, range_start, range_end)

    async def create_event(
        self,
        authorization: Optional[str],
        provider: Optional[str],
        request: CreateEventRequest,
    ) -> CanonicalEvent:
        token, calendar = self._resolve(authorization, provider)
        return await calendar.create_event(token, request)

    async def update_event(
        self,
        authorization: Optional[str],
        provider: Optional[str],
        event_id: str,
        patch: EventPatch,
    ) -> CanonicalEvent:
        """
        Update an event through its provider, or locally when no headers are sent.

        Raises:
            NotFoundError: Local-only update of an unknown event
        """
        if is_local_request(authorization, provider):
            return await self._update_local(event_id, patch)

        token, calendar = self._resolve(authorization, provider)
        return await calendar.update_event(token, event_id, patch)

    async def delete_event(
        self,
        authorization: Optional[str],
        provider: Optional[str],
        event_id: str,
    ) -> DeleteResult:
        """
        Delete an event through its provider, or locally when no headers are sent.

        Raises:
            NotFoundError: Local-only delete of an unknown event
        """
        if is_local_request(authorization, provider):
            record = await self._store.soft_delete_event(event_id)
            if record is None:
                raise NotFoundError(f"Calendar event {event_id} not found")
            logger.info(f"Deleted local-only event {event_id}")
            return DeleteResult(event_id=event_id)

        token, calendar = self._resolve(authorization, provider)
        return await calendar.delete_event(token, event_id)

    async def get_contacts(
        self,
        authorization: Optional[str],
        provider: Optional[str],
    ) -> Sequence[Contact]:
        token, calendar = self._resolve(authorization, provider)
        return await calendar.get_contacts(token)

    async def build_feed(
        self,
        filters: FeedFilters,
        authorization: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> list[FeedItem]:
        """
        Build the unified feed.

        Headers are optional here. A valid Google header pair enables the
        organizer profile backfill; anything else just skips it.
        """
        token = None
        profile_source = None
        if authorization and provider:
            try:
                token, tag = validate_headers(authorization, provider)
            except CalendarSyncError as e:
                logger.debug(f"Skipping feed profile lookup: {e.message}")
            else:
                if tag == ProviderTag.GOOGLE:
                    profile_source = self.provider_for(tag)

        return await FeedBuilder(self._store).build_feed(filters, token, profile_source)

    async def _update_local(self, event_id: str, patch: EventPatch) -> CanonicalEvent:
        patch.validate()
        record = await self._store.get_event_by_external_id(event_id)
        if record is None:
            raise NotFoundError(f"Calendar event {event_id} not found")

        values = {}
        for name, value in patch.changed_fields().items():
            if name == "attendees":
                values[name] = [
                    {"email": a.email, "name": a.name, "status": None} for a in (value or [])
                ]
            else:
                values[name] = getattr(value, "value", value)

        if patch.is_set("start_time") and patch.is_set("end_time"):
            values["start_time"], values["end_time"] = validate_time_range(
                patch.start_time, patch.end_time
            )
        elif patch.is_set("start_time"):
            start = coerce_timestamp(patch.start_time, "start time")
            values["start_time"] = start
            values["end_time"] = start + (record.end_time - record.start_time)
        elif patch.is_set("end_time"):
            values["end_time"] = coerce_timestamp(patch.end_time, "end time")

        updated = await self._store.update_event_by_external_id(event_id, values)
        logger.info(f"Updated local-only event {event_id}: {', '.join(values)}")
        return record_to_event(updated)
