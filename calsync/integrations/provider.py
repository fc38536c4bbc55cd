"""
Shared calendar provider workflow.

BaseCalendarProvider implements the CalendarProvider contract once:
validation before any network call, sparse update merging, local mirror
writes, best-effort activity logging and profile lookups. Each provider
variant supplies only its wire mapping and endpoint calls.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, replace
from datetime import datetime
from typing import Any, Optional, Sequence

from calsync.clients.activity import ActivityClient, ActivityType
from calsync.config import Settings, get_settings
from calsync.integrations.base import (
    CanonicalEvent,
    Contact,
    CreateEventRequest,
    DeleteResult,
    EventPatch,
    ProviderTag,
    UserProfile,
)
from calsync.integrations.mapping import (
    coerce_timestamp,
    dedupe_contacts,
    default_time_range,
    resolve_organizer_name,
    validate_time_range,
)
from calsync.services.best_effort import attempt
from calsync.services.event_store import EventStore, record_to_event

logger = logging.getLogger(__name__)

# Mirror columns that only exist locally and are not round-tripped by providers
LOCAL_ONLY_FIELDS = ("lead_id", "location_type", "location_details", "outcome")


class BaseCalendarProvider(ABC):
    """
    Template for a calendar provider variant.

    Args:
        store: Event Store for the local mirror
        activity_client: Activity collaborator (None disables activity logging)
        settings: Application settings
    """

    tag: ProviderTag

    def __init__(
        self,
        store: EventStore,
        activity_client: Optional[ActivityClient] = None,
        settings: Optional[Settings] = None,
    ):
        self._store = store
        self._activity = activity_client
        self._settings = settings or get_settings()

    # -------------------------------------------------------------------------
    # Provider wire hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    async def _fetch_events(self, token: str, start: datetime, end: datetime) -> list[dict]:
        ...

    @abstractmethod
    def _to_canonical(self, raw: dict) -> CanonicalEvent:
        ...

    @abstractmethod
    def _build_create_body(self, request: CreateEventRequest, organizer_name: Optional[str]) -> dict:
        ...

    @abstractmethod
    async def _insert_event(self, token: str, body: dict) -> dict:
        ...

    @abstractmethod
    async def _get_event(self, token: str, event_id: str) -> dict:
        ...

    @abstractmethod
    def _build_update_body(self, patch: EventPatch, existing: CanonicalEvent) -> dict:
        ...

    @abstractmethod
    async def _patch_event(self, token: str, event_id: str, body: dict) -> dict:
        ...

    @abstractmethod
    async def _remove_event(self, token: str, event_id: str) -> None:
        ...

    @abstractmethod
    async def _fetch_contacts(self, token: str) -> list[Contact]:
        ...

    @abstractmethod
    async def get_user_profile(self, token: str) -> UserProfile:
        ...

    # -------------------------------------------------------------------------
    # CalendarProvider operations
    # -------------------------------------------------------------------------

    async def list_events(
        self,
        token: str,
        range_start: Optional[datetime] = None,
        range_end: Optional[datetime] = None,
    ) -> Sequence[CanonicalEvent]:
        """
        List provider events in a range.

        Missing bounds default to the start of today and the end of the day
        `default_lookahead_months` out. Organizer names missing from the
        payload are backfilled from one best-effort profile lookup.
        """
        default_start, default_end = default_time_range(self._settings.default_lookahead_months)
        start = coerce_timestamp(range_start, "range start") if range_start else default_start
        end = coerce_timestamp(range_end, "range end") if range_end else default_end

        raw_events = await self._fetch_events(token, start, end)
        events = [self._to_canonical(raw) for raw in raw_events]

        profile = None
        if any(not event.organizer_name for event in events):
            profile = await self._lookup_profile(token)

        for event in events:
            event.organizer_name = resolve_organizer_name(
                event.organizer, event.organizer_name, profile
            )

        logger.info(f"Listed {len(events)} {self.tag.value} events between {start} and {end}")
        return events

    async def create_event(self, token: str, request: CreateEventRequest) -> CanonicalEvent:
        """
        Create an event, mirror it locally and log a lead activity.

        Raises:
            InvalidRequestError: If the time range is invalid (no call is made)
            CalendarSyncError: Classified provider failure
        """
        start, end = validate_time_range(request.start_time, request.end_time)
        request = replace(request, start_time=start, end_time=end)

        organizer_name = request.organizer_name
        if not organizer_name:
            profile = await self._lookup_profile(token)
            if profile is not None and profile.name:
                organizer_name = profile.name

        raw = await self._insert_event(token, self._build_create_body(request, organizer_name))
        event = self._to_canonical(raw)

        event.lead_id = request.lead_id
        event.outcome = request.outcome
        if request.location_type is not None:
            event.location_type = request.location_type.value
        if request.location_details:
            event.location_details = request.location_details
        event.description = event.description or request.description
        event.timezone = event.timezone or request.timezone or "UTC"
        event.organizer = event.organizer or request.organizer
        event.organizer_name = resolve_organizer_name(
            event.organizer, organizer_name or event.organizer_name
        )
        event.user_id = event.organizer

        await self._store.insert_event(event)
        logger.info(f"Created {self.tag.value} event {event.external_id}")

        if event.lead_id:
            await self._log_activity(
                ActivityType.CALENDAR_EVENT_CREATED,
                event,
                f"Calendar event created: {event.title}",
            )

        return event

    async def update_event(self, token: str, event_id: str, patch: EventPatch) -> CanonicalEvent:
        """
        Apply a sparse update.

        The existing provider event is fetched first. A start-only change
        keeps the old duration; an end-only change keeps the old start. The
        range is validated only when the caller supplied both bounds. Only
        supplied fields reach the provider payload and the local mirror.

        Raises:
            InvalidRequestError: If a required field is cleared (no call is made)
        """
        patch.validate()
        existing = self._to_canonical(await self._get_event(token, event_id))
        effective = self._resolve_times(patch, existing)

        raw = await self._patch_event(token, event_id, self._build_update_body(effective, existing))
        updated = self._to_canonical(raw)

        mirror_values = self._mirror_values(effective, updated)
        if mirror_values:
            record = await self._store.update_event_by_external_id(event_id, mirror_values)
        else:
            record = await self._store.get_event_by_external_id(event_id)

        if record is not None:
            for name in LOCAL_ONLY_FIELDS:
                setattr(updated, name, getattr(record, name))
            updated.user_id = record.user_id
            updated.organizer_name = updated.organizer_name or record.organizer_name
        else:
            for name in LOCAL_ONLY_FIELDS:
                if effective.is_set(name):
                    setattr(updated, name, _plain(effective.changed_fields()[name]))

        if not updated.organizer_name:
            profile = await self._lookup_profile(token)
            updated.organizer_name = resolve_organizer_name(updated.organizer, None, profile)

        if updated.lead_id:
            await self._log_activity(
                ActivityType.CALENDAR_EVENT_UPDATED,
                updated,
                f"Calendar event updated: {updated.title}",
                {"updatedFields": list(patch.changed_fields())},
            )

        logger.info(f"Updated {self.tag.value} event {event_id}: {', '.join(patch.changed_fields())}")
        return updated

    async def delete_event(self, token: str, event_id: str) -> DeleteResult:
        """
        Delete an event.

        Provider deletion is attempted only with a usable token and its
        failure is logged, not raised. The local mirror is always
        deactivated.
        """
        if token and token.strip():
            outcome = await attempt(
                self._remove_event(token, event_id),
                f"{self.tag.value} delete of event {event_id}",
            )
            if outcome.ok:
                logger.info(f"Deleted {self.tag.value} event {event_id}")

        record = await self._store.soft_delete_event(event_id)

        if record is not None and record.lead_id:
            event = record_to_event(record)
            await self._log_activity(
                ActivityType.CALENDAR_EVENT_DELETED,
                event,
                f"Calendar event deleted: {event.title}",
            )

        return DeleteResult(event_id=event_id)

    async def get_contacts(self, token: str) -> Sequence[Contact]:
        """Get provider contacts de-duplicated by lowercase email."""
        contacts = dedupe_contacts(await self._fetch_contacts(token))
        logger.info(f"Fetched {len(contacts)} {self.tag.value} contacts")
        return contacts

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _resolve_times(self, patch: EventPatch, existing: CanonicalEvent) -> EventPatch:
        start_set = patch.is_set("start_time")
        end_set = patch.is_set("end_time")

        if start_set and end_set:
            start, end = validate_time_range(patch.start_time, patch.end_time)
            return patch.merged(start_time=start, end_time=end)

        if start_set:
            start = coerce_timestamp(patch.start_time, "start time")
            duration = existing.end_time - existing.start_time
            return patch.merged(start_time=start, end_time=start + duration)

        if end_set:
            return patch.merged(end_time=coerce_timestamp(patch.end_time, "end time"))

        return patch

    def _mirror_values(self, patch: EventPatch, updated: CanonicalEvent) -> dict[str, Any]:
        """Column values for the supplied fields only."""
        values: dict[str, Any] = {}
        for name, value in patch.changed_fields().items():
            if name == "attendees":
                values["attendees"] = [asdict(attendee) for attendee in updated.attendees]
            else:
                values[name] = _plain(value)

        if patch.is_set("location_type"):
            values["is_online_meeting"] = updated.is_online_meeting
            values["online_meeting_provider"] = updated.online_meeting_provider
            values["meeting_link"] = updated.meeting_link

        return values

    async def _lookup_profile(self, token: str) -> Optional[UserProfile]:
        outcome = await attempt(
            self.get_user_profile(token),
            f"{self.tag.value} profile lookup",
        )
        return outcome.value

    async def _log_activity(
        self,
        activity_type: ActivityType,
        event: CanonicalEvent,
        description: str,
        extra: Optional[dict] = None,
    ) -> None:
        if self._activity is None:
            return

        metadata = {
            "eventId": event.external_id,
            "provider": self.tag.value,
            "title": event.title,
            "startTime": event.start_time.isoformat(),
            "endTime": event.end_time.isoformat(),
            "durationMinutes": event.duration_minutes,
            "attendees": [attendee.email for attendee in event.attendees],
            **(extra or {}),
        }
        await attempt(
            self._activity.log_activity(
                lead_id=event.lead_id,
                activity_type=activity_type,
                description=description,
                performed_by=event.organizer or self._settings.default_actor,
                metadata=metadata,
            ),
            f"{activity_type.value} activity logging for event {event.external_id}",
        )


def _plain(value: Any) -> Any:
    """Unwrap enum members to their stored value."""
    return getattr(value, "value", value)
