"""
Unified Feed Builder.

Merges locally mirrored calendar events and logged meetings into one
timeline ordered by start time, newest first.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from calsync.integrations.base import CalendarProvider, UserProfile
from calsync.integrations.mapping import ensure_utc, resolve_organizer_name
from calsync.models.events import CalendarEventRecord
from calsync.models.meetings import LoggedMeeting
from calsync.services.best_effort import attempt
from calsync.services.event_store import EventStore

logger = logging.getLogger(__name__)

SOURCE_CALENDAR_EVENT = "calendar_event"
SOURCE_LOGGED_MEETING = "logged_meeting"
VIRTUAL_MEETING = "VIRTUAL"


@dataclass
class FeedFilters:
    """Optional filters; provider and user apply to calendar events only."""

    provider: Optional[str] = None
    user_id: Optional[str] = None
    lead_id: Optional[str] = None


@dataclass
class FeedItem:
    """One entry of the unified timeline."""

    source: str
    id: str
    title: str
    start_time: datetime
    end_time: datetime
    organizer: Optional[str] = None
    organizer_name: Optional[str] = None
    description: Optional[str] = None
    timezone: Optional[str] = None
    all_day: bool = False
    location_type: Optional[str] = None
    location_details: Optional[str] = None
    attendees: list[dict] = field(default_factory=list)
    is_online_meeting: bool = False
    online_meeting_provider: Optional[str] = None
    meeting_link: Optional[str] = None
    outcome: Optional[str] = None
    lead_id: Optional[str] = None
    provider: Optional[str] = None
    external_id: Optional[str] = None
    meeting_type: Optional[str] = None
    duration: Optional[int] = None
    activity_id: Optional[str] = None
    task_id: Optional[str] = None
    attachment: Optional[str] = None


class FeedBuilder:
    """
    Builds the unified feed from the Event Store.

    Args:
        store: Event Store to read from
    """

    def __init__(self, store: EventStore):
        self._store = store

    async def build_feed(
        self,
        filters: FeedFilters,
        token: Optional[str] = None,
        profile_source: Optional[CalendarProvider] = None,
    ) -> list[FeedItem]:
        """
        Merge active calendar events and logged meetings.

        When a token and a profile source (the Google provider) are given,
        one best-effort profile lookup fills organizer names the mirror
        lacks. Failure of that lookup never fails the feed.

        Args:
            filters: Provider, user and lead filters
            token: Bearer token for the profile lookup
            profile_source: Provider used for the profile lookup

        Returns:
            Items sorted by start time descending; ties keep input order
        """
        event_filters: dict = {"is_active": True}
        if filters.provider:
            event_filters["provider"] = filters.provider.lower()
        if filters.user_id:
            event_filters["user_id"] = filters.user_id
        if filters.lead_id:
            event_filters["lead_id"] = filters.lead_id

        meeting_filters: dict = {"is_active": True}
        if filters.lead_id:
            meeting_filters["lead_id"] = filters.lead_id

        events = await self._store.find_events(event_filters)
        meetings = await self._store.find_meetings(meeting_filters)

        profile: Optional[UserProfile] = None
        if token and profile_source is not None and any(not e.organizer_name for e in events):
            outcome = await attempt(
                profile_source.get_user_profile(token),
                "Feed organizer profile lookup",
            )
            profile = outcome.value

        items = [_event_item(record, profile) for record in events]
        items.extend(_meeting_item(meeting) for meeting in meetings)

        logger.info(
            f"Built feed with {len(events)} calendar events and {len(meetings)} logged meetings"
        )
        return sorted(items, key=lambda item: item.start_time, reverse=True)


def _event_item(record: CalendarEventRecord, profile: Optional[UserProfile]) -> FeedItem:
    return FeedItem(
        source=SOURCE_CALENDAR_EVENT,
        id=str(record.id),
        title=record.title,
        start_time=ensure_utc(record.start_time),
        end_time=ensure_utc(record.end_time),
        organizer=record.organizer,
        organizer_name=resolve_organizer_name(record.organizer, record.organizer_name, profile),
        description=record.description,
        timezone=record.timezone,
        all_day=record.all_day,
        location_type=record.location_type,
        location_details=record.location_details,
        attendees=list(record.attendees or []),
        is_online_meeting=record.is_online_meeting,
        online_meeting_provider=record.online_meeting_provider,
        meeting_link=record.meeting_link,
        outcome=record.outcome,
        lead_id=record.lead_id,
        provider=record.provider,
        external_id=record.external_id,
    )


def _meeting_item(meeting: LoggedMeeting) -> FeedItem:
    # A logged meeting is a point in time, not an interval
    moment = ensure_utc(meeting.meeting_datetime)
    return FeedItem(
        source=SOURCE_LOGGED_MEETING,
        id=str(meeting.id),
        title=meeting.title,
        start_time=moment,
        end_time=moment,
        organizer=meeting.logged_by,
        organizer_name=meeting.logged_by,
        description=meeting.summary,
        location_type=meeting.meeting_type,
        location_details=meeting.location,
        attendees=list(meeting.participants or []),
        is_online_meeting=meeting.meeting_type == VIRTUAL_MEETING,
        online_meeting_provider=meeting.virtual_provider,
        outcome=meeting.outcome,
        lead_id=meeting.lead_id,
        meeting_type=meeting.meeting_type,
        duration=meeting.duration,
        activity_id=meeting.activity_id,
        task_id=meeting.task_id,
        attachment=meeting.attachment,
    )
