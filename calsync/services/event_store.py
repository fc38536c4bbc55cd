"""
Event Store - persistence for calendar event mirrors and logged meetings.

Provides filtered find/count with sort, skip and limit, inserts, sparse
updates and soft deletes over an AsyncSession. Writes are flushed, not
committed; the session owner decides the transaction boundary.
"""

import logging
import uuid
from dataclasses import asdict
from typing import Any, Mapping, Optional, Sequence, Type

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from calsync.integrations.base import Attendee, CanonicalEvent, ProviderTag
from calsync.integrations.mapping import ensure_utc
from calsync.models.base import BaseModel
from calsync.models.events import CalendarEventRecord
from calsync.models.meetings import LoggedMeeting

logger = logging.getLogger(__name__)

# Canonical fields stored verbatim on the mirror
_EVENT_COLUMNS = (
    "external_id",
    "user_id",
    "lead_id",
    "title",
    "description",
    "start_time",
    "end_time",
    "timezone",
    "all_day",
    "location_type",
    "location_details",
    "organizer",
    "organizer_name",
    "meeting_link",
    "is_online_meeting",
    "online_meeting_provider",
    "outcome",
    "is_active",
)


def event_to_values(event: CanonicalEvent) -> dict:
    """Convert a canonical event to mirror column values."""
    values = {name: getattr(event, name) for name in _EVENT_COLUMNS}
    values["provider"] = ProviderTag(event.provider).value
    values["attendees"] = [asdict(attendee) for attendee in event.attendees]
    if values["location_type"] is not None:
        values["location_type"] = str(getattr(values["location_type"], "value", values["location_type"]))
    return values


def record_to_event(record: CalendarEventRecord) -> CanonicalEvent:
    """Convert a mirror row back to the canonical shape."""
    return CanonicalEvent(
        external_id=record.external_id,
        provider=ProviderTag(record.provider),
        title=record.title,
        start_time=ensure_utc(record.start_time),
        end_time=ensure_utc(record.end_time),
        description=record.description,
        timezone=record.timezone,
        all_day=record.all_day,
        location_type=record.location_type,
        location_details=record.location_details,
        attendees=[
            Attendee(
                email=attendee.get("email", ""),
                name=attendee.get("name"),
                status=attendee.get("status"),
            )
            for attendee in (record.attendees or [])
        ],
        organizer=record.organizer,
        organizer_name=record.organizer_name,
        meeting_link=record.meeting_link,
        is_online_meeting=record.is_online_meeting,
        online_meeting_provider=record.online_meeting_provider,
        user_id=record.user_id,
        lead_id=record.lead_id,
        outcome=record.outcome,
        is_active=record.is_active,
    )


def _build_conditions(model: Type[BaseModel], filters: Mapping[str, Any]) -> list:
    """
    Translate equality filters into SQLAlchemy conditions.

    Raises:
        ValueError: If a filter key is not a column of the model
    """
    columns = model.__table__.columns
    conditions = []
    for key, value in filters.items():
        if key not in columns:
            raise ValueError(f"Unknown filter field for {model.__name__}: {key}")
        conditions.append(getattr(model, key) == value)
    return conditions


class EventStore:
    """
    Persistence for CalendarEventRecord and LoggedMeeting rows.

    One instance wraps one AsyncSession. Concurrent writers to the same
    external id are last-write-wins.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @property
    def session(self) -> AsyncSession:
        return self._session

    # -------------------------------------------------------------------------
    # Calendar events
    # -------------------------------------------------------------------------

    async def insert_event(self, event: CanonicalEvent) -> CalendarEventRecord:
        """
        Persist a canonical event as a new mirror row.

        Args:
            event: Event returned by a successful provider create

        Returns:
            The flushed record
        """
        record = CalendarEventRecord(**event_to_values(event))
        self._session.add(record)
        await self._session.flush()
        await self._session.refresh(record)
        logger.info(f"Mirrored {event.provider} event {event.external_id}")
        return record

    async def find_events(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: str = "start_time",
        descending: bool = False,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[CalendarEventRecord]:
        """
        Find calendar event mirrors matching equality filters.

        Args:
            filters: Column name to value, e.g. {"is_active": True, "lead_id": "l-1"}
            order_by: Column to sort on
            descending: Sort direction
            skip: Rows to skip
            limit: Maximum rows to return

        Returns:
            Matching records
        """
        return await self._find(CalendarEventRecord, filters, order_by, descending, skip, limit)

    async def count_events(self, filters: Optional[Mapping[str, Any]] = None) -> int:
        return await self._count(CalendarEventRecord, filters)

    async def get_event_by_external_id(
        self,
        external_id: str,
        active_only: bool = True,
    ) -> Optional[CalendarEventRecord]:
        """Get the mirror row for a provider event id."""
        filters: dict[str, Any] = {"external_id": external_id}
        if active_only:
            filters["is_active"] = True
        records = await self._find(CalendarEventRecord, filters, "created_at", True, 0, 1)
        return records[0] if records else None

    async def update_event_by_external_id(
        self,
        external_id: str,
        values: Mapping[str, Any],
    ) -> Optional[CalendarEventRecord]:
        """
        Apply a sparse update to an active mirror row.

        Only keys present in `values` are written.

        Returns:
            Updated record, or None if no active row matches
        """
        record = await self.get_event_by_external_id(external_id)
        if record is None:
            logger.info(f"No local mirror for event {external_id}, skipping update")
            return None

        columns = CalendarEventRecord.__table__.columns
        for key, value in values.items():
            if key not in columns:
                raise ValueError(f"Unknown field for CalendarEventRecord: {key}")
            setattr(record, key, value)

        await self._session.flush()
        await self._session.refresh(record)
        return record

    async def soft_delete_event(self, external_id: str) -> Optional[CalendarEventRecord]:
        """
        Deactivate the mirror row for a provider event id.

        Returns:
            Deactivated record, or None if no active row matches
        """
        record = await self.get_event_by_external_id(external_id)
        if record is None:
            return None

        record.soft_delete()
        await self._session.flush()
        await self._session.refresh(record)
        logger.info(f"Soft-deleted local mirror for event {external_id}")
        return record

    # -------------------------------------------------------------------------
    # Logged meetings
    # -------------------------------------------------------------------------

    async def insert_meeting(self, **values: Any) -> LoggedMeeting:
        """Persist a new logged meeting."""
        meeting = LoggedMeeting(**values)
        self._session.add(meeting)
        await self._session.flush()
        await self._session.refresh(meeting)
        return meeting

    async def find_meetings(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: str = "meeting_datetime",
        descending: bool = True,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[LoggedMeeting]:
        return await self._find(LoggedMeeting, filters, order_by, descending, skip, limit)

    async def count_meetings(self, filters: Optional[Mapping[str, Any]] = None) -> int:
        return await self._count(LoggedMeeting, filters)

    async def get_meeting(
        self,
        meeting_id: uuid.UUID,
        active_only: bool = True,
    ) -> Optional[LoggedMeeting]:
        filters: dict[str, Any] = {"id": meeting_id}
        if active_only:
            filters["is_active"] = True
        records = await self._find(LoggedMeeting, filters, "created_at", False, 0, 1)
        return records[0] if records else None

    async def update_meeting(
        self,
        meeting_id: uuid.UUID,
        values: Mapping[str, Any],
    ) -> Optional[LoggedMeeting]:
        """Write the given fields onto a logged meeting."""
        meeting = await self.get_meeting(meeting_id, active_only=False)
        if meeting is None:
            return None

        for key, value in values.items():
            setattr(meeting, key, value)

        await self._session.flush()
        await self._session.refresh(meeting)
        return meeting

    # -------------------------------------------------------------------------
    # Shared query helpers
    # -------------------------------------------------------------------------

    async def _find(
        self,
        model: Type[BaseModel],
        filters: Optional[Mapping[str, Any]],
        order_by: str,
        descending: bool,
        skip: int,
        limit: Optional[int],
    ) -> Sequence[Any]:
        if order_by not in model.__table__.columns:
            raise ValueError(f"Unknown sort field for {model.__name__}: {order_by}")

        sort_column = getattr(model, order_by)
        stmt = (
            select(model)
            .where(*_build_conditions(model, filters or {}))
            .order_by(sort_column.desc() if descending else sort_column.asc())
            .offset(skip)
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self._session.scalars(stmt)
        return result.all()

    async def _count(self, model: Type[BaseModel], filters: Optional[Mapping[str, Any]]) -> int:
        stmt = select(func.count()).select_from(model).where(
            *_build_conditions(model, filters or {})
        )
        return await self._session.scalar(stmt) or 0
