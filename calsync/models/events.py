"""
Calendar event mirror model.

Entities:
- CalendarEventRecord: local copy of an event created through a calendar provider
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, Boolean, Index
from sqlalchemy.orm import Mapped, mapped_column

from calsync.models.base import BaseModel, UTCDateTime, get_json_type


class CalendarEventRecord(BaseModel):
    """
    Local mirror of a provider calendar event.

    Rows are written when a provider create succeeds, sparsely updated on
    every successful provider update, and deactivated (never removed) on
    delete so activity history keeps its references.
    """

    __tablename__ = "calendar_events"

    external_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Provider-assigned event ID"
    )

    provider: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="Provider tag: 'google' or 'microsoft'"
    )

    user_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Owning user (the organizer email at creation)"
    )

    lead_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        doc="Lead this event is associated with"
    )

    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        doc="Event title/summary"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    start_time: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
    )

    end_time: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
    )

    timezone: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        doc="Provider-supplied timezone name, passed through unchanged"
    )

    all_day: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    location_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        doc="IN_PERSON, GOOGLE_MEET, TEAMS or OTHER"
    )

    location_details: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )

    attendees: Mapped[list] = mapped_column(
        get_json_type(),
        nullable=False,
        default=list,
        doc="Ordered list of {email, name, status}"
    )

    organizer: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Organizer email"
    )

    organizer_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )

    meeting_link: Mapped[Optional[str]] = mapped_column(
        String(1000),
        nullable=True,
    )

    is_online_meeting: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    online_meeting_provider: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )

    outcome: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        doc="Free-text meeting outcome"
    )

    __table_args__ = (
        Index("idx_calendar_event_external", "external_id"),
        Index("idx_calendar_event_lead", "lead_id"),
        Index("idx_calendar_event_user", "user_id"),
        Index("idx_calendar_event_start", "start_time"),
    )

    def __repr__(self) -> str:
        return f"<CalendarEventRecord(external_id={self.external_id}, provider={self.provider})>"
