"""
Logged meeting model.

Entities:
- LoggedMeeting: a meeting recorded after the fact, not backed by a provider event
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, Integer, Index
from sqlalchemy.orm import Mapped, mapped_column

from calsync.models.base import BaseModel, UTCDateTime, get_json_type


class LoggedMeeting(BaseModel):
    """
    Manually recorded meeting.

    Created by a single log call. The only later mutation is the backfill
    of activity_id and task_id once downstream calls have resolved.
    """

    __tablename__ = "logged_meetings"

    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )

    meeting_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="VIRTUAL, IN_PERSON or PHONE"
    )

    virtual_provider: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        doc="TEAMS, GOOGLE_MEET, ZOOM or OTHER; required when meeting_type is VIRTUAL"
    )

    meeting_datetime: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
    )

    duration: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        doc="Duration in minutes"
    )

    location: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )

    summary: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    outcome: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    participants: Mapped[list] = mapped_column(
        get_json_type(),
        nullable=False,
        default=list,
        doc="List of {email, name, is_external}"
    )

    lead_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )

    logged_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="system",
    )

    organization_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    activity_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )

    task_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )

    attachment: Mapped[Optional[str]] = mapped_column(
        String(1000),
        nullable=True,
        doc="Object storage key of an uploaded attachment"
    )

    # Renamed from 'metadata' to avoid SQLAlchemy conflict
    meeting_metadata: Mapped[dict] = mapped_column(
        get_json_type(),
        nullable=False,
        default=dict,
    )

    __table_args__ = (
        Index("idx_logged_meeting_lead", "lead_id"),
        Index("idx_logged_meeting_datetime", "meeting_datetime"),
    )

    def __repr__(self) -> str:
        return f"<LoggedMeeting(id={self.id}, title={self.title})>"
