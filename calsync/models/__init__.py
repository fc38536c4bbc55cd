"""
SQLAlchemy models for calsync.

This module exports all database models for easy importing and
ensures Alembic can discover them for migrations.
"""

from calsync.models.base import Base, BaseModel, GUID, UTCDateTime, get_json_type
from calsync.models.events import CalendarEventRecord
from calsync.models.meetings import LoggedMeeting

__all__ = [
    "Base",
    "BaseModel",
    "GUID",
    "UTCDateTime",
    "get_json_type",
    "CalendarEventRecord",
    "LoggedMeeting",
]
