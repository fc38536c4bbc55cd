"""
Pydantic request and response models for the calsync API.

Timestamps cross the boundary as ISO-8601 strings and are parsed here into
datetimes before reaching the core.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from calsync.integrations.base import AttendeeRequest, CreateEventRequest, EventPatch, LocationType
from calsync.services.meeting_logger import (
    FollowUpTask,
    LogMeetingRequest,
    MeetingKind,
    MeetingOutcome,
    MeetingParticipant,
    VirtualMeetingProvider,
)
from calsync.clients.tasks import TaskPriority


# =============================================================================
# Calendar events
# =============================================================================


class AttendeeBody(BaseModel):
    email: str = Field(..., min_length=3)
    name: Optional[str] = None
    response_required: Union[bool, str] = False

    def to_domain(self) -> AttendeeRequest:
        return AttendeeRequest(
            email=self.email,
            name=self.name,
            response_required=self.response_required,
        )


class CreateEventBody(BaseModel):
    """Request to create a provider event."""

    title: str = Field(..., min_length=1, max_length=500)
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None
    timezone: Optional[str] = None
    all_day: bool = False
    location_type: Optional[LocationType] = None
    location_details: Optional[str] = None
    attendees: list[AttendeeBody] = Field(default_factory=list)
    organizer: Optional[str] = None
    organizer_name: Optional[str] = None
    lead_id: Optional[str] = None
    outcome: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()

    def to_domain(self) -> CreateEventRequest:
        values = self.model_dump(exclude={"attendees"})
        return CreateEventRequest(
            **values,
            attendees=[attendee.to_domain() for attendee in self.attendees],
        )


class UpdateEventBody(BaseModel):
    """
    Sparse update. Omitted fields are left untouched; explicit nulls clear
    optional fields. Title, times and all_day cannot be cleared.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    timezone: Optional[str] = None
    all_day: Optional[bool] = None
    location_type: Optional[LocationType] = None
    location_details: Optional[str] = None
    attendees: Optional[list[AttendeeBody]] = None
    lead_id: Optional[str] = None
    outcome: Optional[str] = None

    def to_patch(self) -> EventPatch:
        values = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if name == "attendees" and value is not None:
                value = [attendee.to_domain() for attendee in value]
            values[name] = value
        return EventPatch.from_mapping(values)


class DeleteEventResponse(BaseModel):
    message: str
    event_id: str


# =============================================================================
# Logged meetings
# =============================================================================


class ParticipantBody(BaseModel):
    email: str
    name: Optional[str] = None
    is_external: bool = False


class FollowUpTaskBody(BaseModel):
    title: str = Field(..., min_length=1)
    due_date: datetime
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None


class LogMeetingBody(BaseModel):
    """Request to log a meeting that happened outside any calendar."""

    title: str = Field(..., min_length=1, max_length=500)
    meeting_type: MeetingKind
    meeting_datetime: datetime
    outcome: MeetingOutcome
    lead_id: Optional[str] = None
    virtual_provider: Optional[VirtualMeetingProvider] = None
    participants: list[ParticipantBody] = Field(default_factory=list)
    summary: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)
    location: Optional[str] = None
    attachment: Optional[str] = None
    create_follow_up_task: bool = False
    follow_up_task: Optional[FollowUpTaskBody] = None

    def to_domain(self) -> LogMeetingRequest:
        values = self.model_dump(exclude={"participants", "follow_up_task"})
        task = self.follow_up_task
        return LogMeetingRequest(
            **values,
            participants=[MeetingParticipant(**p.model_dump()) for p in self.participants],
            follow_up_task=FollowUpTask(**task.model_dump()) if task else None,
        )


class LogMeetingResponse(BaseModel):
    meeting_id: str
    activity_id: Optional[str] = None
    task_id: Optional[str] = None


class AttachmentUploadBody(BaseModel):
    file_name: str = Field(..., min_length=1)
    content_type: str = Field(..., min_length=1)


class AttachmentAccessBody(BaseModel):
    file_key: str = Field(..., min_length=1)


# =============================================================================
# System
# =============================================================================


class HealthResponse(BaseModel):
    status: str
    version: str


class ErrorResponse(BaseModel):
    """Error body returned by every exception handler."""

    error_type: str
    message: str
    retryable: bool = False
