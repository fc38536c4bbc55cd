"""
Meeting Logger - manually recorded meetings.

Validates and stores meetings that happened outside any calendar
provider, then fires two independent best-effort calls: an activity record
and, when requested, a follow-up task. Also serves paged reads of logged
meetings and presigned URLs for their attachments.
"""

import asyncio
import logging
import math
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Sequence, Union

from calsync.clients.activity import ActivityClient, ActivityType, activity_id_of
from calsync.clients.base import ServiceClientError
from calsync.clients.storage import StorageClient
from calsync.clients.tasks import TaskClient, TaskPriority, TaskStatus
from calsync.config import Settings, get_settings
from calsync.integrations.exceptions import (
    InvalidRequestError,
    NotFoundError,
    UpstreamFailureError,
)
from calsync.integrations.mapping import coerce_timestamp
from calsync.models.meetings import LoggedMeeting
from calsync.services.best_effort import Outcome, attempt
from calsync.services.event_store import EventStore

logger = logging.getLogger(__name__)

ATTACHMENT_PREFIX = "meetings/attachments"


class MeetingKind(str, Enum):
    VIRTUAL = "VIRTUAL"
    IN_PERSON = "IN_PERSON"
    PHONE = "PHONE"


class VirtualMeetingProvider(str, Enum):
    TEAMS = "TEAMS"
    GOOGLE_MEET = "GOOGLE_MEET"
    ZOOM = "ZOOM"
    OTHER = "OTHER"


class MeetingOutcome(str, Enum):
    FOLLOW_UP_REQUIRED = "FOLLOW_UP_REQUIRED"
    NO_RESPONSE = "NO_RESPONSE"
    NO_SHOW_UP = "NO_SHOW_UP"
    RESCHEDULED = "RESCHEDULED"
    CANCELLED = "CANCELLED"
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    SUCCESSFUL = "SUCCESSFUL"


@dataclass
class MeetingParticipant:
    email: str
    name: Optional[str] = None
    is_external: bool = False


@dataclass
class FollowUpTask:
    """Follow-up task requested alongside a logged meeting."""

    title: str
    due_date: Union[datetime, str]
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None


@dataclass
class LogMeetingRequest:
    """Input to MeetingLogger.log_meeting()."""

    title: str
    meeting_type: MeetingKind
    meeting_datetime: Union[datetime, str]
    outcome: MeetingOutcome
    lead_id: Optional[str] = None
    virtual_provider: Optional[VirtualMeetingProvider] = None
    participants: list[MeetingParticipant] = field(default_factory=list)
    summary: Optional[str] = None
    duration: Optional[int] = None
    location: Optional[str] = None
    attachment: Optional[str] = None
    create_follow_up_task: bool = False
    follow_up_task: Optional[FollowUpTask] = None


@dataclass
class LogMeetingResult:
    meeting_id: str
    activity_id: Optional[str] = None
    task_id: Optional[str] = None


@dataclass
class MeetingPage:
    """One page of logged meetings."""

    items: Sequence[LoggedMeeting]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


@dataclass
class AttachmentUpload:
    upload_url: str
    file_key: str


class MeetingLogger:
    """
    Records logged meetings and their downstream side effects.

    Args:
        store: Event Store for logged meetings
        activity_client: Activity collaborator (None skips activity logging)
        task_client: Task collaborator (None skips follow-up tasks)
        storage_client: Object storage collaborator for attachments
        settings: Application settings
    """

    def __init__(
        self,
        store: EventStore,
        activity_client: Optional[ActivityClient] = None,
        task_client: Optional[TaskClient] = None,
        storage_client: Optional[StorageClient] = None,
        settings: Optional[Settings] = None,
    ):
        self._store = store
        self._activity = activity_client
        self._tasks = task_client
        self._storage = storage_client
        self._settings = settings or get_settings()

    async def log_meeting(self, request: LogMeetingRequest, organization_id: str) -> LogMeetingResult:
        """
        Validate and store a logged meeting, then run its side effects.

        Validation happens before anything is written. Persisting the
        meeting is fatal on failure; the activity record and follow-up task
        are each best-effort and run concurrently.

        Args:
            request: Meeting details
            organization_id: Owning organization

        Returns:
            Meeting id plus whichever activity/task ids were obtained

        Raises:
            InvalidRequestError: If validation fails
        """
        self._validate(request, organization_id)
        meeting_time = coerce_timestamp(request.meeting_datetime, "meeting time")
        actor = self._settings.default_actor

        meeting = await self._store.insert_meeting(
            title=request.title,
            meeting_type=MeetingKind(request.meeting_type).value,
            virtual_provider=_value(request.virtual_provider),
            meeting_datetime=meeting_time,
            duration=request.duration,
            location=request.location,
            summary=request.summary,
            outcome=MeetingOutcome(request.outcome).value,
            participants=[
                {"email": p.email, "name": p.name, "is_external": p.is_external}
                for p in request.participants
            ],
            lead_id=request.lead_id,
            logged_by=actor,
            organization_id=organization_id,
            attachment=request.attachment,
            meeting_metadata={
                "logged_at": datetime.now(timezone.utc).isoformat(),
                "source": "manual_log",
            },
        )
        meeting_id = str(meeting.id)
        logger.info(f"Logged meeting {meeting_id} for lead {request.lead_id}")

        activity_outcome, task_outcome = await asyncio.gather(
            self._log_activity(meeting_id, request, actor),
            self._create_follow_up(request, organization_id, actor),
        )

        activity_id = activity_id_of(activity_outcome.value)
        task_id = task_outcome.value_or({}).get("id")

        backfill = {}
        if activity_id:
            backfill["activity_id"] = activity_id
        if task_id:
            backfill["task_id"] = task_id
        if backfill:
            await self._store.update_meeting(meeting.id, backfill)

        return LogMeetingResult(meeting_id=meeting_id, activity_id=activity_id, task_id=task_id)

    async def list_logged_meetings(
        self,
        lead_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> MeetingPage:
        """
        Page through active logged meetings, newest first.

        Raises:
            InvalidRequestError: If page or limit is not positive
        """
        if page < 1 or limit < 1:
            raise InvalidRequestError("page and limit must be positive")

        filters: dict = {"is_active": True}
        if lead_id:
            filters["lead_id"] = lead_id

        items = await self._store.find_meetings(
            filters,
            order_by="meeting_datetime",
            descending=True,
            skip=(page - 1) * limit,
            limit=limit,
        )
        total = await self._store.count_meetings(filters)
        return MeetingPage(items=items, total=total, page=page, limit=limit)

    async def get_logged_meeting(self, meeting_id: str) -> LoggedMeeting:
        """
        Get one active logged meeting.

        Raises:
            NotFoundError: If the id is malformed or no active meeting matches
        """
        try:
            key = uuid.UUID(str(meeting_id))
        except ValueError:
            raise NotFoundError(f"Logged meeting {meeting_id} not found")

        meeting = await self._store.get_meeting(key)
        if meeting is None:
            raise NotFoundError(f"Logged meeting {meeting_id} not found")
        return meeting

    async def create_attachment_upload_url(self, file_name: str, content_type: str) -> AttachmentUpload:
        """
        Issue a presigned upload URL for a new attachment.

        Raises:
            InvalidRequestError: If file name or content type is missing
            UpstreamFailureError: If the storage service fails
        """
        if not file_name or not content_type:
            raise InvalidRequestError("fileName and contentType are required")

        key = f"{ATTACHMENT_PREFIX}/{int(time.time() * 1000)}-{file_name}"
        try:
            url = await self._require_storage().generate_upload_url(key, content_type)
        except ServiceClientError as e:
            raise UpstreamFailureError(f"Failed to generate upload URL: {e.message}", original_error=e)
        return AttachmentUpload(upload_url=url, file_key=key)

    async def create_attachment_access_url(self, file_key: str) -> str:
        """Issue a time-limited read URL for a stored attachment."""
        if not file_key:
            raise InvalidRequestError("fileKey is required")
        try:
            return await self._require_storage().generate_access_url(file_key)
        except ServiceClientError as e:
            raise UpstreamFailureError(f"Failed to generate access URL: {e.message}", original_error=e)

    async def delete_attachment(self, file_key: str) -> dict:
        if not file_key:
            raise InvalidRequestError("fileKey is required")
        try:
            return await self._require_storage().delete_object(file_key)
        except ServiceClientError as e:
            raise UpstreamFailureError(f"Failed to delete attachment: {e.message}", original_error=e)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate(request: LogMeetingRequest, organization_id: str) -> None:
        if not organization_id or not organization_id.strip():
            raise InvalidRequestError("Organization ID is required")

        try:
            MeetingKind(request.meeting_type)
            MeetingOutcome(request.outcome)
            if request.virtual_provider:
                VirtualMeetingProvider(request.virtual_provider)
        except ValueError as e:
            raise InvalidRequestError(str(e), original_error=e)

        if request.meeting_type == MeetingKind.VIRTUAL and not request.virtual_provider:
            raise InvalidRequestError("Virtual meeting provider is required for virtual meetings")

        if request.create_follow_up_task and request.follow_up_task is None:
            raise InvalidRequestError(
                "Follow-up task details are required when a follow-up task is requested"
            )

    async def _log_activity(self, meeting_id: str, request: LogMeetingRequest, actor: str) -> Outcome:
        if self._activity is None:
            return Outcome()
        return await attempt(
            self._activity.log_activity(
                lead_id=request.lead_id,
                activity_type=ActivityType.CALENDAR_EVENT_CREATED,
                description=f"Meeting logged: {request.title}",
                performed_by=actor,
                metadata={
                    "meetingId": meeting_id,
                    "meetingTitle": request.title,
                    "meetingType": _value(request.meeting_type),
                    "outcome": _value(request.outcome),
                    "participants": len(request.participants),
                },
            ),
            f"Activity logging for meeting {meeting_id}",
        )

    async def _create_follow_up(
        self,
        request: LogMeetingRequest,
        organization_id: str,
        actor: str,
    ) -> Outcome:
        task = request.follow_up_task
        if not request.create_follow_up_task or task is None or self._tasks is None:
            return Outcome()

        due_date = task.due_date.isoformat() if isinstance(task.due_date, datetime) else task.due_date
        payload = {
            "title": task.title,
            "leadId": request.lead_id,
            "status": TaskStatus.PENDING.value,
            "dueDate": due_date,
            "priority": _value(task.priority) or TaskPriority.MEDIUM.value,
            "assignedTo": actor,
            "description": task.description,
            "organizationId": organization_id,
            "createdBy": actor,
        }
        return await attempt(self._tasks.create_task(payload), "Follow-up task creation")

    def _require_storage(self) -> StorageClient:
        if self._storage is None:
            raise UpstreamFailureError("Attachment storage is not configured")
        return self._storage


def _value(member) -> Optional[str]:
    return getattr(member, "value", member)
