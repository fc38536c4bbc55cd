"""
Calendar provider protocol and canonical types.

Defines the provider-agnostic event and contact shapes that both calendar
providers (Google Calendar, Microsoft Graph) map into, the sparse update
patch type, and the CalendarProvider interface the gateway dispatches to.
"""

from abc import abstractmethod
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional, Protocol, Sequence, Union

from calsync.integrations.exceptions import InvalidRequestError


class ProviderTag(str, Enum):
    """Known calendar providers."""

    GOOGLE = "google"
    MICROSOFT = "microsoft"

    @classmethod
    def parse(cls, value: str) -> Optional["ProviderTag"]:
        """Case-insensitive lookup, None when unknown."""
        normalized = (value or "").strip().lower()
        for tag in cls:
            if tag.value == normalized:
                return tag
        return None


class LocationType(str, Enum):
    """How attendees join an event."""

    IN_PERSON = "IN_PERSON"
    GOOGLE_MEET = "GOOGLE_MEET"
    TEAMS = "TEAMS"
    OTHER = "OTHER"


@dataclass
class Attendee:
    """Event attendee as seen by the provider."""

    email: str
    name: Optional[str] = None
    status: Optional[str] = None


@dataclass
class CanonicalEvent:
    """
    Normalized calendar event across providers.

    This is the common format used by the service layer, mapped from
    provider-specific payloads by each provider's adapter.
    """

    external_id: str
    provider: ProviderTag
    title: str
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None
    timezone: Optional[str] = None
    all_day: bool = False
    location_type: Optional[str] = None
    location_details: Optional[str] = None
    attendees: list[Attendee] = field(default_factory=list)
    organizer: Optional[str] = None
    organizer_name: Optional[str] = None
    meeting_link: Optional[str] = None
    is_online_meeting: bool = False
    online_meeting_provider: Optional[str] = None
    user_id: Optional[str] = None
    lead_id: Optional[str] = None
    outcome: Optional[str] = None
    is_active: bool = True

    @property
    def duration_minutes(self) -> int:
        """Calculate event duration in minutes."""
        delta = self.end_time - self.start_time
        return int(delta.total_seconds() / 60)


@dataclass
class Contact:
    """Contact discovered through a provider's contact sources."""

    id: Optional[str]
    name: str
    email: str
    phone: Optional[str] = None
    organization: Optional[str] = None
    title: Optional[str] = None
    source: Optional[str] = None


@dataclass
class UserProfile:
    """Signed-in user's identity as reported by the provider."""

    email: Optional[str] = None
    name: Optional[str] = None


@dataclass
class AttendeeRequest:
    """
    Attendee on a create or update request.

    `response_required` accepts a bool or the strings "REQUIRED"/"OPTIONAL".
    """

    email: str
    name: Optional[str] = None
    response_required: Union[bool, str] = False

    @property
    def is_required(self) -> bool:
        if isinstance(self.response_required, str):
            return self.response_required.upper() == "REQUIRED"
        return bool(self.response_required)


@dataclass
class CreateEventRequest:
    """
    Request to create a new provider event.

    Used as input to CalendarProvider.create_event().
    """

    title: str
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None
    timezone: Optional[str] = None
    all_day: bool = False
    location_type: Optional[LocationType] = None
    location_details: Optional[str] = None
    attendees: list[AttendeeRequest] = field(default_factory=list)
    organizer: Optional[str] = None
    organizer_name: Optional[str] = None
    lead_id: Optional[str] = None
    outcome: Optional[str] = None


class _Unset:
    """Marker for a patch field the caller did not supply."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

# Columns that must always hold a value
REQUIRED_EVENT_FIELDS = ("title", "start_time", "end_time", "all_day")


@dataclass
class EventPatch:
    """
    Sparse update to an existing event.

    A field left at UNSET is absent and must not be touched. A field set to
    None is an explicit clear.
    """

    title: Any = UNSET
    description: Any = UNSET
    start_time: Any = UNSET
    end_time: Any = UNSET
    timezone: Any = UNSET
    all_day: Any = UNSET
    location_type: Any = UNSET
    location_details: Any = UNSET
    attendees: Any = UNSET
    lead_id: Any = UNSET
    outcome: Any = UNSET

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "EventPatch":
        """
        Build a patch from the keys actually present in a mapping.

        Raises:
            ValueError: If a key is not a patchable field
        """
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown patch fields: {', '.join(sorted(unknown))}")
        return cls(**dict(values))

    def is_set(self, name: str) -> bool:
        return getattr(self, name) is not UNSET

    def validate(self) -> None:
        """
        Reject explicit clears of fields every event must have.

        Raises:
            InvalidRequestError: If a required field is set to None
        """
        cleared = [name for name in REQUIRED_EVENT_FIELDS if getattr(self, name) is None]
        if cleared:
            raise InvalidRequestError(f"Fields cannot be cleared: {', '.join(cleared)}")

    def changed_fields(self) -> dict[str, Any]:
        """Return supplied fields in declaration order."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def merged(self, **values: Any) -> "EventPatch":
        """Return a copy with additional fields set."""
        return replace(self, **values)

    def __bool__(self) -> bool:
        return bool(self.changed_fields())


@dataclass
class DeleteResult:
    """Outcome of a delete call."""

    event_id: str
    message: str = "Event deleted successfully"


class CalendarProvider(Protocol):
    """
    Protocol for calendar providers.

    Implementations:
    - GoogleCalendarProvider: Google Calendar + People API
    - MicrosoftGraphProvider: Microsoft Graph calendar + contacts

    All methods are async; each takes the caller's opaque bearer token.
    """

    tag: ProviderTag

    @abstractmethod
    async def list_events(
        self,
        token: str,
        range_start: Optional[datetime] = None,
        range_end: Optional[datetime] = None,
    ) -> Sequence[CanonicalEvent]:
        """
        List events in a time range.

        Args:
            token: Provider access token
            range_start: Range start, defaults to the start of today (UTC)
            range_end: Range end, defaults to the configured lookahead

        Returns:
            Events mapped to the canonical shape
        """
        ...

    @abstractmethod
    async def create_event(self, token: str, request: CreateEventRequest) -> CanonicalEvent:
        """Create an event, mirror it locally and log the activity."""
        ...

    @abstractmethod
    async def update_event(self, token: str, event_id: str, patch: EventPatch) -> CanonicalEvent:
        """Apply a sparse update to an event and its local mirror."""
        ...

    @abstractmethod
    async def delete_event(self, token: str, event_id: str) -> DeleteResult:
        """Delete an event provider-side (best effort) and deactivate the mirror."""
        ...

    @abstractmethod
    async def get_contacts(self, token: str) -> Sequence[Contact]:
        """Get contacts de-duplicated by lowercase email."""
        ...

    @abstractmethod
    async def get_user_profile(self, token: str) -> UserProfile:
        """Get the signed-in user's profile."""
        ...
