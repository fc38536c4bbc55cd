"""
Bidirectional mapping between canonical events and Google Calendar API format.

Handles:
- DateTime formatting (RFC 3339) and all-day dates
- Attendee and organizer mapping
- Location kinds (in-person location vs. Meet conference creation)
- People API contacts and OAuth user profile
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from calsync.integrations.base import (
    Attendee,
    CanonicalEvent,
    Contact,
    CreateEventRequest,
    EventPatch,
    LocationType,
    ProviderTag,
    UserProfile,
)
from calsync.integrations.mapping import format_datetime, parse_date, parse_datetime

GOOGLE_MEET_PROVIDER = "google_meet"
UNKNOWN_CONTACT_NAME = "Unknown"


class GoogleCalendarAdapter:
    """Maps between canonical events and Google Calendar API format."""

    @staticmethod
    def to_google_event(request: CreateEventRequest, organizer_name: Optional[str] = None) -> dict:
        """
        Convert a create request to Google Calendar API format.

        Args:
            request: Canonical create request (already validated)
            organizer_name: Resolved organizer display name

        Returns:
            Dict suitable for events.insert
        """
        google_event: dict = {
            "summary": request.title,
        }

        if request.description:
            google_event["description"] = request.description

        google_event.update(
            _time_fields(
                request.start_time,
                request.end_time,
                request.timezone or "UTC",
                request.all_day,
            )
        )

        if request.attendees:
            google_event["attendees"] = [
                _attendee_body(attendee.email, attendee.name, attendee.is_required)
                for attendee in request.attendees
            ]

        if request.organizer:
            organizer: dict = {"email": request.organizer}
            if organizer_name:
                organizer["displayName"] = organizer_name
            google_event["organizer"] = organizer

        if request.location_type is not None:
            google_event.update(
                _location_fields(request.location_type, request.location_details)
            )

        return google_event

    @staticmethod
    def to_update_body(patch: EventPatch, existing: CanonicalEvent) -> dict:
        """
        Convert a sparse patch to Google Calendar API format.

        Only supplied fields are included. When either bound changes both
        are sent, reusing the existing event's value for the other, with the
        timezone falling back to the existing event's zone.

        Args:
            patch: Patch with times already resolved
            existing: Current state of the provider event

        Returns:
            Dict suitable for events.patch
        """
        google_updates: dict = {}

        if patch.is_set("title"):
            google_updates["summary"] = patch.title

        if patch.is_set("description"):
            google_updates["description"] = patch.description

        time_changed = any(
            patch.is_set(name) for name in ("start_time", "end_time", "timezone", "all_day")
        )
        if time_changed:
            start = patch.start_time if patch.is_set("start_time") else existing.start_time
            end = patch.end_time if patch.is_set("end_time") else existing.end_time
            tz = patch.timezone if patch.is_set("timezone") and patch.timezone else None
            all_day = patch.all_day if patch.is_set("all_day") else existing.all_day
            google_updates.update(
                _time_fields(start, end, tz or existing.timezone or "UTC", bool(all_day))
            )

        if patch.is_set("attendees"):
            google_updates["attendees"] = [
                _attendee_body(attendee.email, attendee.name, attendee.is_required)
                for attendee in (patch.attendees or [])
            ]

        if patch.is_set("location_type"):
            details = (
                patch.location_details
                if patch.is_set("location_details")
                else existing.location_details
            )
            if patch.location_type is None:
                google_updates["location"] = None
                google_updates["conferenceData"] = None
            else:
                location_type = LocationType(patch.location_type)
                google_updates.update(_location_fields(location_type, details))
                if location_type == LocationType.IN_PERSON:
                    google_updates["conferenceData"] = None
                elif location_type == LocationType.GOOGLE_MEET:
                    google_updates["location"] = None
        elif patch.is_set("location_details"):
            google_updates["location"] = patch.location_details

        return google_updates

    @staticmethod
    def from_google_event(google_event: dict) -> CanonicalEvent:
        """
        Convert a Google Calendar event to the canonical shape.

        Args:
            google_event: Event from the Google Calendar API

        Returns:
            CanonicalEvent (local-only fields left unset)
        """
        start_data = google_event.get("start", {})
        end_data = google_event.get("end", {})

        if "dateTime" in start_data:
            start_time = parse_datetime(start_data["dateTime"])
            end_time = parse_datetime(end_data.get("dateTime", start_data["dateTime"]))
            all_day = False
        elif "date" in start_data:
            start_time = parse_date(start_data["date"])
            end_time = parse_date(end_data.get("date", start_data["date"]))
            all_day = True
        else:
            start_time = datetime.now(timezone.utc)
            end_time = start_time
            all_day = False

        attendees = [
            Attendee(
                email=attendee["email"],
                name=attendee.get("displayName") or attendee.get("name"),
                status=attendee.get("responseStatus"),
            )
            for attendee in google_event.get("attendees", [])
            if attendee.get("email")
        ]

        organizer = google_event.get("organizer", {})
        conference = google_event.get("conferenceData")
        location = google_event.get("locationDetails") or google_event.get("location")

        if conference:
            location_type = LocationType.GOOGLE_MEET.value
        elif location:
            location_type = LocationType.IN_PERSON.value
        else:
            location_type = None

        return CanonicalEvent(
            external_id=google_event.get("id", ""),
            provider=ProviderTag.GOOGLE,
            title=google_event.get("summary", "Untitled"),
            description=google_event.get("description"),
            start_time=start_time,
            end_time=end_time,
            timezone=start_data.get("timeZone"),
            all_day=all_day,
            location_type=location_type,
            location_details=location,
            attendees=attendees,
            organizer=organizer.get("email"),
            organizer_name=organizer.get("displayName") or organizer.get("name"),
            meeting_link=google_event.get("hangoutLink") or _video_entry_point(conference),
            is_online_meeting=bool(conference),
            online_meeting_provider=GOOGLE_MEET_PROVIDER if conference else None,
        )

    @staticmethod
    def from_person(person: dict, source: str) -> Contact:
        """
        Convert a People API person to a Contact.

        Uses the first name, email, phone and organization entries.
        """
        names = person.get("names") or [{}]
        emails = person.get("emailAddresses") or [{}]
        phones = person.get("phoneNumbers") or [{}]
        organizations = person.get("organizations") or [{}]

        return Contact(
            id=person.get("resourceName"),
            name=names[0].get("displayName") or names[0].get("givenName") or UNKNOWN_CONTACT_NAME,
            email=emails[0].get("value", ""),
            phone=phones[0].get("value"),
            organization=organizations[0].get("name"),
            title=organizations[0].get("title"),
            source=source,
        )

    @staticmethod
    def from_userinfo(data: dict) -> UserProfile:
        """Convert an OAuth userinfo response to a UserProfile."""
        name = data.get("name")
        if not name:
            parts = [data.get("given_name"), data.get("family_name")]
            name = " ".join(part for part in parts if part) or None
        return UserProfile(email=data.get("email"), name=name)


def _time_fields(start: datetime, end: datetime, tz: str, all_day: bool) -> dict:
    if all_day:
        return {
            "start": {"date": start.strftime("%Y-%m-%d")},
            "end": {"date": end.strftime("%Y-%m-%d")},
        }
    return {
        "start": {"dateTime": format_datetime(start), "timeZone": tz},
        "end": {"dateTime": format_datetime(end), "timeZone": tz},
    }


def _attendee_body(email: str, name: Optional[str], required: bool) -> dict:
    body = {
        "email": email,
        "responseStatus": "accepted" if required else "needsAction",
    }
    if name:
        body["displayName"] = name
    return body


def _location_fields(location_type: LocationType, details: Optional[str]) -> dict:
    """In-person sets a location; Meet asks Google to create a conference."""
    if location_type == LocationType.IN_PERSON:
        return {"location": details or ""}
    if location_type == LocationType.GOOGLE_MEET:
        return {
            "conferenceData": {
                "createRequest": {
                    "requestId": uuid.uuid4().hex,
                    "conferenceSolutionKey": {"type": "hangoutsMeet"},
                }
            }
        }
    return {}


def _video_entry_point(conference: Optional[dict]) -> Optional[str]:
    if not conference:
        return None
    for entry in conference.get("entryPoints", []):
        if entry.get("entryPointType") == "video":
            return entry.get("uri")
    return None
