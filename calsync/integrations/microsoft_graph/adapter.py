"""
Bidirectional mapping between canonical events and Microsoft Graph format.

Graph returns `dateTime` values without an offset, paired with a
`timeZone`. Requests ask Graph for UTC (see MicrosoftGraphClient), so an
offset-less value is read as UTC.
"""

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
from calsync.integrations.mapping import ensure_utc, parse_datetime

TEAMS_PROVIDER = "teamsForBusiness"
DEFAULT_IN_PERSON_LOCATION = "In Person Meeting"
DEFAULT_ATTENDEE_STATUS = "none"


class MicrosoftGraphAdapter:
    """Maps between canonical events and Microsoft Graph event format."""

    @staticmethod
    def to_graph_event(request: CreateEventRequest, organizer_name: Optional[str] = None) -> dict:
        """
        Convert a create request to Graph format.

        Every kind other than in-person is created as a Teams meeting.

        Args:
            request: Canonical create request (already validated)
            organizer_name: Resolved organizer display name

        Returns:
            Dict suitable for POST me/events
        """
        graph_event: dict = {
            "subject": request.title,
            "body": {"contentType": "HTML", "content": request.description or ""},
            "start": _graph_time(request.start_time),
            "end": _graph_time(request.end_time),
            "isAllDay": request.all_day,
            "attendees": [
                _attendee_body(attendee.email, attendee.name, attendee.is_required)
                for attendee in request.attendees
            ],
        }

        if request.organizer:
            address: dict = {"address": request.organizer}
            if organizer_name:
                address["name"] = organizer_name
            graph_event["organizer"] = {"emailAddress": address}

        if request.location_type == LocationType.IN_PERSON:
            graph_event["location"] = {
                "displayName": request.location_details or DEFAULT_IN_PERSON_LOCATION
            }
        else:
            graph_event["isOnlineMeeting"] = True
            graph_event["onlineMeetingProvider"] = TEAMS_PROVIDER

        return graph_event

    @staticmethod
    def to_update_body(patch: EventPatch, existing: CanonicalEvent) -> dict:
        """
        Convert a sparse patch to Graph format.

        Start and end are always sent in UTC, so a timezone change adds
        nothing to the payload. The zone is kept on the local mirror only.

        Args:
            patch: Patch with times already resolved
            existing: Current state of the provider event

        Returns:
            Dict suitable for PATCH me/events/{id}
        """
        graph_updates: dict = {}

        if patch.is_set("title"):
            graph_updates["subject"] = patch.title

        if patch.is_set("description"):
            graph_updates["body"] = {"contentType": "HTML", "content": patch.description or ""}

        if patch.is_set("start_time") or patch.is_set("end_time"):
            start = patch.start_time if patch.is_set("start_time") else existing.start_time
            end = patch.end_time if patch.is_set("end_time") else existing.end_time
            graph_updates["start"] = _graph_time(start)
            graph_updates["end"] = _graph_time(end)

        if patch.is_set("all_day"):
            graph_updates["isAllDay"] = bool(patch.all_day)

        if patch.is_set("attendees"):
            graph_updates["attendees"] = [
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
                graph_updates["location"] = {}
                graph_updates["isOnlineMeeting"] = False
            elif LocationType(patch.location_type) == LocationType.IN_PERSON:
                graph_updates["location"] = {
                    "displayName": details or DEFAULT_IN_PERSON_LOCATION
                }
                graph_updates["isOnlineMeeting"] = False
            else:
                graph_updates["isOnlineMeeting"] = True
                graph_updates["onlineMeetingProvider"] = TEAMS_PROVIDER
        elif patch.is_set("location_details"):
            graph_updates["location"] = {"displayName": patch.location_details or ""}

        return graph_updates

    @staticmethod
    def from_graph_event(graph_event: dict) -> CanonicalEvent:
        """
        Convert a Graph event to the canonical shape.

        Args:
            graph_event: Event from Microsoft Graph

        Returns:
            CanonicalEvent (local-only fields left unset)
        """
        start_data = graph_event.get("start") or {}
        end_data = graph_event.get("end") or {}
        start_time = parse_datetime(start_data["dateTime"])
        end_time = parse_datetime(end_data.get("dateTime", start_data["dateTime"]))

        attendees = []
        for attendee in graph_event.get("attendees", []):
            email_address = attendee.get("emailAddress") or {}
            if not email_address.get("address"):
                continue
            attendees.append(
                Attendee(
                    email=email_address["address"],
                    name=email_address.get("name"),
                    status=(attendee.get("status") or {}).get("response", DEFAULT_ATTENDEE_STATUS),
                )
            )

        organizer = (graph_event.get("organizer") or {}).get("emailAddress") or {}
        location = (graph_event.get("location") or {}).get("displayName") or None
        is_online = bool(graph_event.get("isOnlineMeeting"))
        online_provider = graph_event.get("onlineMeetingProvider") if is_online else None

        if is_online:
            location_type = (
                LocationType.TEAMS.value
                if online_provider == TEAMS_PROVIDER
                else LocationType.OTHER.value
            )
        elif location:
            location_type = LocationType.IN_PERSON.value
        else:
            location_type = None

        return CanonicalEvent(
            external_id=graph_event.get("id", ""),
            provider=ProviderTag.MICROSOFT,
            title=graph_event.get("subject") or "Untitled",
            description=(graph_event.get("body") or {}).get("content") or None,
            start_time=start_time,
            end_time=end_time,
            timezone=graph_event.get("originalStartTimeZone") or start_data.get("timeZone"),
            all_day=bool(graph_event.get("isAllDay")),
            location_type=location_type,
            location_details=location,
            attendees=attendees,
            organizer=organizer.get("address"),
            organizer_name=organizer.get("name"),
            meeting_link=(graph_event.get("onlineMeeting") or {}).get("joinUrl"),
            is_online_meeting=is_online,
            online_meeting_provider=online_provider,
        )

    @staticmethod
    def from_graph_contact(entry: dict, source: str) -> Contact:
        """
        Convert a Graph contact or person to a Contact.

        Contacts carry `emailAddresses`; people carry `scoredEmailAddresses`.
        Only the first address is used.
        """
        addresses = entry.get("emailAddresses") or entry.get("scoredEmailAddresses") or [{}]
        phones = entry.get("businessPhones") or []
        if not phones:
            phones = [phone.get("number") for phone in entry.get("phones", []) if phone.get("number")]

        return Contact(
            id=entry.get("id"),
            name=entry.get("displayName") or addresses[0].get("name") or "Unknown",
            email=addresses[0].get("address", ""),
            phone=entry.get("mobilePhone") or (phones[0] if phones else None),
            organization=entry.get("companyName"),
            title=entry.get("jobTitle"),
            source=source,
        )

    @staticmethod
    def from_me(data: dict) -> UserProfile:
        """Convert a GET me response to a UserProfile."""
        return UserProfile(
            email=data.get("mail") or data.get("userPrincipalName"),
            name=data.get("displayName"),
        )


def _graph_time(dt: datetime) -> dict:
    """Graph dateTime is offset-less; values are sent in UTC."""
    utc = ensure_utc(dt).astimezone(timezone.utc)
    return {"dateTime": utc.strftime("%Y-%m-%dT%H:%M:%S"), "timeZone": "UTC"}


def _attendee_body(email: str, name: Optional[str], required: bool) -> dict:
    return {
        "emailAddress": {"address": email, "name": name or email.split("@")[0]},
        "type": "required" if required else "optional",
    }
