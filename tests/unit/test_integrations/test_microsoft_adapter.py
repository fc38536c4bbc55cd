"""Tests for Microsoft Graph adapter."""

from datetime import datetime, timedelta, timezone

from calsync.integrations.base import (
    AttendeeRequest,
    CanonicalEvent,
    CreateEventRequest,
    EventPatch,
    LocationType,
    ProviderTag,
)
from calsync.integrations.microsoft_graph.adapter import MicrosoftGraphAdapter


def make_request(**overrides) -> CreateEventRequest:
    values = {
        "title": "Pipeline review",
        "start_time": datetime(2026, 3, 2, 10, 0, tzinfo=timezone(timedelta(hours=2))),
        "end_time": datetime(2026, 3, 2, 11, 0, tzinfo=timezone(timedelta(hours=2))),
    }
    values.update(overrides)
    return CreateEventRequest(**values)


class TestToGraphEvent:
    """Tests for converting create requests to Graph format."""

    def test_times_sent_in_utc(self):
        result = MicrosoftGraphAdapter.to_graph_event(make_request())

        assert result["subject"] == "Pipeline review"
        assert result["start"] == {"dateTime": "2026-03-02T08:00:00", "timeZone": "UTC"}
        assert result["end"] == {"dateTime": "2026-03-02T09:00:00", "timeZone": "UTC"}
        assert result["body"] == {"contentType": "HTML", "content": ""}
        assert result["isAllDay"] is False

    def test_attendees(self):
        """Attendee type follows response_required; name defaults to the local part."""
        result = MicrosoftGraphAdapter.to_graph_event(
            make_request(
                attendees=[
                    AttendeeRequest(email="ann@example.com", name="Ann", response_required="REQUIRED"),
                    AttendeeRequest(email="bob@example.com"),
                ]
            )
        )
        assert result["attendees"] == [
            {"emailAddress": {"address": "ann@example.com", "name": "Ann"}, "type": "required"},
            {"emailAddress": {"address": "bob@example.com", "name": "bob"}, "type": "optional"},
        ]

    def test_default_is_teams(self):
        """Anything but in-person is created as a Teams meeting."""
        result = MicrosoftGraphAdapter.to_graph_event(make_request())
        assert result["isOnlineMeeting"] is True
        assert result["onlineMeetingProvider"] == "teamsForBusiness"
        assert "location" not in result

    def test_google_meet_kind_still_uses_teams(self):
        result = MicrosoftGraphAdapter.to_graph_event(make_request(location_type=LocationType.GOOGLE_MEET))
        assert result["onlineMeetingProvider"] == "teamsForBusiness"

    def test_in_person(self):
        result = MicrosoftGraphAdapter.to_graph_event(make_request(location_type=LocationType.IN_PERSON))
        assert result["location"] == {"displayName": "In Person Meeting"}
        assert "isOnlineMeeting" not in result

    def test_organizer(self):
        result = MicrosoftGraphAdapter.to_graph_event(
            make_request(organizer="owner@example.com"), "Olive"
        )
        assert result["organizer"] == {"emailAddress": {"address": "owner@example.com", "name": "Olive"}}


class TestToUpdateBody:
    """Tests for sparse Graph update payloads."""

    def existing(self) -> CanonicalEvent:
        return CanonicalEvent(
            external_id="AAMk1",
            provider=ProviderTag.MICROSOFT,
            title="Old",
            start_time=datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc),
            end_time=datetime(2026, 3, 2, 11, 0, tzinfo=timezone.utc),
        )

    def test_subject_only(self):
        body = MicrosoftGraphAdapter.to_update_body(EventPatch(title="New"), self.existing())
        assert body == {"subject": "New"}

    def test_end_only_resends_start(self):
        patch = EventPatch(end_time=datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc))
        body = MicrosoftGraphAdapter.to_update_body(patch, self.existing())
        assert body["start"]["dateTime"] == "2026-03-02T10:00:00"
        assert body["end"]["dateTime"] == "2026-03-02T12:00:00"

    def test_timezone_is_not_sent(self):
        """Graph times are always UTC; the zone only lives on the mirror."""
        body = MicrosoftGraphAdapter.to_update_body(EventPatch(timezone="Europe/Paris"), self.existing())
        assert body == {}

    def test_switch_to_in_person(self):
        patch = EventPatch(location_type="IN_PERSON", location_details="Cafe")
        body = MicrosoftGraphAdapter.to_update_body(patch, self.existing())
        assert body["location"] == {"displayName": "Cafe"}
        assert body["isOnlineMeeting"] is False


class TestFromGraphEvent:
    """Tests for converting Graph events to canonical events."""

    def test_teams_event(self):
        event = MicrosoftGraphAdapter.from_graph_event({
            "id": "AAMk1",
            "subject": "Pipeline review",
            "body": {"contentType": "html", "content": "<p>Agenda</p>"},
            "start": {"dateTime": "2026-03-02T08:00:00.0000000", "timeZone": "UTC"},
            "end": {"dateTime": "2026-03-02T09:00:00.0000000", "timeZone": "UTC"},
            "originalStartTimeZone": "W. Europe Standard Time",
            "attendees": [
                {"emailAddress": {"address": "ann@example.com", "name": "Ann"}, "status": {"response": "accepted"}},
                {"emailAddress": {"address": "bob@example.com", "name": "Bob"}},
            ],
            "organizer": {"emailAddress": {"address": "owner@example.com", "name": "Olive"}},
            "isOnlineMeeting": True,
            "onlineMeetingProvider": "teamsForBusiness",
            "onlineMeeting": {"joinUrl": "https://teams.microsoft.com/l/meetup-join/1"},
        })

        assert event.provider == ProviderTag.MICROSOFT
        assert event.start_time == datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
        assert event.description == "<p>Agenda</p>"
        assert event.timezone == "W. Europe Standard Time"
        assert [a.status for a in event.attendees] == ["accepted", "none"]
        assert event.organizer_name == "Olive"
        assert event.location_type == LocationType.TEAMS.value
        assert event.is_online_meeting is True
        assert event.meeting_link == "https://teams.microsoft.com/l/meetup-join/1"

    def test_in_person_event(self):
        event = MicrosoftGraphAdapter.from_graph_event({
            "id": "AAMk2",
            "start": {"dateTime": "2026-03-02T08:00:00"},
            "end": {"dateTime": "2026-03-02T09:00:00"},
            "location": {"displayName": "HQ"},
            "isOnlineMeeting": False,
        })
        assert event.title == "Untitled"
        assert event.location_type == LocationType.IN_PERSON.value
        assert event.location_details == "HQ"
        assert event.online_meeting_provider is None

    def test_other_online_provider(self):
        event = MicrosoftGraphAdapter.from_graph_event({
            "id": "AAMk3",
            "start": {"dateTime": "2026-03-02T08:00:00"},
            "end": {"dateTime": "2026-03-02T09:00:00"},
            "isOnlineMeeting": True,
            "onlineMeetingProvider": "skypeForConsumer",
        })
        assert event.location_type == LocationType.OTHER.value


class TestContactsAndProfile:
    """Tests for contacts, people and profile mapping."""

    def test_contact_uses_first_address(self):
        contact = MicrosoftGraphAdapter.from_graph_contact(
            {
                "id": "c1",
                "displayName": "Ann Lee",
                "emailAddresses": [
                    {"address": "ann@example.com", "name": "Ann"},
                    {"address": "ann@home.example.com"},
                ],
                "businessPhones": ["+1 555"],
                "companyName": "Acme",
                "jobTitle": "CTO",
            },
            "contacts",
        )
        assert contact.email == "ann@example.com"
        assert contact.phone == "+1 555"
        assert contact.organization == "Acme"
        assert contact.source == "contacts"

    def test_person_scored_addresses(self):
        contact = MicrosoftGraphAdapter.from_graph_contact(
            {"id": "p1", "displayName": "Bob", "scoredEmailAddresses": [{"address": "bob@example.com"}]},
            "people",
        )
        assert contact.email == "bob@example.com"
        assert contact.phone is None

    def test_from_me_falls_back_to_principal_name(self):
        profile = MicrosoftGraphAdapter.from_me(
            {"displayName": "Olive", "mail": None, "userPrincipalName": "olive@contoso.com"}
        )
        assert profile.email == "olive@contoso.com"
        assert profile.name == "Olive"
