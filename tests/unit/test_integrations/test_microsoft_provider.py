"""Tests for the Microsoft Graph provider workflow."""

from datetime import datetime, timezone

import httpx
import pytest

from conftest import make_event, request_json

from calsync.integrations.base import CreateEventRequest, EventPatch, LocationType, ProviderTag
from calsync.integrations.exceptions import RateLimitError
from calsync.integrations.microsoft_graph import MicrosoftGraphClient, MicrosoftGraphProvider


def graph_event(event_id: str = "AAMk1", **overrides) -> dict:
    event = {
        "id": event_id,
        "subject": "Pipeline review",
        "start": {"dateTime": "2026-03-02T10:00:00.0000000", "timeZone": "UTC"},
        "end": {"dateTime": "2026-03-02T11:00:00.0000000", "timeZone": "UTC"},
        "organizer": {"emailAddress": {"address": "owner@contoso.com", "name": "Olive"}},
        "attendees": [],
        "isOnlineMeeting": True,
        "onlineMeetingProvider": "teamsForBusiness",
        "onlineMeeting": {"joinUrl": "https://teams.microsoft.com/l/1"},
    }
    event.update(overrides)
    return event


@pytest.fixture
def provider(transport, store, activity_client, settings) -> MicrosoftGraphProvider:
    return MicrosoftGraphProvider(
        MicrosoftGraphClient(transport, settings),
        store,
        activity_client,
        settings,
    )


class TestCreateEvent:
    """Tests for create_event."""

    @pytest.mark.asyncio
    async def test_create_teams_meeting(self, provider, provider_api, store):
        provider_api.route("POST", "/me/events", (201, graph_event()))

        event = await provider.create_event(
            "tok",
            CreateEventRequest(
                title="Pipeline review",
                start_time=datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc),
                end_time=datetime(2026, 3, 2, 11, 0, tzinfo=timezone.utc),
                location_type=LocationType.TEAMS,
                lead_id="lead-7",
            ),
        )

        body = request_json(provider_api.calls("POST", "/me/events")[0])
        assert body["isOnlineMeeting"] is True
        assert body["onlineMeetingProvider"] == "teamsForBusiness"

        assert event.provider == ProviderTag.MICROSOFT
        assert event.meeting_link == "https://teams.microsoft.com/l/1"
        assert event.organizer_name == "Olive"
        assert event.user_id == "owner@contoso.com"

        record = await store.get_event_by_external_id("AAMk1")
        assert record.provider == "microsoft"
        assert record.lead_id == "lead-7"
        assert record.location_type == "TEAMS"
        assert record.is_online_meeting is True

    @pytest.mark.asyncio
    async def test_throttled_create_propagates(self, provider, provider_api, store):
        provider_api.route(
            "POST",
            "/me/events",
            (429, {"error": {"code": "TooManyRequests", "message": "Slow down"}}),
        )
        request = CreateEventRequest(
            title="Pipeline review",
            start_time=datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc),
            end_time=datetime(2026, 3, 2, 11, 0, tzinfo=timezone.utc),
            organizer_name="Olive",
        )

        with pytest.raises(RateLimitError):
            await provider.create_event("tok", request)

        assert await store.count_events() == 0


class TestUpdateEvent:
    """Tests for update_event."""

    @pytest.mark.asyncio
    async def test_end_only_keeps_start(self, provider, provider_api, store):
        await store.insert_event(make_event("AAMk1", provider=ProviderTag.MICROSOFT))

        def patch_handler(request: httpx.Request) -> httpx.Response:
            body = request_json(request)
            return httpx.Response(200, json=graph_event(start=body["start"], end=body["end"]))

        provider_api.route("GET", "/me/events/AAMk1", (200, graph_event()))
        provider_api.route("PATCH", "/me/events/AAMk1", patch_handler)

        updated = await provider.update_event(
            "tok",
            "AAMk1",
            EventPatch(end_time=datetime(2026, 3, 2, 12, 30, tzinfo=timezone.utc)),
        )

        body = request_json(provider_api.calls("PATCH", "/me/events/AAMk1")[0])
        assert body["start"] == {"dateTime": "2026-03-02T10:00:00", "timeZone": "UTC"}
        assert body["end"] == {"dateTime": "2026-03-02T12:30:00", "timeZone": "UTC"}
        assert updated.start_time == datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
        assert updated.end_time == datetime(2026, 3, 2, 12, 30, tzinfo=timezone.utc)

        record = await store.get_event_by_external_id("AAMk1")
        assert (record.end_time.hour, record.end_time.minute) == (12, 30)

    @pytest.mark.asyncio
    async def test_update_without_mirror(self, provider, provider_api, store, activity_client):
        """Events never mirrored locally are still updated provider-side."""
        provider_api.route("GET", "/me/events/AAMk9", (200, graph_event("AAMk9")))
        provider_api.route("PATCH", "/me/events/AAMk9", (200, graph_event("AAMk9", subject="Renamed")))

        updated = await provider.update_event("tok", "AAMk9", EventPatch(title="Renamed", lead_id="lead-2"))

        assert updated.title == "Renamed"
        assert updated.lead_id == "lead-2"
        assert await store.count_events() == 0
        activity_client.log_activity.assert_awaited_once()


class TestGetContacts:
    """Tests for contacts and people merging."""

    @pytest.mark.asyncio
    async def test_contacts_then_people_deduped(self, provider, provider_api):
        provider_api.route(
            "GET",
            "/me/contacts",
            (200, {"value": [
                {"id": "c1", "displayName": "Ann", "emailAddresses": [{"address": "ann@contoso.com"}]},
            ]}),
        )
        provider_api.route(
            "GET",
            "/me/people",
            (200, {"value": [
                {"id": "p1", "displayName": "Ann L.", "scoredEmailAddresses": [{"address": "ANN@contoso.com"}]},
                {"id": "p2", "displayName": "Bob", "scoredEmailAddresses": [{"address": "bob@contoso.com"}]},
            ]}),
        )

        contacts = await provider.get_contacts("tok")

        assert [c.id for c in contacts] == ["c1", "p2"]
        assert [c.source for c in contacts] == ["contacts", "people"]


class TestGetUserProfile:
    """Tests for the signed-in user profile."""

    @pytest.mark.asyncio
    async def test_profile(self, provider, provider_api):
        provider_api.route("GET", "/v1.0/me", (200, {"displayName": "Olive", "mail": "owner@contoso.com"}))

        profile = await provider.get_user_profile("tok")

        assert profile.name == "Olive"
        assert profile.email == "owner@contoso.com"
