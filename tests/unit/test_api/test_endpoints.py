"""
Unit tests for API endpoints.

Tests routing, request parsing and error mapping using FastAPI TestClient
with the gateway and meeting logger replaced by mocks.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from calsync.api.dependencies import get_gateway, get_meeting_logger
import calsync.api.main as api_main
from calsync.api.main import app, run_server
from calsync.config import Settings
from calsync.integrations.base import CanonicalEvent, Contact, DeleteResult, ProviderTag
from calsync.integrations.exceptions import (
    InvalidRequestError,
    NotFoundError,
    RateLimitError,
    UnauthorizedError,
)
from calsync.services.feed import FeedItem
from calsync.services.meeting_logger import AttachmentUpload, LogMeetingResult

AUTH_HEADERS = {"Authorization": "Bearer tok", "X-Calendar-Provider": "google"}


def canonical_event(**overrides) -> CanonicalEvent:
    values = {
        "external_id": "evt-1",
        "provider": ProviderTag.GOOGLE,
        "title": "Discovery call",
        "start_time": datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc),
        "end_time": datetime(2026, 3, 2, 11, 0, tzinfo=timezone.utc),
        "organizer": "owner@example.com",
        "organizer_name": "Olive",
    }
    values.update(overrides)
    return CanonicalEvent(**values)


@pytest.fixture
def gateway():
    mock = MagicMock()
    for name in ("list_events", "create_event", "update_event", "delete_event", "get_contacts", "build_feed"):
        setattr(mock, name, AsyncMock())
    return mock


@pytest.fixture
def meeting_logger():
    mock = MagicMock()
    for name in (
        "log_meeting",
        "list_logged_meetings",
        "get_logged_meeting",
        "create_attachment_upload_url",
        "create_attachment_access_url",
        "delete_attachment",
    ):
        setattr(mock, name, AsyncMock())
    return mock


@pytest.fixture
def client(gateway, meeting_logger):
    """Create test client with mocked core services."""
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_meeting_logger] = lambda: meeting_logger
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


class TestHealthEndpoint:
    """Test /health endpoint."""

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": "0.1.0"}

    def test_health_check_has_request_id(self, client):
        response = client.get("/health")

        assert "X-Request-ID" in response.headers


class TestEventEndpoints:
    """Test /calendar/events endpoints."""

    def test_list_events(self, client, gateway):
        gateway.list_events.return_value = [canonical_event()]

        response = client.get(
            "/calendar/events",
            params={"start_date": "2026-03-01T00:00:00Z"},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 200
        data = response.json()
        assert data[0]["external_id"] == "evt-1"
        assert data[0]["provider"] == "google"
        args = gateway.list_events.call_args.args
        assert args[0] == "Bearer tok"
        assert args[1] == "google"
        assert args[2] == datetime(2026, 3, 1, tzinfo=timezone.utc)
        assert args[3] is None

    def test_create_event(self, client, gateway):
        gateway.create_event.return_value = canonical_event(lead_id="lead-1")

        response = client.post(
            "/calendar/events",
            json={
                "title": "Discovery call",
                "start_time": "2026-03-02T10:00:00Z",
                "end_time": "2026-03-02T11:00:00Z",
                "location_type": "GOOGLE_MEET",
                "attendees": [{"email": "client@example.com", "response_required": "REQUIRED"}],
                "lead_id": "lead-1",
            },
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 201
        assert response.json()["lead_id"] == "lead-1"
        request = gateway.create_event.call_args.args[2]
        assert request.title == "Discovery call"
        assert request.location_type.value == "GOOGLE_MEET"
        assert request.attendees[0].is_required is True

    def test_create_event_validation_error(self, client, gateway):
        response = client.post(
            "/calendar/events",
            json={"title": "   ", "start_time": "2026-03-02T10:00:00Z", "end_time": "2026-03-02T11:00:00Z"},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 422
        gateway.create_event.assert_not_awaited()

    def test_update_passes_only_supplied_fields(self, client, gateway):
        gateway.update_event.return_value = canonical_event(title="Renamed")

        response = client.patch(
            "/calendar/events/evt-1",
            json={"title": "Renamed", "description": None},
        )

        assert response.status_code == 200
        authorization, provider, event_id, patch = gateway.update_event.call_args.args
        assert authorization is None
        assert provider is None
        assert event_id == "evt-1"
        assert patch.changed_fields() == {"title": "Renamed", "description": None}

    def test_delete_event(self, client, gateway):
        gateway.delete_event.return_value = DeleteResult(event_id="evt-1")

        response = client.delete("/calendar/events/evt-1", headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"message": "Event deleted successfully", "event_id": "evt-1"}

    def test_contacts(self, client, gateway):
        gateway.get_contacts.return_value = [Contact(id="c1", name="Ann", email="ann@example.com")]

        response = client.get("/calendar/contacts", headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json()["total_count"] == 1


class TestErrorMapping:
    """Test error taxonomy to HTTP status mapping."""

    @pytest.mark.parametrize(
        "error, status, error_type, retryable",
        [
            (UnauthorizedError("Authorization header is required"), 401, "unauthorized", False),
            (InvalidRequestError("Start time must be before end time"), 400, "invalid_request", False),
            (NotFoundError("Calendar event evt-1 not found"), 404, "not_found", False),
            (RateLimitError("Slow down"), 502, "rate_limited", True),
        ],
    )
    def test_error_response(self, client, gateway, error, status, error_type, retryable):
        gateway.list_events.side_effect = error

        response = client.get("/calendar/events", headers=AUTH_HEADERS)

        assert response.status_code == status
        assert response.json() == {
            "error_type": error_type,
            "message": error.message,
            "retryable": retryable,
        }


class TestFeedEndpoint:
    """Test /calendar/feed."""

    def test_feed(self, client, gateway):
        moment = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
        gateway.build_feed.return_value = [
            FeedItem(source="logged_meeting", id="m-1", title="Call", start_time=moment, end_time=moment)
        ]

        response = client.get("/calendar/feed", params={"provider": "google", "lead_id": "lead-1"})

        assert response.status_code == 200
        assert response.json()[0]["source"] == "logged_meeting"
        filters = gateway.build_feed.call_args.args[0]
        assert filters.provider == "google"
        assert filters.lead_id == "lead-1"
        assert filters.user_id is None


class TestMeetingEndpoints:
    """Test /calendar/meetings endpoints."""

    def test_log_meeting(self, client, meeting_logger):
        meeting_logger.log_meeting.return_value = LogMeetingResult(meeting_id="m-1", activity_id="act-1")

        response = client.post(
            "/calendar/meetings",
            json={
                "title": "Intro call",
                "meeting_type": "PHONE",
                "meeting_datetime": "2026-03-02T15:00:00Z",
                "outcome": "COMPLETED",
                "participants": [{"email": "client@example.com"}],
            },
            headers={"X-Organization-Id": "org-1"},
        )

        assert response.status_code == 201
        assert response.json() == {"meeting_id": "m-1", "activity_id": "act-1", "task_id": None}
        request, organization_id = meeting_logger.log_meeting.call_args.args
        assert organization_id == "org-1"
        assert request.participants[0].email == "client@example.com"

    def test_log_meeting_missing_organization(self, client, meeting_logger):
        meeting_logger.log_meeting.side_effect = InvalidRequestError("Organization ID is required")

        response = client.post(
            "/calendar/meetings",
            json={
                "title": "Intro call",
                "meeting_type": "PHONE",
                "meeting_datetime": "2026-03-02T15:00:00Z",
                "outcome": "COMPLETED",
            },
        )

        assert response.status_code == 400
        assert meeting_logger.log_meeting.call_args.args[1] == ""

    def test_unknown_meeting_type_rejected(self, client, meeting_logger):
        response = client.post(
            "/calendar/meetings",
            json={
                "title": "Intro call",
                "meeting_type": "CARRIER_PIGEON",
                "meeting_datetime": "2026-03-02T15:00:00Z",
                "outcome": "COMPLETED",
            },
            headers={"X-Organization-Id": "org-1"},
        )

        assert response.status_code == 422

    def test_get_meeting_not_found(self, client, meeting_logger):
        meeting_logger.get_logged_meeting.side_effect = NotFoundError("Logged meeting x not found")

        response = client.get("/calendar/meetings/x")

        assert response.status_code == 404

    def test_upload_attachment(self, client, meeting_logger):
        meeting_logger.create_attachment_upload_url.return_value = AttachmentUpload(
            upload_url="https://bucket.test/put",
            file_key="meetings/attachments/1-notes.pdf",
        )

        response = client.post(
            "/calendar/meetings/upload-attachment",
            json={"file_name": "notes.pdf", "content_type": "application/pdf"},
        )

        assert response.status_code == 200
        assert response.json()["file_key"] == "meetings/attachments/1-notes.pdf"


class TestRunServer:
    """Tests for the console entry point."""

    def test_defaults_come_from_settings(self, monkeypatch):
        calls = {}
        monkeypatch.setattr(
            api_main,
            "get_settings",
            lambda: Settings(_env_file=None, api_host="127.0.0.1", api_port=9100, api_reload=True),
        )
        monkeypatch.setattr("uvicorn.run", lambda app_path, **kwargs: calls.update(kwargs))

        run_server()

        assert calls == {"host": "127.0.0.1", "port": 9100, "reload": True}

    def test_arguments_override_settings(self, monkeypatch):
        calls = {}
        monkeypatch.setattr(api_main, "get_settings", lambda: Settings(_env_file=None))
        monkeypatch.setattr("uvicorn.run", lambda app_path, **kwargs: calls.update(kwargs))

        run_server(host="0.0.0.0", port=8080, reload=False)

        assert calls == {"host": "0.0.0.0", "port": 8080, "reload": False}
