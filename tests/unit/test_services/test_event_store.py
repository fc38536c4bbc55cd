"""Tests for the Event Store."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_event

from calsync.integrations.base import ProviderTag
from calsync.services.event_store import event_to_values, record_to_event


class TestEventConversion:
    """Tests for canonical event <-> mirror values."""

    def test_event_to_values(self, sample_event):
        values = event_to_values(sample_event)
        assert values["provider"] == "google"
        assert values["attendees"] == [
            {"email": "client@example.com", "name": "Client", "status": "needsAction"}
        ]
        assert values["is_active"] is True

    @pytest.mark.asyncio
    async def test_record_round_trip_is_utc(self, store, sample_event):
        """Reads come back timezone-aware in UTC."""
        record = await store.insert_event(sample_event)
        event = record_to_event(record)
        assert event.start_time == sample_event.start_time
        assert event.start_time.tzinfo is not None
        assert event.provider == ProviderTag.GOOGLE
        assert event.attendees[0].email == "client@example.com"

    @pytest.mark.asyncio
    async def test_offset_times_stored_as_utc(self, store):
        """A +05:00 start is the same instant after a round trip."""
        plus_five = timezone(timedelta(hours=5))
        event = make_event(
            start=datetime(2026, 3, 2, 10, 0, tzinfo=plus_five),
            end=datetime(2026, 3, 2, 11, 0, tzinfo=plus_five),
        )

        await store.insert_event(event)
        record = await store.get_event_by_external_id("evt-1")

        assert record.start_time == datetime(2026, 3, 2, 5, 0, tzinfo=timezone.utc)
        assert record.start_time.utcoffset() == timedelta(0)
        assert record.end_time == datetime(2026, 3, 2, 6, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_offset_update_stored_as_utc(self, store, sample_event):
        await store.insert_event(sample_event)
        minus_five = timezone(timedelta(hours=-5))

        record = await store.update_event_by_external_id(
            "evt-1", {"start_time": datetime(2026, 3, 2, 8, 0, tzinfo=minus_five)}
        )

        assert record.start_time == datetime(2026, 3, 2, 13, 0, tzinfo=timezone.utc)


class TestCalendarEvents:
    """Tests for calendar event mirror persistence."""

    @pytest.mark.asyncio
    async def test_insert_and_get(self, store, sample_event):
        record = await store.insert_event(sample_event)

        assert record.id is not None
        assert record.created_at is not None
        found = await store.get_event_by_external_id("evt-1")
        assert found.id == record.id

    @pytest.mark.asyncio
    async def test_find_with_filters_and_sort(self, store):
        base = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
        for i, lead in enumerate(["lead-1", "lead-2", "lead-1"]):
            await store.insert_event(
                make_event(f"evt-{i}", start=base + timedelta(days=i), end=base + timedelta(days=i, hours=1), lead_id=lead)
            )

        ascending = await store.find_events({"lead_id": "lead-1"})
        descending = await store.find_events({"lead_id": "lead-1"}, descending=True)

        assert [r.external_id for r in ascending] == ["evt-0", "evt-2"]
        assert [r.external_id for r in descending] == ["evt-2", "evt-0"]
        assert await store.count_events({"lead_id": "lead-1"}) == 2

    @pytest.mark.asyncio
    async def test_skip_and_limit(self, store):
        base = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
        for i in range(4):
            await store.insert_event(
                make_event(f"evt-{i}", start=base + timedelta(hours=i), end=base + timedelta(hours=i, minutes=30))
            )

        page = await store.find_events({}, skip=1, limit=2)

        assert [r.external_id for r in page] == ["evt-1", "evt-2"]

    @pytest.mark.asyncio
    async def test_unknown_filter_rejected(self, store):
        with pytest.raises(ValueError):
            await store.find_events({"colour": "blue"})

    @pytest.mark.asyncio
    async def test_sparse_update(self, store, sample_event):
        """Only supplied keys are written."""
        await store.insert_event(sample_event)

        record = await store.update_event_by_external_id("evt-1", {"title": "Renamed", "description": None})

        assert record.title == "Renamed"
        assert record.description is None
        assert record.lead_id == "lead-1"
        assert record.organizer == "owner@example.com"

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, store):
        assert await store.update_event_by_external_id("nope", {"title": "x"}) is None

    @pytest.mark.asyncio
    async def test_soft_delete(self, store, sample_event):
        """Deleted rows stay in the table but disappear from active reads."""
        await store.insert_event(sample_event)

        record = await store.soft_delete_event("evt-1")

        assert record.is_active is False
        assert record.deleted_at is not None
        assert await store.get_event_by_external_id("evt-1") is None
        assert await store.count_events() == 1
        assert await store.count_events({"is_active": True}) == 0

    @pytest.mark.asyncio
    async def test_soft_delete_twice(self, store, sample_event):
        await store.insert_event(sample_event)
        await store.soft_delete_event("evt-1")

        assert await store.soft_delete_event("evt-1") is None

    @pytest.mark.asyncio
    async def test_inactive_rows_not_updated(self, store, sample_event):
        await store.insert_event(sample_event)
        await store.soft_delete_event("evt-1")

        assert await store.update_event_by_external_id("evt-1", {"title": "x"}) is None


class TestLoggedMeetings:
    """Tests for logged meeting persistence."""

    async def insert(self, store, title: str, when: datetime, lead_id: str = "lead-1"):
        return await store.insert_meeting(
            title=title,
            meeting_type="PHONE",
            meeting_datetime=when,
            outcome="COMPLETED",
            participants=[],
            lead_id=lead_id,
            logged_by="system",
            organization_id="org-1",
            meeting_metadata={"source": "manual_log"},
        )

    @pytest.mark.asyncio
    async def test_newest_first(self, store):
        await self.insert(store, "older", datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))
        await self.insert(store, "newer", datetime(2026, 3, 5, 9, 0, tzinfo=timezone.utc))

        meetings = await store.find_meetings({"is_active": True})

        assert [m.title for m in meetings] == ["newer", "older"]

    @pytest.mark.asyncio
    async def test_offset_meeting_time_stored_as_utc(self, store):
        plus_two = timezone(timedelta(hours=2))
        meeting = await self.insert(store, "call", datetime(2026, 3, 1, 9, 0, tzinfo=plus_two))

        fetched = await store.get_meeting(meeting.id)

        assert fetched.meeting_datetime == datetime(2026, 3, 1, 7, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_get_and_update(self, store):
        meeting = await self.insert(store, "call", datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))

        updated = await store.update_meeting(meeting.id, {"activity_id": "act-1", "task_id": "task-1"})
        fetched = await store.get_meeting(meeting.id)

        assert updated.activity_id == "act-1"
        assert fetched.task_id == "task-1"
        assert await store.count_meetings({"lead_id": "lead-1"}) == 1
